from rest_framework import serializers
from django.db import transaction
from erp.core.models import CompanySettings
from erp.core.serializers import TagsField
from erp.core.numbering import next_document_number, register_used_number
from erp.core.cache_signals import suspend_cache_signals_decorator, invalidate_dashboard_cache
from .models import Invoice, InvoiceItem, Payment, Quote, QuoteItem
from .words import amount_to_french_words


def fill_line_defaults(attrs, default_tva_rate=None):
    """Complete a document line from its product; validate amounts"""
    product = attrs.get('product')
    errors = {}

    if not (attrs.get('description') or '').strip():
        if product is None:
            errors['description'] = 'Description is required when no product is selected'
        else:
            attrs['description'] = product.name
    if attrs.get('unit_price') is None:
        if product is None:
            errors['unit_price'] = 'Unit price is required when no product is selected'
        else:
            attrs['unit_price'] = product.base_price
    if attrs.get('tva_rate') is None:
        if product is not None:
            attrs['tva_rate'] = product.tva_rate
        else:
            attrs['tva_rate'] = default_tva_rate if default_tva_rate is not None else CompanySettings.load().default_tva_rate

    if attrs.get('quantity') is not None and attrs['quantity'] <= 0:
        errors['quantity'] = 'Quantity must be greater than 0'
    if attrs.get('unit_price') is not None and attrs['unit_price'] < 0:
        errors['unit_price'] = 'Unit price cannot be negative'
    if attrs.get('tva_rate') is not None and not 0 <= attrs['tva_rate'] <= 100:
        errors['tva_rate'] = 'TVA rate must be between 0 and 100'

    if errors:
        raise serializers.ValidationError(errors)
    return attrs


class InvoiceItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True, default=None)
    description = serializers.CharField(required=False, allow_blank=True, max_length=255)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=3, required=False)
    tva_rate = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)

    class Meta:
        model = InvoiceItem
        fields = ['id', 'product', 'product_name', 'description', 'quantity', 'unit_price', 'tva_rate', 'total']
        read_only_fields = ['total']

    def validate(self, attrs):
        return fill_line_defaults(attrs)


class QuoteItemSerializer(InvoiceItemSerializer):
    class Meta(InvoiceItemSerializer.Meta):
        model = QuoteItem


class PaymentSerializer(serializers.ModelSerializer):
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = Payment
        fields = ['id', 'invoice', 'amount', 'method', 'reference', 'payment_date', 'notes',
                  'created_by', 'created_by_username', 'created_at']
        read_only_fields = ['invoice', 'created_by', 'created_at']

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be greater than 0')
        return value


class DocumentSerializerMixin:
    """
    Shared create/update for documents with nested items.

    Items are passed through ``context['items_data']``: a list replaces all
    lines, None leaves them untouched.
    """
    item_serializer_class = None
    item_model = None
    item_parent_field = None
    number_kind = None
    editable_statuses = ('draft',)

    def validate_number(self, value):
        value = (value or '').strip()
        if not value:
            return value
        queryset = self.Meta.model.objects.filter(number=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError(f'Document number {value} already exists')
        return value

    def validate_discount_percent(self, value):
        if not 0 <= value <= 100:
            raise serializers.ValidationError('Discount must be between 0 and 100')
        return value

    def _validated_items(self, required):
        items_data = self.context.get('items_data', None)
        if items_data is None:
            if required:
                raise serializers.ValidationError({'items': 'At least one item is required'})
            return None
        if not isinstance(items_data, list):
            raise serializers.ValidationError({'items': 'Expected a list of items'})
        if not items_data:
            raise serializers.ValidationError({'items': 'At least one item is required'})
        item_serializer = self.item_serializer_class(data=items_data, many=True)
        if not item_serializer.is_valid():
            raise serializers.ValidationError({'items': item_serializer.errors})
        return item_serializer.validated_data

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if self.instance is not None and self.context.get('items_data') is not None \
                and self.instance.status not in self.editable_statuses:
            raise serializers.ValidationError(
                {'items': f'Items can only be changed while the document is {" or ".join(self.editable_statuses)}'}
            )
        attrs['_items'] = self._validated_items(required=self.instance is None)
        return attrs

    def _replace_items(self, document, items):
        self.item_model.objects.filter(**{self.item_parent_field: document}).delete()
        for item in items:
            self.item_model.objects.create(**{self.item_parent_field: document}, **item)
        # Detail views prefetch items; totals must be computed from the new rows
        getattr(document, '_prefetched_objects_cache', {}).pop('items', None)

    @suspend_cache_signals_decorator
    def create(self, validated_data):
        items = validated_data.pop('_items')
        supplied_number = validated_data.get('number')
        model = self.Meta.model
        with transaction.atomic():
            if supplied_number:
                register_used_number(self.number_kind, supplied_number)
            else:
                validated_data['number'] = next_document_number(
                    self.number_kind, exists=lambda number: model.objects.filter(number=number).exists()
                )
            document = super().create(validated_data)
            self._replace_items(document, items)
            document.recalculate_totals()
        invalidate_dashboard_cache()
        return document

    @suspend_cache_signals_decorator
    def update(self, instance, validated_data):
        items = validated_data.pop('_items')
        supplied_number = validated_data.get('number')
        if 'number' in validated_data and not supplied_number:
            validated_data.pop('number')
        with transaction.atomic():
            if supplied_number and supplied_number != instance.number:
                register_used_number(self.number_kind, supplied_number)
            document = super().update(instance, validated_data)
            if items is not None:
                self._replace_items(document, items)
            document.recalculate_totals()
        invalidate_dashboard_cache()
        return document


class InvoiceSerializer(DocumentSerializerMixin, serializers.ModelSerializer):
    item_serializer_class = InvoiceItemSerializer
    item_model = InvoiceItem
    item_parent_field = 'invoice'
    number_kind = 'invoice'

    number = serializers.CharField(required=False, allow_blank=True, max_length=50)
    status = serializers.ChoiceField(choices=[('draft', 'Draft'), ('validated', 'Validated')], required=False)
    tags = TagsField(required=False)
    items = InvoiceItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    client_name = serializers.CharField(source='client.name', read_only=True)
    amount_paid = serializers.SerializerMethodField()
    balance_due = serializers.SerializerMethodField()
    amount_in_words = serializers.SerializerMethodField()
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = Invoice
        fields = [
            'id', 'number', 'client', 'client_name', 'status', 'issue_date', 'due_date',
            'discount_percent', 'fodec_rate', 'timbre_amount',
            'subtotal', 'discount_amount', 'tva_amount', 'fodec_amount', 'total',
            'amount_paid', 'balance_due', 'amount_in_words', 'is_overdue',
            'public_token', 'notes', 'tags', 'source_quote', 'paid_at',
            'items', 'payments', 'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'subtotal', 'discount_amount', 'tva_amount', 'fodec_amount', 'total',
            'public_token', 'source_quote', 'paid_at', 'created_by', 'created_at', 'updated_at'
        ]

    def get_amount_paid(self, obj):
        return str(obj.get_amount_paid())

    def get_balance_due(self, obj):
        return str(obj.get_balance_due())

    def get_amount_in_words(self, obj):
        return amount_to_french_words(obj.total)

    def validate_status(self, value):
        # Status changes after creation go through the status endpoint
        if self.instance is not None and value != self.instance.status:
            raise serializers.ValidationError('Use the status endpoint to change the status')
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if self.instance is not None and self.instance.status != 'draft':
            locked = {'client', 'discount_percent', 'fodec_rate', 'timbre_amount', 'number', 'issue_date'}
            changed = [field for field in locked if field in attrs and attrs[field] != getattr(self.instance, field)]
            if changed:
                raise serializers.ValidationError(
                    {field: 'Cannot be changed once the invoice is validated' for field in changed}
                )
        issue_date = attrs.get('issue_date', getattr(self.instance, 'issue_date', None))
        due_date = attrs.get('due_date', getattr(self.instance, 'due_date', None))
        if issue_date and due_date and due_date < issue_date:
            raise serializers.ValidationError({'due_date': 'Due date cannot be before the issue date'})
        return attrs

    def create(self, validated_data):
        company = CompanySettings.load()
        validated_data.setdefault('fodec_rate', company.default_fodec_rate)
        validated_data.setdefault('timbre_amount', company.default_timbre)
        return super().create(validated_data)


class InvoiceListSerializer(serializers.ModelSerializer):
    """Lightweight invoice rows for list views"""
    client_name = serializers.CharField(source='client.name', read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = Invoice
        fields = ['id', 'number', 'client', 'client_name', 'status', 'issue_date', 'due_date',
                  'subtotal', 'tva_amount', 'total', 'tags', 'is_overdue', 'paid_at', 'created_at']


class PublicInvoiceSerializer(serializers.ModelSerializer):
    """Fields exposed on the public verification page"""
    client_name = serializers.CharField(source='client.name', read_only=True)

    class Meta:
        model = Invoice
        fields = ['number', 'issue_date', 'total', 'status', 'client_name']


class QuoteSerializer(DocumentSerializerMixin, serializers.ModelSerializer):
    item_serializer_class = QuoteItemSerializer
    item_model = QuoteItem
    item_parent_field = 'quote'
    number_kind = 'quote'
    editable_statuses = ('draft', 'sent')

    number = serializers.CharField(required=False, allow_blank=True, max_length=50)
    items = QuoteItemSerializer(many=True, read_only=True)
    client_name = serializers.CharField(source='client.name', read_only=True)
    converted_invoice_number = serializers.CharField(source='converted_invoice.number', read_only=True, default=None)
    amount_in_words = serializers.SerializerMethodField()

    class Meta:
        model = Quote
        fields = [
            'id', 'number', 'client', 'client_name', 'status', 'issue_date', 'valid_until',
            'discount_percent', 'subtotal', 'discount_amount', 'tva_amount', 'total',
            'amount_in_words', 'notes', 'converted_invoice', 'converted_invoice_number',
            'items', 'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'status', 'subtotal', 'discount_amount', 'tva_amount', 'total',
            'converted_invoice', 'created_by', 'created_at', 'updated_at'
        ]

    def get_amount_in_words(self, obj):
        return amount_to_french_words(obj.total)

    def validate(self, attrs):
        if self.instance is not None and self.instance.status == 'converted':
            raise serializers.ValidationError({'status': 'A converted quote can no longer be edited'})
        attrs = super().validate(attrs)
        issue_date = attrs.get('issue_date', getattr(self.instance, 'issue_date', None))
        valid_until = attrs.get('valid_until', getattr(self.instance, 'valid_until', None))
        if issue_date and valid_until and valid_until < issue_date:
            raise serializers.ValidationError({'valid_until': 'Validity date cannot be before the issue date'})
        return attrs
