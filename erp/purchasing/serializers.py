from rest_framework import serializers
from erp.core.serializers import TagsField
from erp.sales.serializers import DocumentSerializerMixin, fill_line_defaults
from .models import PurchaseOrder, PurchaseOrderItem


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    description = serializers.CharField(required=False, allow_blank=True, max_length=255)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=3, required=False)
    tva_rate = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)

    class Meta:
        model = PurchaseOrderItem
        fields = ['id', 'description', 'quantity', 'unit_price', 'tva_rate', 'total']
        read_only_fields = ['total']

    def validate(self, attrs):
        return fill_line_defaults(attrs)


class PurchaseOrderSerializer(DocumentSerializerMixin, serializers.ModelSerializer):
    item_serializer_class = PurchaseOrderItemSerializer
    item_model = PurchaseOrderItem
    item_parent_field = 'purchase_order'
    number_kind = 'purchase_order'

    number = serializers.CharField(required=False, allow_blank=True, max_length=50)
    status = serializers.ChoiceField(choices=[('draft', 'Draft'), ('ordered', 'Ordered')], required=False)
    tags = TagsField(required=False)
    items = PurchaseOrderItemSerializer(many=True, read_only=True)
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)
    supplier_tax_id = serializers.CharField(source='supplier.tax_id', read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = [
            'id', 'number', 'supplier', 'supplier_name', 'supplier_tax_id', 'status',
            'order_date', 'expected_date', 'subtotal', 'tva_amount', 'total',
            'retenue_source', 'net_to_pay', 'notes', 'tags', 'items',
            'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'subtotal', 'tva_amount', 'total', 'retenue_source', 'net_to_pay',
            'created_by', 'created_at', 'updated_at'
        ]

    def validate_status(self, value):
        if self.instance is not None and value != self.instance.status:
            raise serializers.ValidationError('Use the status endpoint to change the status')
        return value


class PurchaseOrderListSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = ['id', 'number', 'supplier', 'supplier_name', 'status', 'order_date',
                  'total', 'retenue_source', 'net_to_pay', 'tags', 'created_at']
