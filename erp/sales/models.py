import uuid
from decimal import Decimal

from django.db import models, transaction
from django.db.models import Sum
from django.utils import timezone

from erp.core.models import User
from erp.core.exceptions import BusinessRuleError, InvalidStatusTransition
from erp.core.numbering import next_document_number
from erp.parties.models import Client
from erp.catalog.models import Product
from .calculations import compute_totals, line_total, money


class LineItem(models.Model):
    """Common columns of invoice, quote and purchase order lines"""
    description = models.CharField(max_length=255)
    quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('1.000'))
    unit_price = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    tva_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('19.00'))
    total = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))

    class Meta:
        abstract = True

    def get_line_subtotal(self):
        return money(self.quantity * self.unit_price)

    def save(self, *args, **kwargs):
        self.total = line_total(self.quantity, self.unit_price, self.tva_rate)
        super().save(*args, **kwargs)


class Invoice(models.Model):
    """Customer invoice"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('validated', 'Validated'),
        ('paid', 'Paid'),
        ('cancelled', 'Cancelled'),
    ]
    ALLOWED_TRANSITIONS = {
        'draft': {'validated', 'cancelled'},
        'validated': {'paid', 'cancelled'},
        'paid': set(),
        'cancelled': set(),
    }

    number = models.CharField(max_length=50, unique=True)
    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name='invoices')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    fodec_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    timbre_amount = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    subtotal = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    tva_amount = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    fodec_amount = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    total = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    public_token = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    notes = models.TextField(blank=True)
    tags = models.JSONField(default=list, blank=True)
    source_quote = models.ForeignKey('Quote', on_delete=models.SET_NULL, null=True, blank=True, related_name='generated_invoices')
    paid_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='invoices')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.number

    def recalculate_totals(self, save=True):
        """Recompute the stored totals from the current items"""
        totals = compute_totals(
            self.items.all(),
            discount_percent=self.discount_percent,
            fodec_rate=self.fodec_rate,
            timbre=self.timbre_amount,
        )
        for field, value in totals.items():
            setattr(self, field, value)
        if save:
            self.save(update_fields=list(totals) + ['updated_at'])
        return totals

    def get_amount_paid(self):
        return money(self.payments.aggregate(total=Sum('amount'))['total'] or 0)

    def get_balance_due(self):
        return money(self.total - self.get_amount_paid())

    @property
    def is_overdue(self):
        return self.status == 'validated' and self.due_date is not None and self.due_date < timezone.localdate()

    def can_transition_to(self, target):
        return target in self.ALLOWED_TRANSITIONS.get(self.status, set())

    def transition_to(self, target):
        """Move to ``target`` status or raise InvalidStatusTransition"""
        if target not in dict(self.STATUS_CHOICES):
            raise BusinessRuleError(f"Unknown invoice status '{target}'", field='status')
        if not self.can_transition_to(target):
            raise InvalidStatusTransition('Invoice', self.status, target)
        self.status = target
        update_fields = ['status', 'updated_at']
        if target == 'paid':
            self.paid_at = timezone.now()
            update_fields.append('paid_at')
        self.save(update_fields=update_fields)
        return self

    def add_payment(self, amount, method='cash', reference='', payment_date=None, notes='', user=None):
        """
        Record a payment; the invoice becomes paid once payments cover the total.

        Raises:
            BusinessRuleError: invoice not validated, or amount above the balance due
        """
        with transaction.atomic():
            invoice = Invoice.objects.select_for_update().get(pk=self.pk)
            if invoice.status != 'validated':
                raise BusinessRuleError(
                    f"Payments can only be recorded on validated invoices (invoice is {invoice.status})",
                    field='status',
                )
            amount = money(amount)
            balance = invoice.get_balance_due()
            if amount > balance:
                raise BusinessRuleError(
                    f"Payment of {amount} exceeds the balance due ({balance})",
                    field='amount',
                )
            payment = Payment.objects.create(
                invoice=invoice,
                amount=amount,
                method=method,
                reference=reference or '',
                payment_date=payment_date or timezone.localdate(),
                notes=notes or '',
                created_by=user,
            )
            if invoice.get_amount_paid() >= invoice.total:
                invoice.transition_to('paid')
        self.refresh_from_db()
        return payment

    class Meta:
        db_table = 'invoices'
        ordering = ['-issue_date', '-created_at']
        indexes = [
            models.Index(fields=['status'], name='idx_invoice_status'),
            models.Index(fields=['client', 'status'], name='idx_invoice_client_status'),
            models.Index(fields=['-issue_date', '-created_at'], name='idx_invoice_date_created'),
        ]


class InvoiceItem(LineItem):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='invoice_items')

    def __str__(self):
        return f"{self.invoice.number} - {self.description}"

    class Meta:
        db_table = 'invoice_items'
        ordering = ['id']


class Payment(models.Model):
    METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('bank_transfer', 'Bank transfer'),
        ('check', 'Check'),
        ('card', 'Card'),
    ]

    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=3)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES, default='cash')
    reference = models.CharField(max_length=100, blank=True)
    payment_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='payments')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.invoice.number} - {self.amount}"

    class Meta:
        db_table = 'payments'
        ordering = ['payment_date', 'id']


class Quote(models.Model):
    """Price quote (devis); can be converted into a draft invoice"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('sent', 'Sent'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
        ('converted', 'Converted'),
    ]
    # 'converted' is only reachable through convert_to_invoice()
    ALLOWED_TRANSITIONS = {
        'draft': {'sent', 'accepted', 'rejected'},
        'sent': {'draft', 'accepted', 'rejected'},
        'accepted': {'sent', 'rejected'},
        'rejected': {'draft'},
        'converted': set(),
    }
    CONVERTIBLE_STATUSES = {'accepted'}

    number = models.CharField(max_length=50, unique=True)
    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name='quotes')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    issue_date = models.DateField(default=timezone.localdate)
    valid_until = models.DateField(null=True, blank=True)
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    subtotal = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    tva_amount = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    total = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    notes = models.TextField(blank=True)
    converted_invoice = models.ForeignKey(Invoice, on_delete=models.SET_NULL, null=True, blank=True, related_name='converted_quotes')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='quotes')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.number

    def recalculate_totals(self, save=True):
        totals = compute_totals(self.items.all(), discount_percent=self.discount_percent)
        totals.pop('fodec_amount')
        for field, value in totals.items():
            setattr(self, field, value)
        if save:
            self.save(update_fields=list(totals) + ['updated_at'])
        return totals

    def transition_to(self, target):
        if target == 'converted':
            raise BusinessRuleError('Use the convert endpoint to convert a quote', field='status')
        if target not in dict(self.STATUS_CHOICES):
            raise BusinessRuleError(f"Unknown quote status '{target}'", field='status')
        if target not in self.ALLOWED_TRANSITIONS.get(self.status, set()):
            raise InvalidStatusTransition('Quote', self.status, target)
        self.status = target
        self.save(update_fields=['status', 'updated_at'])
        return self

    def convert_to_invoice(self, user=None):
        """Create a draft invoice with this quote's lines and mark the quote converted"""
        with transaction.atomic():
            quote = Quote.objects.select_for_update().get(pk=self.pk)
            if quote.status == 'converted':
                raise BusinessRuleError(
                    f"Quote {quote.number} was already converted to invoice "
                    f"{quote.converted_invoice.number if quote.converted_invoice else ''}".strip(),
                    field='status',
                )
            if quote.status not in self.CONVERTIBLE_STATUSES:
                raise InvalidStatusTransition('Quote', quote.status, 'converted')

            invoice = Invoice.objects.create(
                number=next_document_number(
                    'invoice', exists=lambda number: Invoice.objects.filter(number=number).exists()
                ),
                client=quote.client,
                status='draft',
                issue_date=timezone.localdate(),
                discount_percent=quote.discount_percent,
                notes=quote.notes,
                source_quote=quote,
                created_by=user,
            )
            for item in quote.items.all():
                InvoiceItem.objects.create(
                    invoice=invoice,
                    product=item.product,
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    tva_rate=item.tva_rate,
                )
            invoice.recalculate_totals()

            quote.status = 'converted'
            quote.converted_invoice = invoice
            quote.save(update_fields=['status', 'converted_invoice', 'updated_at'])
        self.refresh_from_db()
        return invoice

    class Meta:
        db_table = 'quotes'
        ordering = ['-issue_date', '-created_at']
        indexes = [
            models.Index(fields=['status'], name='idx_quote_status'),
        ]


class QuoteItem(LineItem):
    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='quote_items')

    def __str__(self):
        return f"{self.quote.number} - {self.description}"

    class Meta:
        db_table = 'quote_items'
        ordering = ['id']
