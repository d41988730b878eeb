from django.db import models
from decimal import Decimal
from django.utils import timezone
from erp.core.models import User
from erp.core.exceptions import BusinessRuleError, InvalidStatusTransition
from erp.parties.models import Supplier
from erp.sales.models import LineItem
from erp.sales.calculations import compute_totals, withholding_tax, money


class PurchaseOrder(models.Model):
    """Purchase order (bon de commande) sent to a supplier"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('ordered', 'Ordered'),
        ('received', 'Received'),
        ('cancelled', 'Cancelled'),
    ]
    ALLOWED_TRANSITIONS = {
        'draft': {'ordered', 'cancelled'},
        'ordered': {'received', 'cancelled'},
        'received': set(),
        'cancelled': set(),
    }

    number = models.CharField(max_length=50, unique=True)
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name='purchase_orders')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    order_date = models.DateField(default=timezone.localdate)
    expected_date = models.DateField(null=True, blank=True)
    subtotal = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    tva_amount = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    total = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    retenue_source = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    net_to_pay = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    notes = models.TextField(blank=True)
    tags = models.JSONField(default=list, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='purchase_orders')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.number

    def recalculate_totals(self, save=True):
        """Totals from the items, then the 1% withholding above 1000 TND"""
        totals = compute_totals(self.items.all())
        self.subtotal = totals['subtotal']
        self.tva_amount = totals['tva_amount']
        self.total = totals['total']
        self.retenue_source = withholding_tax(self.total)
        self.net_to_pay = money(self.total - self.retenue_source)
        fields = ['subtotal', 'tva_amount', 'total', 'retenue_source', 'net_to_pay']
        if save:
            self.save(update_fields=fields + ['updated_at'])
        return {field: getattr(self, field) for field in fields}

    def transition_to(self, target):
        if target not in dict(self.STATUS_CHOICES):
            raise BusinessRuleError(f"Unknown purchase order status '{target}'", field='status')
        if target not in self.ALLOWED_TRANSITIONS.get(self.status, set()):
            raise InvalidStatusTransition('Purchase order', self.status, target)
        self.status = target
        self.save(update_fields=['status', 'updated_at'])
        return self

    class Meta:
        db_table = 'purchase_orders'
        ordering = ['-order_date', '-created_at']
        indexes = [
            models.Index(fields=['status'], name='idx_po_status'),
            models.Index(fields=['supplier', 'status'], name='idx_po_supplier_status'),
            models.Index(fields=['-order_date', '-created_at'], name='idx_po_date_created'),
        ]


class PurchaseOrderItem(LineItem):
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='items')

    def __str__(self):
        return f"{self.purchase_order.number} - {self.description}"

    class Meta:
        db_table = 'purchase_order_items'
        ordering = ['id']
