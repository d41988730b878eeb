from django.db import models
from decimal import Decimal
from erp.core.models import User


class Product(models.Model):
    """Print products and services sold on invoices"""
    CATEGORY_CHOICES = [
        ('dtf', 'DTF'),
        ('uv', 'UV'),
        ('embroidery', 'Embroidery'),
        ('laser', 'Laser'),
        ('other', 'Other'),
    ]

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    sku = models.CharField(max_length=100, unique=True, blank=True, null=True)
    base_price = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    cost_price = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    tva_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('19.00'))
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def margin_percent(self):
        """Gross margin on the selling price, as a percentage"""
        if not self.base_price:
            return Decimal('0.00')
        margin = (self.base_price - self.cost_price) / self.base_price * Decimal('100')
        return margin.quantize(Decimal('0.01'))

    class Meta:
        db_table = 'products'
        ordering = ['name']
