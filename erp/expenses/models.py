from django.db import models
from django.utils import timezone
from erp.core.models import User


class Expense(models.Model):
    """Operating expense (rent, utilities, raw material...)"""
    CATEGORY_CHOICES = [
        ('Loyer', 'Loyer'),
        ('Electricite', 'Electricite'),
        ('Internet', 'Internet'),
        ('Transport', 'Transport'),
        ('Matiere premiere', 'Matiere premiere'),
        ('Equipement', 'Equipement'),
        ('Salaires', 'Salaires'),
        ('Marketing', 'Marketing'),
        ('Fournitures', 'Fournitures'),
        ('Maintenance', 'Maintenance'),
        ('Assurance', 'Assurance'),
        ('Autre', 'Autre'),
    ]

    category = models.CharField(max_length=50, choices=CATEGORY_CHOICES, default='Autre')
    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=12, decimal_places=3)
    expense_date = models.DateField(default=timezone.localdate)
    tags = models.JSONField(default=list, blank=True)
    receipt_url = models.URLField(blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='expenses')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.category} - {self.description}"

    class Meta:
        db_table = 'expenses'
        ordering = ['-expense_date', '-created_at']
        indexes = [
            models.Index(fields=['-expense_date'], name='idx_expense_date'),
            models.Index(fields=['category'], name='idx_expense_category'),
        ]
