from django.contrib.auth.models import AbstractUser
from django.db import models
from decimal import Decimal


class User(AbstractUser):
    """Application user; carries the profile shown on the Profile screen"""
    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('sales', 'Sales'),
        ('finance', 'Finance'),
        ('stock', 'Stock'),
        ('accountant', 'Accountant'),
        ('production', 'Production'),
    ]

    full_name = models.CharField(max_length=200, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='sales')
    phone = models.CharField(max_length=20, blank=True)
    company_name = models.CharField(max_length=200, blank=True)
    address = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=20, blank=True)
    avatar_url = models.URLField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'

    def get_full_name(self):
        return self.full_name or super().get_full_name()


class CompanySettings(models.Model):
    """Company identity, document defaults and numbering sequences (single row)"""
    SEQUENCE_FIELDS = {
        'invoice': ('invoice_prefix', 'next_invoice_seq'),
        'quote': ('quote_prefix', 'next_quote_seq'),
        'purchase_order': ('po_prefix', 'next_po_seq'),
        'job': ('job_prefix', 'next_job_seq'),
    }

    company_name = models.CharField(max_length=200, blank=True)
    company_address = models.TextField(blank=True)
    company_city = models.CharField(max_length=100, blank=True)
    company_phone = models.CharField(max_length=30, blank=True)
    company_email = models.EmailField(blank=True)
    company_tax_id = models.CharField(max_length=30, blank=True)
    company_logo_url = models.URLField(blank=True)
    pdf_footer = models.TextField(blank=True)
    pdf_conditions = models.TextField(blank=True)
    default_tva_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('19.00'))
    default_fodec_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    default_timbre = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    invoice_prefix = models.CharField(max_length=10, default='FAC')
    quote_prefix = models.CharField(max_length=10, default='DEV')
    po_prefix = models.CharField(max_length=10, default='BC')
    job_prefix = models.CharField(max_length=10, default='JOB')
    next_invoice_seq = models.PositiveIntegerField(default=1)
    next_quote_seq = models.PositiveIntegerField(default=1)
    next_po_seq = models.PositiveIntegerField(default=1)
    next_job_seq = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.company_name or 'Company settings'

    @classmethod
    def load(cls):
        """Return the settings row, creating it with defaults on first use"""
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj

    @classmethod
    def load_for_update(cls):
        """Row-locked variant of load(); must run inside transaction.atomic()"""
        cls.objects.get_or_create(pk=1)
        return cls.objects.select_for_update().get(pk=1)

    def save(self, *args, **kwargs):
        self.pk = 1
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'company_settings'
        verbose_name_plural = 'company settings'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('status_change', 'Status Change'),
        ('payment_add', 'Payment Added'),
        ('quote_convert', 'Quote Converted'),
        ('export', 'Export'),
        ('login_failed', 'Login Failed'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., client name, invoice number)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., invoice number, job number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_9c1f2e_idx'),
            models.Index(fields=['action'], name='audit_logs_action_4b7d0a_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_8e2c51_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__d3a6f7_idx'),
        ]
