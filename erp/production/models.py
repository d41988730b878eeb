from django.db import models
from django.utils import timezone
from erp.core.models import User
from erp.core.exceptions import BusinessRuleError, InvalidStatusTransition
from erp.parties.models import Client
from erp.sales.models import Invoice


class ProductionJob(models.Model):
    """Print job tracked on the production kanban"""
    TECHNIQUE_CHOICES = [
        ('dtf', 'DTF'),
        ('uv', 'UV'),
        ('embroidery', 'Embroidery'),
        ('laser', 'Laser'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('in_progress', 'In progress'),
        ('completed', 'Completed'),
        ('delivered', 'Delivered'),
    ]
    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('urgent', 'Urgent'),
    ]
    # Kanban cards may move back one column (e.g. reopened work)
    ALLOWED_TRANSITIONS = {
        'pending': {'in_progress'},
        'in_progress': {'pending', 'completed'},
        'completed': {'in_progress', 'delivered'},
        'delivered': set(),
    }

    job_number = models.CharField(max_length=50, unique=True)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    technique = models.CharField(max_length=20, choices=TECHNIQUE_CHOICES, default='dtf')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    quantity = models.PositiveIntegerField(default=1)
    deadline = models.DateField(null=True, blank=True)
    client = models.ForeignKey(Client, on_delete=models.SET_NULL, null=True, blank=True, related_name='production_jobs')
    invoice = models.ForeignKey(Invoice, on_delete=models.SET_NULL, null=True, blank=True, related_name='production_jobs')
    notes = models.TextField(blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='production_jobs')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.job_number} - {self.title}"

    @property
    def is_late(self):
        return (
            self.deadline is not None
            and self.status in ('pending', 'in_progress')
            and self.deadline < timezone.localdate()
        )

    def transition_to(self, target):
        if target not in dict(self.STATUS_CHOICES):
            raise BusinessRuleError(f"Unknown job status '{target}'", field='status')
        if target not in self.ALLOWED_TRANSITIONS.get(self.status, set()):
            raise InvalidStatusTransition('Production job', self.status, target)
        self.status = target
        update_fields = ['status', 'updated_at']
        if target == 'in_progress' and self.started_at is None:
            self.started_at = timezone.now()
            update_fields.append('started_at')
        if target == 'completed':
            self.completed_at = timezone.now()
            update_fields.append('completed_at')
        self.save(update_fields=update_fields)
        return self

    class Meta:
        db_table = 'production_jobs'
        ordering = ['deadline', '-created_at']
        indexes = [
            models.Index(fields=['status'], name='idx_job_status'),
            models.Index(fields=['technique'], name='idx_job_technique'),
        ]
