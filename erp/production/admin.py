from django.contrib import admin
from .models import ProductionJob


@admin.register(ProductionJob)
class ProductionJobAdmin(admin.ModelAdmin):
    list_display = ['job_number', 'title', 'technique', 'status', 'priority', 'quantity', 'deadline', 'client']
    list_filter = ['status', 'technique', 'priority']
    search_fields = ['job_number', 'title', 'client__name']
    readonly_fields = ['job_number', 'started_at', 'completed_at', 'created_at', 'updated_at']
