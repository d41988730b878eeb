from django.contrib import admin
from .models import Client, Supplier


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'email', 'phone', 'city', 'created_at']
    list_filter = ['type', 'city']
    search_fields = ['name', 'email', 'phone', 'tax_id']


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'contact_name', 'category', 'company_type', 'phone', 'tax_id']
    list_filter = ['company_type', 'category']
    search_fields = ['name', 'contact_name', 'email', 'tax_id']
