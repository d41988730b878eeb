from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, CompanySettings, AuditLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'full_name', 'email', 'role', 'is_active', 'is_staff', 'created_at']
    list_filter = ['role', 'is_active', 'is_staff']
    search_fields = ['username', 'full_name', 'email', 'phone']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Profile', {'fields': ('full_name', 'role', 'phone', 'company_name', 'address', 'city', 'postal_code', 'avatar_url')}),
    )


@admin.register(CompanySettings)
class CompanySettingsAdmin(admin.ModelAdmin):
    list_display = ['company_name', 'company_tax_id', 'invoice_prefix', 'next_invoice_seq', 'updated_at']

    def has_add_permission(self, request):
        return not CompanySettings.objects.exists()


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'user', 'action', 'model_name', 'object_name', 'object_reference', 'ip_address']
    list_filter = ['action', 'model_name', 'created_at']
    search_fields = ['object_name', 'object_reference', 'user__username']
    readonly_fields = ['created_at']
    ordering = ['-created_at']
    date_hierarchy = 'created_at'
