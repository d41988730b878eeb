from django.contrib import admin
from .models import PurchaseOrder, PurchaseOrderItem


class PurchaseOrderItemInline(admin.TabularInline):
    model = PurchaseOrderItem
    extra = 0
    readonly_fields = ['total']


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ['number', 'supplier', 'status', 'order_date', 'total', 'retenue_source', 'net_to_pay']
    list_filter = ['status', 'order_date']
    search_fields = ['number', 'supplier__name']
    readonly_fields = ['subtotal', 'tva_amount', 'total', 'retenue_source', 'net_to_pay', 'created_at', 'updated_at']
    inlines = [PurchaseOrderItemInline]
