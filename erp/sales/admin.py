from django.contrib import admin
from .models import Invoice, InvoiceItem, Payment, Quote, QuoteItem


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ['total']


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['number', 'client', 'status', 'issue_date', 'due_date', 'total', 'paid_at']
    list_filter = ['status', 'issue_date']
    search_fields = ['number', 'client__name']
    readonly_fields = ['subtotal', 'discount_amount', 'tva_amount', 'fodec_amount', 'total',
                       'public_token', 'paid_at', 'created_at', 'updated_at']
    inlines = [InvoiceItemInline, PaymentInline]
    date_hierarchy = 'issue_date'


class QuoteItemInline(admin.TabularInline):
    model = QuoteItem
    extra = 0
    readonly_fields = ['total']


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = ['number', 'client', 'status', 'issue_date', 'valid_until', 'total', 'converted_invoice']
    list_filter = ['status']
    search_fields = ['number', 'client__name']
    readonly_fields = ['subtotal', 'discount_amount', 'tva_amount', 'total', 'created_at', 'updated_at']
    inlines = [QuoteItemInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['invoice', 'amount', 'method', 'payment_date', 'reference']
    list_filter = ['method', 'payment_date']
    search_fields = ['invoice__number', 'reference']
