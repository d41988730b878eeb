from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'sku', 'base_price', 'cost_price', 'tva_rate', 'is_active']
    list_filter = ['category', 'is_active']
    search_fields = ['name', 'sku', 'description']
