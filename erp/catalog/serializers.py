from rest_framework import serializers
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    margin_percent = serializers.DecimalField(max_digits=7, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'description', 'category', 'sku', 'base_price', 'cost_price',
            'tva_rate', 'margin_percent', 'is_active', 'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate_sku(self, value):
        # Blank SKUs are stored as NULL so the unique constraint ignores them
        if value is not None and not value.strip():
            return None
        return value.strip() if value else value

    def validate(self, attrs):
        for field in ('base_price', 'cost_price', 'tva_rate'):
            if field in attrs and attrs[field] < 0:
                raise serializers.ValidationError({field: 'Must be zero or positive'})
        return attrs
