from rest_framework import serializers
from erp.core.serializers import TagsField
from .models import Expense


class ExpenseSerializer(serializers.ModelSerializer):
    tags = TagsField(required=False)

    class Meta:
        model = Expense
        fields = [
            'id', 'category', 'description', 'amount', 'expense_date', 'tags',
            'receipt_url', 'notes', 'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be greater than 0')
        return value
