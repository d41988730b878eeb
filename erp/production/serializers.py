from rest_framework import serializers
from erp.core.numbering import next_document_number
from .models import ProductionJob


class ProductionJobSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source='client.name', read_only=True, default=None)
    invoice_number = serializers.CharField(source='invoice.number', read_only=True, default=None)
    is_late = serializers.BooleanField(read_only=True)

    class Meta:
        model = ProductionJob
        fields = [
            'id', 'job_number', 'title', 'description', 'technique', 'status', 'priority',
            'quantity', 'deadline', 'is_late', 'client', 'client_name', 'invoice', 'invoice_number',
            'notes', 'started_at', 'completed_at', 'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['job_number', 'status', 'started_at', 'completed_at',
                            'created_by', 'created_at', 'updated_at']

    def validate_quantity(self, value):
        if value < 1:
            raise serializers.ValidationError('Quantity must be at least 1')
        return value

    def validate(self, attrs):
        client = attrs.get('client', getattr(self.instance, 'client', None))
        invoice = attrs.get('invoice', getattr(self.instance, 'invoice', None))
        if invoice is not None:
            if client is None:
                attrs['client'] = invoice.client
            elif invoice.client_id != client.id:
                raise serializers.ValidationError({'invoice': 'Invoice belongs to another client'})
        return attrs

    def create(self, validated_data):
        validated_data['job_number'] = next_document_number(
            'job', exists=lambda number: ProductionJob.objects.filter(job_number=number).exists()
        )
        return super().create(validated_data)
