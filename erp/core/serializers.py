from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, CompanySettings, AuditLog


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'full_name', 'role', 'phone', 'company_name',
            'address', 'city', 'postal_code', 'avatar_url', 'is_active', 'is_staff',
            'is_superuser', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']


class ProfileSerializer(serializers.ModelSerializer):
    """Fields a user may edit on their own profile"""

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'full_name', 'role', 'phone', 'company_name',
            'address', 'city', 'postal_code', 'avatar_url', 'created_at'
        ]
        read_only_fields = ['id', 'username', 'role', 'created_at']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'full_name', 'role', 'phone', 'company_name']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class CompanySettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = CompanySettings
        fields = [
            'id', 'company_name', 'company_address', 'company_city', 'company_phone',
            'company_email', 'company_tax_id', 'company_logo_url', 'pdf_footer', 'pdf_conditions',
            'default_tva_rate', 'default_fodec_rate', 'default_timbre',
            'invoice_prefix', 'quote_prefix', 'po_prefix', 'job_prefix',
            'next_invoice_seq', 'next_quote_seq', 'next_po_seq', 'next_job_seq',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate(self, attrs):
        for field in ('default_tva_rate', 'default_fodec_rate', 'default_timbre'):
            if field in attrs and attrs[field] < 0:
                raise serializers.ValidationError({field: 'Must be zero or positive'})
        return attrs


class AuditLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'username', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']


class TagsField(serializers.ListField):
    """Free-form labels stored as a JSON list; accepts "a, b" or ["a", "b"]"""
    child = serializers.CharField(max_length=50)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = [part for part in data.split(',') if part.strip()]
        tags = super().to_internal_value(data)
        cleaned = []
        for tag in tags:
            tag = tag.strip()
            if tag and tag not in cleaned:
                cleaned.append(tag)
        return cleaned
