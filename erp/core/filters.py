import json

import django_filters
from django.db.models import Q

from .models import AuditLog


class TaggedFilterMixin(django_filters.FilterSet):
    """Adds a ``tag`` filter for models storing tags as a JSON list of strings"""
    tag = django_filters.CharFilter(method='filter_tag', label='Tag')

    def filter_tag(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        # Match the quoted element so "print" does not match "reprint".
        # SQLite keeps the \uXXXX escaped text, PostgreSQL jsonb renders raw UTF-8.
        escaped = json.dumps(value)
        raw = json.dumps(value, ensure_ascii=False)
        return queryset.filter(Q(tags__icontains=escaped) | Q(tags__icontains=raw))


class DateRangeFilterMixin(django_filters.FilterSet):
    """``date_from``/``date_to`` bounds on the field named by ``date_field``"""
    date_field = None

    date_from = django_filters.DateFilter(method='filter_date_from', label='From date')
    date_to = django_filters.DateFilter(method='filter_date_to', label='To date')

    def filter_date_from(self, queryset, name, value):
        return queryset.filter(**{f'{self.date_field}__gte': value})

    def filter_date_to(self, queryset, name, value):
        return queryset.filter(**{f'{self.date_field}__lte': value})


class AuditLogFilter(django_filters.FilterSet):
    action = django_filters.CharFilter(field_name='action')
    model_name = django_filters.CharFilter(field_name='model_name', lookup_expr='iexact')
    reference = django_filters.CharFilter(field_name='object_reference', lookup_expr='icontains')
    user = django_filters.NumberFilter(field_name='user_id')

    class Meta:
        model = AuditLog
        fields = ['action', 'model_name', 'reference', 'user']
