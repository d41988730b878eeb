import django_filters
from django.db.models import Q
from django.utils import timezone
from erp.core.filters import TaggedFilterMixin, DateRangeFilterMixin
from .models import Invoice, Quote


class InvoiceFilter(TaggedFilterMixin, DateRangeFilterMixin):
    date_field = 'issue_date'

    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=Invoice.STATUS_CHOICES)
    client = django_filters.NumberFilter(field_name='client_id', lookup_expr='exact')
    overdue = django_filters.CharFilter(method='filter_overdue', label='Overdue')

    class Meta:
        model = Invoice
        fields = ['search', 'status', 'client', 'tag', 'date_from', 'date_to', 'overdue']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(number__icontains=value) |
            Q(client__name__icontains=value) |
            Q(notes__icontains=value)
        )

    def filter_overdue(self, queryset, name, value):
        if (value or '').lower() not in ('true', '1', 'yes'):
            return queryset
        return queryset.filter(status='validated', due_date__lt=timezone.localdate())


class QuoteFilter(DateRangeFilterMixin):
    date_field = 'issue_date'

    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=Quote.STATUS_CHOICES)
    client = django_filters.NumberFilter(field_name='client_id', lookup_expr='exact')

    class Meta:
        model = Quote
        fields = ['search', 'status', 'client', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(number__icontains=value) | Q(client__name__icontains=value))
