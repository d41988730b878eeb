import django_filters
from django.db.models import Q
from erp.core.filters import TaggedFilterMixin, DateRangeFilterMixin
from .models import PurchaseOrder


class PurchaseOrderFilter(TaggedFilterMixin, DateRangeFilterMixin):
    date_field = 'order_date'

    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=PurchaseOrder.STATUS_CHOICES)
    supplier = django_filters.NumberFilter(field_name='supplier_id', lookup_expr='exact')

    class Meta:
        model = PurchaseOrder
        fields = ['search', 'status', 'supplier', 'tag', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(number__icontains=value) |
            Q(supplier__name__icontains=value) |
            Q(notes__icontains=value)
        )
