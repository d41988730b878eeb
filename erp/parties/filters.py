import django_filters
from django.db.models import Q
from .models import Client, Supplier


class ClientFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    type = django_filters.ChoiceFilter(choices=Client.TYPE_CHOICES)
    city = django_filters.CharFilter(field_name='city', lookup_expr='iexact')

    class Meta:
        model = Client
        fields = ['search', 'type', 'city']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(email__icontains=value) |
            Q(phone__icontains=value)
        )


class SupplierFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    company_type = django_filters.ChoiceFilter(choices=Supplier.COMPANY_TYPE_CHOICES)

    class Meta:
        model = Supplier
        fields = ['search', 'category', 'company_type']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(contact_name__icontains=value) |
            Q(email__icontains=value) |
            Q(tax_id__icontains=value)
        )
