import django_filters
from django.db.models import Q
from .models import ProductionJob


class ProductionJobFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    technique = django_filters.ChoiceFilter(choices=ProductionJob.TECHNIQUE_CHOICES)
    status = django_filters.ChoiceFilter(choices=ProductionJob.STATUS_CHOICES)
    priority = django_filters.ChoiceFilter(choices=ProductionJob.PRIORITY_CHOICES)
    client = django_filters.NumberFilter(field_name='client_id', lookup_expr='exact')

    class Meta:
        model = ProductionJob
        fields = ['search', 'technique', 'status', 'priority', 'client']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(job_number__icontains=value) |
            Q(title__icontains=value) |
            Q(client__name__icontains=value)
        )
