import django_filters
from django.db.models import Q
from erp.core.filters import TaggedFilterMixin, DateRangeFilterMixin
from .models import Expense


class ExpenseFilter(TaggedFilterMixin, DateRangeFilterMixin):
    date_field = 'expense_date'

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.ChoiceFilter(choices=Expense.CATEGORY_CHOICES)

    class Meta:
        model = Expense
        fields = ['search', 'category', 'tag', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(description__icontains=value) | Q(notes__icontains=value))
