import django_filters
from django.db.models import Q
from .models import CalendarJob


class CalendarJobFilter(django_filters.FilterSet):
    """Filters for calendar jobs; the date filters match jobs overlapping the range"""
    date_from = django_filters.DateFilter(method='filter_date_from')
    date_to = django_filters.DateFilter(method='filter_date_to')
    search = django_filters.CharFilter(method='filter_search', label='Search')
    customer = django_filters.NumberFilter(field_name='customer_id', lookup_expr='exact')
    assigned_to = django_filters.NumberFilter(field_name='assigned_to_id', lookup_expr='exact')

    class Meta:
        model = CalendarJob
        fields = ['status', 'priority', 'customer', 'assigned_to', 'date_from', 'date_to', 'search']

    def filter_date_from(self, queryset, name, value):
        return queryset.filter(
            Q(end_date__date__gte=value) | Q(end_date__isnull=True, start_date__date__gte=value)
        )

    def filter_date_to(self, queryset, name, value):
        return queryset.filter(start_date__date__lte=value)

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value) | Q(location__icontains=value) | Q(description__icontains=value)
        )
