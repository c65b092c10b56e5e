import django_filters
from .models import Expense


class ExpenseFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name='expense_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='expense_date', lookup_expr='lte')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    vehicle = django_filters.NumberFilter(field_name='vehicle_id', lookup_expr='exact')
    user = django_filters.NumberFilter(field_name='user_id', lookup_expr='exact')

    class Meta:
        model = Expense
        fields = ['category', 'vehicle', 'user', 'status', 'date_from', 'date_to']
