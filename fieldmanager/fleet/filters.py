import django_filters
from django.db.models import Q
from .models import Vehicle


class VehicleFilter(django_filters.FilterSet):
    """Filters for the vehicle list"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    active = django_filters.CharFilter(method='filter_active', label='Active')

    class Meta:
        model = Vehicle
        fields = ['search', 'status', 'vehicle_type', 'assigned_to', 'active']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(vehicle_number__icontains=value) | Q(license_plate__icontains=value) |
            Q(make__icontains=value) | Q(model__icontains=value) | Q(vin__icontains=value)
        )

    def filter_active(self, queryset, name, value):
        if value is None or value == '':
            return queryset
        return queryset.filter(is_active=value.lower() in ('true', '1', 'yes'))
