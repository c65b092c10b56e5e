from django.contrib import admin
from .models import Vehicle, MaintenanceInterval, MaintenanceRecord, GPSSettings


class MaintenanceIntervalInline(admin.TabularInline):
    model = MaintenanceInterval
    extra = 0
    fields = ['name', 'interval_miles', 'interval_months', 'last_service_date', 'last_service_mileage', 'is_active']


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ['vehicle_number', 'organization', 'make', 'model', 'year', 'status', 'current_mileage', 'is_active']
    list_filter = ['status', 'vehicle_type', 'fuel_type', 'is_active']
    search_fields = ['vehicle_number', 'license_plate', 'vin', 'make', 'model']
    ordering = ['vehicle_number']
    inlines = [MaintenanceIntervalInline]


@admin.register(MaintenanceInterval)
class MaintenanceIntervalAdmin(admin.ModelAdmin):
    list_display = ['name', 'vehicle', 'interval_miles', 'interval_months', 'last_service_date', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'vehicle__vehicle_number']


@admin.register(MaintenanceRecord)
class MaintenanceRecordAdmin(admin.ModelAdmin):
    list_display = ['vehicle', 'interval', 'service_date', 'mileage', 'cost', 'performed_by']
    list_filter = ['service_date']
    search_fields = ['vehicle__vehicle_number', 'interval__name']


@admin.register(GPSSettings)
class GPSSettingsAdmin(admin.ModelAdmin):
    list_display = ['organization', 'onestep_gps_enabled', 'location_refresh_interval', 'map_default_layer', 'updated_at']
    exclude = ['onestep_gps_api_key']
