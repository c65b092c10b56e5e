from decimal import Decimal

from rest_framework import serializers
from .models import Vehicle, MaintenanceInterval, MaintenanceRecord, GPSSettings
from .maintenance import evaluate_interval


class VehicleSerializer(serializers.ModelSerializer):
    assigned_to_name = serializers.CharField(source='assigned_to.display_name', read_only=True)

    class Meta:
        model = Vehicle
        fields = ['id', 'vehicle_number', 'license_plate', 'year', 'make', 'model', 'color', 'vin',
                  'vehicle_type', 'capacity', 'status', 'current_mileage', 'fuel_type',
                  'insurance_expiry', 'registration_expiry', 'inspection_due', 'assigned_to',
                  'assigned_to_name', 'notes', 'photo_url', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_vin(self, value):
        value = (value or '').strip().upper()
        if value and (len(value) != 17 or not value.isalnum()):
            raise serializers.ValidationError('VIN must be 17 letters or digits.')
        return value

    def validate_vehicle_number(self, value):
        value = value.strip()
        organization = self.context.get('organization')
        if organization:
            existing = Vehicle.objects.filter(organization=organization, vehicle_number__iexact=value)
            if self.instance:
                existing = existing.exclude(pk=self.instance.pk)
            if existing.exists():
                raise serializers.ValidationError('A vehicle with this number already exists.')
        return value

    def validate_assigned_to(self, value):
        organization = self.context.get('organization')
        if value and organization and value.organization_id != organization.id:
            raise serializers.ValidationError('User not found.')
        return value


class MaintenanceIntervalSerializer(serializers.ModelSerializer):
    vehicle_number = serializers.CharField(source='vehicle.vehicle_number', read_only=True)
    service_due = serializers.SerializerMethodField()

    class Meta:
        model = MaintenanceInterval
        fields = ['id', 'vehicle', 'vehicle_number', 'name', 'description', 'interval_miles',
                  'interval_months', 'start_mileage', 'last_service_date', 'last_service_mileage',
                  'is_active', 'service_due', 'created_at', 'updated_at']
        read_only_fields = ['vehicle', 'created_at', 'updated_at']

    def get_service_due(self, obj):
        return evaluate_interval(obj).as_dict()

    def validate(self, attrs):
        interval_miles = attrs.get('interval_miles', getattr(self.instance, 'interval_miles', None))
        interval_months = attrs.get('interval_months', getattr(self.instance, 'interval_months', None))
        if not interval_miles and not interval_months:
            raise serializers.ValidationError('Set a mileage interval, a month interval, or both.')
        return attrs


class MaintenanceRecordSerializer(serializers.ModelSerializer):
    interval_name = serializers.CharField(source='interval.name', read_only=True)
    performed_by_name = serializers.CharField(source='performed_by.display_name', read_only=True)

    class Meta:
        model = MaintenanceRecord
        fields = ['id', 'vehicle', 'interval', 'interval_name', 'service_date', 'mileage', 'cost',
                  'notes', 'performed_by', 'performed_by_name', 'created_at']
        read_only_fields = fields


class ServiceCompletionSerializer(serializers.Serializer):
    """Input for logging a completed service"""
    service_date = serializers.DateField(required=False)
    mileage = serializers.IntegerField(required=False, min_value=0)
    cost = serializers.DecimalField(max_digits=10, decimal_places=2, required=False,
                                    min_value=Decimal('0'), default=Decimal('0.00'))
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class GPSSettingsSerializer(serializers.ModelSerializer):
    onestep_gps_api_key = serializers.CharField(write_only=True, required=False, allow_blank=True, max_length=255)
    onestep_gps_api_key_set = serializers.SerializerMethodField()

    class Meta:
        model = GPSSettings
        fields = ['onestep_gps_api_key', 'onestep_gps_api_key_set', 'onestep_gps_enabled',
                  'location_refresh_interval', 'trip_history_days', 'show_speed', 'show_fuel_level',
                  'show_engine_temp', 'map_default_zoom', 'map_default_layer', 'enable_geofence_alerts',
                  'enable_speed_alerts', 'speed_alert_threshold', 'updated_at']
        read_only_fields = ['updated_at']

    def get_onestep_gps_api_key_set(self, obj):
        return bool(obj.onestep_gps_api_key)

    def validate(self, attrs):
        enabled = attrs.get('onestep_gps_enabled', getattr(self.instance, 'onestep_gps_enabled', False))
        api_key = attrs.get('onestep_gps_api_key', getattr(self.instance, 'onestep_gps_api_key', ''))
        if enabled and not api_key:
            raise serializers.ValidationError({'onestep_gps_api_key': 'An API key is required to enable GPS tracking.'})
        return attrs
