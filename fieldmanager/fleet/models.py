from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


class Vehicle(models.Model):
    """Company vehicle"""
    TYPE_CHOICES = [
        ('car', 'Car'),
        ('truck', 'Truck'),
        ('van', 'Van'),
        ('suv', 'SUV'),
        ('trailer', 'Trailer'),
        ('other', 'Other'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('maintenance', 'In Maintenance'),
        ('out_of_service', 'Out of Service'),
        ('retired', 'Retired'),
    ]
    FUEL_CHOICES = [
        ('gasoline', 'Gasoline'),
        ('diesel', 'Diesel'),
        ('electric', 'Electric'),
        ('hybrid', 'Hybrid'),
        ('other', 'Other'),
    ]

    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='vehicles')
    vehicle_number = models.CharField(max_length=50, help_text="Fleet number shown on the vehicle")
    license_plate = models.CharField(max_length=20, blank=True)
    year = models.PositiveIntegerField(null=True, blank=True, validators=[MinValueValidator(1900), MaxValueValidator(2100)])
    make = models.CharField(max_length=100, blank=True)
    model = models.CharField(max_length=100, blank=True)
    color = models.CharField(max_length=50, blank=True)
    vin = models.CharField(max_length=17, blank=True)
    vehicle_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='truck')
    capacity = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    current_mileage = models.PositiveIntegerField(default=0)
    fuel_type = models.CharField(max_length=20, choices=FUEL_CHOICES, default='gasoline')
    insurance_expiry = models.DateField(null=True, blank=True)
    registration_expiry = models.DateField(null=True, blank=True)
    inspection_due = models.DateField(null=True, blank=True)
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_vehicles'
    )
    notes = models.TextField(blank=True)
    photo_url = models.URLField(max_length=500, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.vehicle_number} ({self.year or ''} {self.make} {self.model})".replace('  ', ' ')

    class Meta:
        db_table = 'vehicles'
        ordering = ['vehicle_number']
        constraints = [
            models.UniqueConstraint(fields=['organization', 'vehicle_number'], name='uniq_vehicle_number_per_org'),
        ]


class MaintenanceInterval(models.Model):
    """Recurring service rule for a vehicle, due by mileage and/or time"""
    vehicle = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name='maintenance_intervals')
    name = models.CharField(max_length=150, help_text="e.g. Oil change, Tire rotation")
    description = models.TextField(blank=True)
    interval_miles = models.PositiveIntegerField(null=True, blank=True)
    interval_months = models.DecimalField(
        max_digits=5, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    start_mileage = models.PositiveIntegerField(default=0, help_text="Mileage the rule starts counting from when there is no service history")
    last_service_date = models.DateField(null=True, blank=True)
    last_service_mileage = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} - {self.vehicle.vehicle_number}"

    class Meta:
        db_table = 'maintenance_intervals'
        ordering = ['name']


class MaintenanceRecord(models.Model):
    """A completed service"""
    vehicle = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name='maintenance_records')
    interval = models.ForeignKey(
        MaintenanceInterval, on_delete=models.SET_NULL, null=True, blank=True, related_name='records'
    )
    service_date = models.DateField()
    mileage = models.PositiveIntegerField(null=True, blank=True)
    cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='maintenance_records'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'maintenance_records'
        ordering = ['-service_date', '-created_at']


class GPSSettings(models.Model):
    """Per-organization GPS tracking preferences"""
    LAYER_CHOICES = [
        ('dark', 'Dark'),
        ('light', 'Light'),
        ('satellite', 'Satellite'),
        ('streets', 'Streets'),
    ]

    organization = models.OneToOneField('core.Organization', on_delete=models.CASCADE, related_name='gps_settings')
    onestep_gps_api_key = models.CharField(max_length=255, blank=True)
    onestep_gps_enabled = models.BooleanField(default=False)
    location_refresh_interval = models.PositiveIntegerField(
        default=5, validators=[MinValueValidator(1), MaxValueValidator(60)], help_text="Minutes"
    )
    trip_history_days = models.PositiveIntegerField(default=30, validators=[MinValueValidator(1), MaxValueValidator(365)])
    show_speed = models.BooleanField(default=True)
    show_fuel_level = models.BooleanField(default=True)
    show_engine_temp = models.BooleanField(default=True)
    map_default_zoom = models.PositiveIntegerField(default=13, validators=[MinValueValidator(1), MaxValueValidator(20)])
    map_default_layer = models.CharField(max_length=20, choices=LAYER_CHOICES, default='dark')
    enable_geofence_alerts = models.BooleanField(default=True)
    enable_speed_alerts = models.BooleanField(default=True)
    speed_alert_threshold = models.PositiveIntegerField(default=80, validators=[MinValueValidator(1)], help_text="mph")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'gps_settings'
