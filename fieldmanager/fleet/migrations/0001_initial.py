# Generated manually for the initial fleet schema

from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Vehicle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vehicle_number', models.CharField(help_text='Fleet number shown on the vehicle', max_length=50)),
                ('license_plate', models.CharField(blank=True, max_length=20)),
                ('year', models.PositiveIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1900), django.core.validators.MaxValueValidator(2100)])),
                ('make', models.CharField(blank=True, max_length=100)),
                ('model', models.CharField(blank=True, max_length=100)),
                ('color', models.CharField(blank=True, max_length=50)),
                ('vin', models.CharField(blank=True, max_length=17)),
                ('vehicle_type', models.CharField(choices=[('car', 'Car'), ('truck', 'Truck'), ('van', 'Van'), ('suv', 'SUV'), ('trailer', 'Trailer'), ('other', 'Other')], default='truck', max_length=20)),
                ('capacity', models.CharField(blank=True, max_length=100)),
                ('status', models.CharField(choices=[('active', 'Active'), ('maintenance', 'In Maintenance'), ('out_of_service', 'Out of Service'), ('retired', 'Retired')], default='active', max_length=20)),
                ('current_mileage', models.PositiveIntegerField(default=0)),
                ('fuel_type', models.CharField(choices=[('gasoline', 'Gasoline'), ('diesel', 'Diesel'), ('electric', 'Electric'), ('hybrid', 'Hybrid'), ('other', 'Other')], default='gasoline', max_length=20)),
                ('insurance_expiry', models.DateField(blank=True, null=True)),
                ('registration_expiry', models.DateField(blank=True, null=True)),
                ('inspection_due', models.DateField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('photo_url', models.URLField(blank=True, max_length=500)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_to', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_vehicles', to=settings.AUTH_USER_MODEL)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='vehicles', to='core.organization')),
            ],
            options={
                'db_table': 'vehicles',
                'ordering': ['vehicle_number'],
            },
        ),
        migrations.AddConstraint(
            model_name='vehicle',
            constraint=models.UniqueConstraint(fields=('organization', 'vehicle_number'), name='uniq_vehicle_number_per_org'),
        ),
        migrations.CreateModel(
            name='MaintenanceInterval',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='e.g. Oil change, Tire rotation', max_length=150)),
                ('description', models.TextField(blank=True)),
                ('interval_miles', models.PositiveIntegerField(blank=True, null=True)),
                ('interval_months', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('start_mileage', models.PositiveIntegerField(default=0, help_text='Mileage the rule starts counting from when there is no service history')),
                ('last_service_date', models.DateField(blank=True, null=True)),
                ('last_service_mileage', models.PositiveIntegerField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('vehicle', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='maintenance_intervals', to='fleet.vehicle')),
            ],
            options={
                'db_table': 'maintenance_intervals',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='MaintenanceRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('service_date', models.DateField()),
                ('mileage', models.PositiveIntegerField(blank=True, null=True)),
                ('cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('interval', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='records', to='fleet.maintenanceinterval')),
                ('performed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='maintenance_records', to=settings.AUTH_USER_MODEL)),
                ('vehicle', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='maintenance_records', to='fleet.vehicle')),
            ],
            options={
                'db_table': 'maintenance_records',
                'ordering': ['-service_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='GPSSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('onestep_gps_api_key', models.CharField(blank=True, max_length=255)),
                ('onestep_gps_enabled', models.BooleanField(default=False)),
                ('location_refresh_interval', models.PositiveIntegerField(default=5, help_text='Minutes', validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(60)])),
                ('trip_history_days', models.PositiveIntegerField(default=30, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(365)])),
                ('show_speed', models.BooleanField(default=True)),
                ('show_fuel_level', models.BooleanField(default=True)),
                ('show_engine_temp', models.BooleanField(default=True)),
                ('map_default_zoom', models.PositiveIntegerField(default=13, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(20)])),
                ('map_default_layer', models.CharField(choices=[('dark', 'Dark'), ('light', 'Light'), ('satellite', 'Satellite'), ('streets', 'Streets')], default='dark', max_length=20)),
                ('enable_geofence_alerts', models.BooleanField(default=True)),
                ('enable_speed_alerts', models.BooleanField(default=True)),
                ('speed_alert_threshold', models.PositiveIntegerField(default=80, help_text='mph', validators=[django.core.validators.MinValueValidator(1)])),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('organization', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='gps_settings', to='core.organization')),
            ],
            options={
                'db_table': 'gps_settings',
            },
        ),
    ]
