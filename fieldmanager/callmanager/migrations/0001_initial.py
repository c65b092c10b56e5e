# Generated manually for the initial call manager schema

from decimal import Decimal

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
            name='PhoneNumber',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('phone_number', models.CharField(max_length=20, unique=True)),
                ('friendly_name', models.CharField(blank=True, max_length=100)),
                ('area_code', models.CharField(blank=True, max_length=5)),
                ('country', models.CharField(default='US', max_length=2)),
                ('number_type', models.CharField(choices=[('local', 'Local'), ('toll-free', 'Toll Free'), ('mobile', 'Mobile')], default='local', max_length=10)),
                ('provider', models.CharField(default='twilio', max_length=50)),
                ('is_active', models.BooleanField(default=True)),
                ('is_call_enabled', models.BooleanField(default=True)),
                ('is_sms_enabled', models.BooleanField(default=True)),
                ('department', models.CharField(blank=True, max_length=100)),
                ('purpose', models.CharField(blank=True, max_length=255)),
                ('monthly_cost', models.DecimalField(decimal_places=2, default=Decimal('1.00'), max_digits=8)),
                ('usage_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('provisioned_at', models.DateTimeField(auto_now_add=True)),
                ('released_at', models.DateTimeField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_to', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='phone_numbers', to=settings.AUTH_USER_MODEL)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='phone_numbers', to='core.organization')),
                ('provisioned_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='provisioned_phone_numbers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'phone_numbers',
                'ordering': ['-provisioned_at'],
            },
        ),
    ]
