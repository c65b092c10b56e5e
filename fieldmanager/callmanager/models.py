from decimal import Decimal

from django.conf import settings
from django.db import models


class PhoneNumber(models.Model):
    """Telephony number provisioned to an organization by the SaaS admin"""
    NUMBER_TYPE_CHOICES = [
        ('local', 'Local'),
        ('toll-free', 'Toll Free'),
        ('mobile', 'Mobile'),
    ]

    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='phone_numbers')
    phone_number = models.CharField(max_length=20, unique=True)
    friendly_name = models.CharField(max_length=100, blank=True)
    area_code = models.CharField(max_length=5, blank=True)
    country = models.CharField(max_length=2, default='US')
    number_type = models.CharField(max_length=10, choices=NUMBER_TYPE_CHOICES, default='local')
    provider = models.CharField(max_length=50, default='twilio')
    is_active = models.BooleanField(default=True)
    is_call_enabled = models.BooleanField(default=True)
    is_sms_enabled = models.BooleanField(default=True)
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='phone_numbers'
    )
    department = models.CharField(max_length=100, blank=True)
    purpose = models.CharField(max_length=255, blank=True)
    monthly_cost = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('1.00'))
    usage_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    provisioned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='provisioned_phone_numbers'
    )
    provisioned_at = models.DateTimeField(auto_now_add=True)
    released_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.friendly_name or self.phone_number

    class Meta:
        db_table = 'phone_numbers'
        ordering = ['-provisioned_at']
