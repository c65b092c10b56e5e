from django.contrib import admin
from .models import PhoneNumber


@admin.register(PhoneNumber)
class PhoneNumberAdmin(admin.ModelAdmin):
    list_display = ['phone_number', 'friendly_name', 'organization', 'number_type', 'is_active', 'assigned_to',
                    'monthly_cost', 'provisioned_at', 'released_at']
    list_filter = ['is_active', 'number_type', 'provider', 'country']
    search_fields = ['phone_number', 'friendly_name', 'organization__name']
