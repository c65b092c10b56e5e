from django.contrib import admin
from .models import Customer, Lead, Invoice


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'email', 'phone', 'city', 'created_at']
    list_filter = ['organization', 'state']
    search_fields = ['name', 'email', 'phone']


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'source', 'status', 'value', 'created_at']
    list_filter = ['status', 'source']
    search_fields = ['name', 'email']


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'organization', 'customer', 'status', 'total', 'invoice_date', 'paid_at']
    list_filter = ['status', 'invoice_date']
    search_fields = ['invoice_number', 'customer__name']
    readonly_fields = ['tax_amount', 'created_at', 'updated_at']
