from django.contrib import admin
from .models import Part, TechnicianInventory, TechnicianInventoryTransaction, DailyInventoryVerification


@admin.register(Part)
class PartAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'organization', 'category', 'current_stock', 'unit', 'unit_cost', 'is_active']
    list_filter = ['is_active', 'category']
    search_fields = ['name', 'sku']


class TransactionInline(admin.TabularInline):
    model = TechnicianInventoryTransaction
    fk_name = 'inventory'
    extra = 0
    can_delete = False
    readonly_fields = ['transaction_type', 'quantity', 'previous_quantity', 'new_quantity', 'notes', 'performed_by',
                       'created_at']
    fields = readonly_fields


@admin.register(TechnicianInventory)
class TechnicianInventoryAdmin(admin.ModelAdmin):
    list_display = ['user', 'part', 'current_quantity', 'assigned_quantity', 'min_quantity', 'is_low_stock', 'is_active']
    list_filter = ['is_low_stock', 'is_active']
    search_fields = ['user__username', 'part__name', 'part__sku']
    inlines = [TransactionInline]


@admin.register(DailyInventoryVerification)
class DailyInventoryVerificationAdmin(admin.ModelAdmin):
    list_display = ['user', 'verification_date', 'status', 'items_checked', 'total_items', 'discrepancy_count',
                    'is_complete']
    list_filter = ['status', 'verification_date']
    search_fields = ['user__username']
