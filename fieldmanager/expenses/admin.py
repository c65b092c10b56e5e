from django.contrib import admin
from .models import ExpenseCategory, Expense


@admin.register(ExpenseCategory)
class ExpenseCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'color', 'is_active', 'is_default']
    list_filter = ['is_active', 'is_default']
    search_fields = ['name', 'organization__name']


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ['expense_date', 'organization', 'category', 'amount', 'vendor', 'user', 'status']
    list_filter = ['status', 'expense_date', 'category']
    search_fields = ['vendor', 'description']
    readonly_fields = ['reviewed_by', 'reviewed_at', 'created_at', 'updated_at']
