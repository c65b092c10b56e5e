from django.contrib import admin
from .models import CalendarJob, Project


@admin.register(CalendarJob)
class CalendarJobAdmin(admin.ModelAdmin):
    list_display = ['title', 'organization', 'start_date', 'end_date', 'status', 'priority', 'assigned_to']
    list_filter = ['status', 'priority', 'start_date']
    search_fields = ['title', 'location', 'customer__name']
    date_hierarchy = 'start_date'
    raw_id_fields = ['customer', 'lead', 'project']


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'status', 'customer', 'start_date', 'end_date', 'created_at']
    list_filter = ['status']
    search_fields = ['name', 'customer__name']
