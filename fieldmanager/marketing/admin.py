from django.contrib import admin
from .models import WebsitePopup


@admin.register(WebsitePopup)
class WebsitePopupAdmin(admin.ModelAdmin):
    list_display = ['title', 'organization', 'position', 'priority', 'is_active', 'start_date', 'end_date',
                    'impressions', 'clicks']
    list_filter = ['is_active', 'position', 'animation_type']
    search_fields = ['title', 'message']
    readonly_fields = ['impressions', 'clicks']
