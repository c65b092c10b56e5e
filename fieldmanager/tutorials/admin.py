from django.contrib import admin
from .models import TutorialCategory, Tutorial, TutorialProgress


@admin.register(TutorialCategory)
class TutorialCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'sort_order', 'is_active']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(Tutorial)
class TutorialAdmin(admin.ModelAdmin):
    list_display = ['title', 'category', 'type', 'difficulty', 'organization', 'view_count', 'average_rating',
                    'is_published']
    list_filter = ['type', 'difficulty', 'is_published', 'category']
    search_fields = ['title', 'description']
    prepopulated_fields = {'slug': ('title',)}


@admin.register(TutorialProgress)
class TutorialProgressAdmin(admin.ModelAdmin):
    list_display = ['user', 'tutorial', 'status', 'time_spent', 'rating', 'completed_at']
    list_filter = ['status']
    search_fields = ['user__username', 'tutorial__title']
