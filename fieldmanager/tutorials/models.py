from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class TutorialCategory(models.Model):
    """Grouping shown as a tab in the help center"""
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=120, unique=True)
    description = models.TextField(blank=True)
    icon = models.CharField(max_length=50, blank=True)
    color = models.CharField(max_length=7, blank=True)
    sort_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'tutorial_categories'
        ordering = ['sort_order', 'name']
        verbose_name_plural = 'Tutorial categories'


class Tutorial(models.Model):
    """Help center tutorial; tutorials without an organization are shown to everyone"""
    TYPE_CHOICES = [
        ('video', 'Video'),
        ('interactive', 'Interactive'),
        ('documentation', 'Documentation'),
    ]
    DIFFICULTY_CHOICES = [
        ('beginner', 'Beginner'),
        ('intermediate', 'Intermediate'),
        ('advanced', 'Advanced'),
    ]

    organization = models.ForeignKey(
        'core.Organization', on_delete=models.CASCADE, null=True, blank=True, related_name='tutorials'
    )
    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    category = models.ForeignKey(
        TutorialCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='tutorials'
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='documentation')
    difficulty = models.CharField(max_length=20, choices=DIFFICULTY_CHOICES, default='beginner')
    estimated_time = models.PositiveIntegerField(default=0, help_text="Minutes")
    video_url = models.URLField(blank=True)
    video_thumbnail = models.URLField(blank=True)
    interactive_steps = models.JSONField(default=list, blank=True)
    content = models.TextField(blank=True)
    tags = models.JSONField(default=list, blank=True)
    prerequisites = models.JSONField(default=list, blank=True, help_text="Slugs of tutorials to take first")
    view_count = models.PositiveIntegerField(default=0)
    average_rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('0.00'))
    total_ratings = models.PositiveIntegerField(default=0)
    is_published = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_tutorials'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'tutorials'
        ordering = ['category__sort_order', 'title']


class TutorialProgress(models.Model):
    """A user's progress through one tutorial"""
    STATUS_CHOICES = [
        ('not_started', 'Not Started'),
        ('in_progress', 'In Progress'),
        ('completed', 'Completed'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='tutorial_progress')
    tutorial = models.ForeignKey(Tutorial, on_delete=models.CASCADE, related_name='progress')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='not_started')
    current_step = models.PositiveIntegerField(default=0)
    completed_steps = models.JSONField(default=list, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    time_spent = models.PositiveIntegerField(default=0, help_text="Seconds")
    rating = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    feedback = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} - {self.tutorial} ({self.status})"

    class Meta:
        db_table = 'tutorial_progress'
        ordering = ['-updated_at']
        verbose_name_plural = 'Tutorial progress'
        constraints = [
            models.UniqueConstraint(fields=['user', 'tutorial'], name='uniq_tutorial_progress_per_user'),
        ]
