from django.conf import settings
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from django.utils import timezone

hex_color_validator = RegexValidator(r'^#[0-9A-Fa-f]{6}$', 'Enter a hex color like #ffffff.')


class WebsitePopup(models.Model):
    """Popup shown on the organization's public website"""
    POSITION_CHOICES = [
        ('center', 'Center'),
        ('top', 'Top'),
        ('bottom', 'Bottom'),
        ('bottom-right', 'Bottom Right'),
        ('bottom-left', 'Bottom Left'),
    ]
    ANIMATION_CHOICES = [
        ('fade', 'Fade'),
        ('slide', 'Slide'),
        ('zoom', 'Zoom'),
        ('none', 'None'),
    ]

    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='website_popups')
    title = models.CharField(max_length=255)
    message = models.TextField()
    cta_text = models.CharField(max_length=100, blank=True)
    cta_url = models.CharField(max_length=500, blank=True)
    display_pages = models.JSONField(default=list, blank=True, help_text="Paths the popup shows on; empty means all")
    display_rules = models.JSONField(default=dict, blank=True)
    background_color = models.CharField(max_length=7, default='#ffffff', validators=[hex_color_validator])
    text_color = models.CharField(max_length=7, default='#000000', validators=[hex_color_validator])
    border_color = models.CharField(max_length=7, blank=True, validators=[hex_color_validator])
    position = models.CharField(max_length=20, choices=POSITION_CHOICES, default='center')
    animation_type = models.CharField(max_length=10, choices=ANIMATION_CHOICES, default='fade')
    is_active = models.BooleanField(default=True)
    priority = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)
    impressions = models.PositiveIntegerField(default=0)
    clicks = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_popups'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    @property
    def click_through_rate(self):
        if not self.impressions:
            return 0
        return round(self.clicks / self.impressions * 100, 2)

    def is_live(self, now=None):
        now = now or timezone.now()
        if not self.is_active:
            return False
        if self.start_date and self.start_date > now:
            return False
        if self.end_date and self.end_date < now:
            return False
        return True

    def shows_on(self, page):
        if not self.display_pages:
            return True
        return page in self.display_pages

    class Meta:
        db_table = 'website_popups'
        ordering = ['-priority', '-created_at']
