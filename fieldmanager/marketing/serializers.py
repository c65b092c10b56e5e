from rest_framework import serializers
from .models import WebsitePopup


class DisplayPagesField(serializers.Field):
    """List of page paths; also accepts a comma separated string"""

    def to_representation(self, value):
        return value or []

    def to_internal_value(self, data):
        if isinstance(data, str):
            pages = data.split(',')
        elif isinstance(data, (list, tuple)):
            pages = data
        else:
            raise serializers.ValidationError('Display pages must be a list or a comma separated string.')
        return [str(page).strip() for page in pages if str(page).strip()]


class WebsitePopupSerializer(serializers.ModelSerializer):
    display_pages = DisplayPagesField(required=False)
    click_through_rate = serializers.FloatField(read_only=True)

    class Meta:
        model = WebsitePopup
        fields = ['id', 'title', 'message', 'cta_text', 'cta_url', 'display_pages', 'display_rules',
                  'background_color', 'text_color', 'border_color', 'position', 'animation_type', 'is_active',
                  'priority', 'start_date', 'end_date', 'impressions', 'clicks', 'click_through_rate',
                  'created_by', 'created_at', 'updated_at']
        read_only_fields = ['impressions', 'clicks', 'created_by', 'created_at', 'updated_at']

    def validate_display_rules(self, value):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise serializers.ValidationError('Display rules must be an object.')
        return value

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date must be after the start date.'})
        return attrs


class PublicPopupSerializer(serializers.ModelSerializer):
    """Fields the public website needs to render a popup"""

    class Meta:
        model = WebsitePopup
        fields = ['id', 'title', 'message', 'cta_text', 'cta_url', 'display_rules', 'background_color',
                  'text_color', 'border_color', 'position', 'animation_type', 'priority']
