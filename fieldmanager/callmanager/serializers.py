from rest_framework import serializers
from fieldmanager.core.models import Organization
from .models import PhoneNumber
from .utils import normalize_phone_number, us_area_code


class PhoneNumberSerializer(serializers.ModelSerializer):
    organization_name = serializers.CharField(source='organization.name', read_only=True)
    assigned_to_name = serializers.CharField(source='assigned_to.display_name', read_only=True)

    class Meta:
        model = PhoneNumber
        fields = ['id', 'organization', 'organization_name', 'phone_number', 'friendly_name', 'area_code', 'country',
                  'number_type', 'provider', 'is_active', 'is_call_enabled', 'is_sms_enabled', 'assigned_to',
                  'assigned_to_name', 'department', 'purpose', 'monthly_cost', 'usage_cost', 'provisioned_at',
                  'released_at', 'updated_at']
        read_only_fields = ['organization', 'phone_number', 'area_code', 'country', 'provider', 'is_active',
                            'provisioned_at', 'released_at', 'updated_at']

    def validate_assigned_to(self, value):
        if value and self.instance and value.organization_id != self.instance.organization_id:
            raise serializers.ValidationError('User does not belong to the phone number\'s organization.')
        return value

    def validate(self, attrs):
        if self.instance and not self.instance.is_active:
            raise serializers.ValidationError('Released phone numbers cannot be changed.')
        return attrs


class ProvisionPhoneSerializer(serializers.Serializer):
    organization_id = serializers.IntegerField()
    phone_number = serializers.CharField(max_length=30)
    friendly_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    area_code = serializers.CharField(max_length=5, required=False, allow_blank=True, default='')
    country = serializers.CharField(max_length=2, required=False, default='US')
    number_type = serializers.ChoiceField(choices=PhoneNumber.NUMBER_TYPE_CHOICES, required=False, default='local')
    provider = serializers.CharField(max_length=50, required=False, default='twilio')
    department = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    purpose = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    monthly_cost = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, min_value=0)
    force = serializers.BooleanField(required=False, default=False)

    def validate_country(self, value):
        return value.upper()

    def validate(self, attrs):
        normalized = normalize_phone_number(attrs['phone_number'], attrs.get('country', 'US'))
        if normalized is None:
            raise serializers.ValidationError({'phone_number': 'Enter a phone number with 10 to 15 digits.'})
        attrs['phone_number'] = normalized
        if not attrs.get('area_code'):
            attrs['area_code'] = us_area_code(normalized)
        return attrs


class CallManagerOrganizationSerializer(serializers.ModelSerializer):
    active_phone_numbers = serializers.IntegerField(read_only=True)
    user_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Organization
        fields = ['id', 'name', 'slug', 'email', 'phone', 'plan_name', 'has_call_manager', 'is_demo', 'is_active',
                  'active_phone_numbers', 'user_count', 'created_at']
