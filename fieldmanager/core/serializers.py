import re

from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import Organization, User, Setting, AuditLog, RealtimeEvent


class OrganizationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Organization
        fields = ['id', 'name', 'slug', 'email', 'phone', 'address', 'city', 'state', 'zip_code',
                  'plan_name', 'has_call_manager', 'is_demo', 'trial_ends_at', 'is_active',
                  'created_at', 'updated_at']
        read_only_fields = ['slug', 'created_at', 'updated_at']


class OrganizationSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Organization
        fields = ['id', 'name', 'slug', 'plan_name', 'has_call_manager', 'is_demo', 'trial_ends_at']


class UserSerializer(serializers.ModelSerializer):
    organization = OrganizationSummarySerializer(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'role', 'organization',
                  'is_active', 'is_staff', 'is_superuser', 'created_at', 'updated_at']
        read_only_fields = ['organization', 'is_staff', 'is_superuser', 'created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name', 'phone', 'role']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User.objects.create(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class RegisterSerializer(UserCreateSerializer):
    """Creates an organization together with its first admin user"""
    organization_name = serializers.CharField(max_length=255, write_only=True)

    class Meta(UserCreateSerializer.Meta):
        fields = UserCreateSerializer.Meta.fields + ['organization_name']

    def create(self, validated_data):
        organization = Organization.objects.create(
            name=validated_data.pop('organization_name'),
            email=validated_data.get('email', ''),
            phone=validated_data.get('phone') or '',
        )
        validated_data['organization'] = organization
        validated_data['role'] = 'admin'
        return super().create(validated_data)


class DemoSignupSerializer(serializers.Serializer):
    """Demo signup form: company details plus the first admin account"""
    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    organization_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(min_length=2, max_length=2)
    zip_code = serializers.CharField(min_length=5, max_length=10)

    def validate_username(self, value):
        if User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError('A user with that username already exists.')
        return value

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('A user with that email already exists.')
        return value.lower()

    def validate_state(self, value):
        if not value.isalpha():
            raise serializers.ValidationError('State must be a 2 letter code.')
        return value.upper()

    def validate_zip_code(self, value):
        if not re.match(r'^\d{5}(-\d{4})?$', value):
            raise serializers.ValidationError('ZIP code must be at least 5 digits.')
        return value

    def validate_password(self, value):
        validate_password(value)
        return value


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']


class RealtimeEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = RealtimeEvent
        fields = ['id', 'event_type', 'data', 'created_at']
