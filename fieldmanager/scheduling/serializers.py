from rest_framework import serializers
from .models import CalendarJob, Project
from .utils import google_maps_directions_url


class CalendarJobSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    lead_name = serializers.CharField(source='lead.name', read_only=True)
    assigned_to_name = serializers.CharField(source='assigned_to.display_name', read_only=True)
    directions_url = serializers.SerializerMethodField()

    class Meta:
        model = CalendarJob
        fields = ['id', 'title', 'description', 'location', 'directions_url', 'start_date', 'end_date',
                  'customer', 'customer_name', 'lead', 'lead_name', 'estimated_value', 'status', 'priority',
                  'notes', 'assigned_to', 'assigned_to_name', 'enable_image_timestamp', 'timestamp_format',
                  'include_gps_coords', 'timestamp_position', 'project', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['project', 'created_by', 'created_at', 'updated_at']

    def get_directions_url(self, obj):
        return google_maps_directions_url(obj.location)

    def _check_organization(self, value, label):
        organization = self.context.get('organization')
        if value and organization and value.organization_id != organization.id:
            raise serializers.ValidationError(f'{label} not found.')
        return value

    def validate_customer(self, value):
        return self._check_organization(value, 'Customer')

    def validate_lead(self, value):
        return self._check_organization(value, 'Lead')

    def validate_assigned_to(self, value):
        return self._check_organization(value, 'User')

    def validate_status(self, value):
        if value == 'converted' and not (self.instance and self.instance.project_id):
            raise serializers.ValidationError('Use convert-to-job to convert a calendar job.')
        return value

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date must be on or after the start date.'})
        return attrs


class ProjectSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    calendar_job_id = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = ['id', 'name', 'description', 'status', 'customer', 'customer_name', 'start_date', 'end_date',
                  'calendar_job_id', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def get_calendar_job_id(self, obj):
        calendar_job = getattr(obj, 'calendar_job', None)
        return calendar_job.id if calendar_job else None

    def validate_customer(self, value):
        organization = self.context.get('organization')
        if value and organization and value.organization_id != organization.id:
            raise serializers.ValidationError('Customer not found.')
        return value


class ConvertToJobSerializer(serializers.Serializer):
    """Input for turning a calendar job into a project"""
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
