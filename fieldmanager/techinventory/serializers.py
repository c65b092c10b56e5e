from rest_framework import serializers
from .models import Part, TechnicianInventory, TechnicianInventoryTransaction, DailyInventoryVerification
from .stock import TRANSACTION_TYPES


class PartSerializer(serializers.ModelSerializer):
    assigned_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Part
        fields = ['id', 'name', 'description', 'category', 'sku', 'current_stock', 'unit', 'unit_cost', 'image_url',
                  'is_active', 'assigned_count', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_sku(self, value):
        value = value.strip()
        organization = self.context.get('organization')
        if value and organization:
            existing = Part.objects.filter(organization=organization, sku__iexact=value)
            if self.instance:
                existing = existing.exclude(pk=self.instance.pk)
            if existing.exists():
                raise serializers.ValidationError('A part with this SKU already exists.')
        return value


class TechnicianInventorySerializer(serializers.ModelSerializer):
    part_name = serializers.CharField(source='part.name', read_only=True)
    part_sku = serializers.CharField(source='part.sku', read_only=True)
    part_category = serializers.CharField(source='part.category', read_only=True)
    unit = serializers.CharField(source='part.unit', read_only=True)
    user_name = serializers.CharField(source='user.display_name', read_only=True)
    vehicle_number = serializers.CharField(source='vehicle.vehicle_number', read_only=True)

    class Meta:
        model = TechnicianInventory
        fields = ['id', 'user', 'user_name', 'part', 'part_name', 'part_sku', 'part_category', 'unit', 'vehicle',
                  'vehicle_number', 'assigned_quantity', 'current_quantity', 'min_quantity', 'location',
                  'is_low_stock', 'is_active', 'last_restocked_at', 'last_used_at', 'notes', 'created_at',
                  'updated_at']
        read_only_fields = ['user', 'part', 'current_quantity', 'is_low_stock', 'is_active', 'last_restocked_at',
                            'last_used_at', 'created_at', 'updated_at']

    def validate_vehicle(self, value):
        organization = self.context.get('organization')
        if value and organization and value.organization_id != organization.id:
            raise serializers.ValidationError('Vehicle not found.')
        return value


class InventoryAssignSerializer(serializers.Serializer):
    user = serializers.IntegerField()
    part = serializers.IntegerField()
    assigned_quantity = serializers.IntegerField(min_value=0)
    min_quantity = serializers.IntegerField(min_value=0, required=False)
    vehicle = serializers.IntegerField(required=False, allow_null=True)
    location = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class BulkAssignItemSerializer(serializers.Serializer):
    part_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=0)
    min_quantity = serializers.IntegerField(min_value=0, required=False)


class BulkAssignSerializer(serializers.Serializer):
    user_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    items = BulkAssignItemSerializer(many=True, allow_empty=False)


class InventoryTransactionInputSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=TRANSACTION_TYPES)
    quantity = serializers.IntegerField(min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['type'] != 'adjustment' and attrs['quantity'] == 0:
            raise serializers.ValidationError({'quantity': 'Quantity must be greater than zero.'})
        return attrs


class TechnicianInventoryTransactionSerializer(serializers.ModelSerializer):
    type = serializers.CharField(source='transaction_type', read_only=True)
    part_name = serializers.CharField(source='inventory.part.name', read_only=True)
    performed_by_name = serializers.CharField(source='performed_by.display_name', read_only=True)

    class Meta:
        model = TechnicianInventoryTransaction
        fields = ['id', 'inventory', 'user', 'part_name', 'type', 'quantity', 'previous_quantity', 'new_quantity',
                  'notes', 'performed_by', 'performed_by_name', 'created_at']


class VerificationCountSerializer(serializers.Serializer):
    part_id = serializers.IntegerField()
    actual_qty = serializers.IntegerField(min_value=0)


class VerificationSubmitSerializer(serializers.Serializer):
    vehicle = serializers.IntegerField(required=False, allow_null=True)
    verification_details = VerificationCountSerializer(many=True)
    photo_urls = serializers.ListField(child=serializers.URLField(), required=False, default=list)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_verification_details(self, value):
        part_ids = [entry['part_id'] for entry in value]
        if len(part_ids) != len(set(part_ids)):
            raise serializers.ValidationError('Each part can only be counted once.')
        return value


class DailyInventoryVerificationSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.display_name', read_only=True)
    vehicle_number = serializers.CharField(source='vehicle.vehicle_number', read_only=True)

    class Meta:
        model = DailyInventoryVerification
        fields = ['id', 'user', 'user_name', 'vehicle', 'vehicle_number', 'verification_date', 'status',
                  'is_complete', 'completed_at', 'items_checked', 'total_items', 'discrepancy_count',
                  'verification_details', 'photo_urls', 'notes', 'created_at', 'updated_at']
