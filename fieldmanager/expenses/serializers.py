from rest_framework import serializers
from .models import ExpenseCategory, Expense


class ExpenseCategorySerializer(serializers.ModelSerializer):
    expense_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = ExpenseCategory
        fields = ['id', 'name', 'description', 'color', 'is_active', 'is_default', 'expense_count',
                  'created_at', 'updated_at']
        read_only_fields = ['is_default', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        organization = self.context.get('organization')
        if organization:
            existing = ExpenseCategory.objects.filter(organization=organization, name__iexact=value)
            if self.instance:
                existing = existing.exclude(pk=self.instance.pk)
            if existing.exists():
                raise serializers.ValidationError('A category with this name already exists.')
        return value

    def validate_color(self, value):
        return value.upper()


class ExpenseSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)
    category_color = serializers.CharField(source='category.color', read_only=True)
    vehicle_number = serializers.CharField(source='vehicle.vehicle_number', read_only=True)
    user_name = serializers.CharField(source='user.display_name', read_only=True)

    class Meta:
        model = Expense
        fields = ['id', 'category', 'category_name', 'category_color', 'vehicle', 'vehicle_number',
                  'user', 'user_name', 'amount', 'expense_date', 'vendor', 'description', 'receipt_url',
                  'status', 'reviewed_by', 'reviewed_at', 'created_at', 'updated_at']
        read_only_fields = ['user', 'status', 'reviewed_by', 'reviewed_at', 'created_at', 'updated_at']

    def validate_category(self, value):
        organization = self.context.get('organization')
        if organization and value.organization_id != organization.id:
            raise serializers.ValidationError('Category not found.')
        if not value.is_active:
            raise serializers.ValidationError('Category is inactive.')
        return value

    def validate_vehicle(self, value):
        organization = self.context.get('organization')
        if value and organization and value.organization_id != organization.id:
            raise serializers.ValidationError('Vehicle not found.')
        return value
