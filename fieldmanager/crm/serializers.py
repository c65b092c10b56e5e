from rest_framework import serializers
from .models import Customer, Lead, Invoice


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ['id', 'name', 'email', 'phone', 'address', 'city', 'state', 'zip_code', 'country',
                  'notes', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class LeadSerializer(serializers.ModelSerializer):
    class Meta:
        model = Lead
        fields = ['id', 'name', 'email', 'phone', 'source', 'status', 'value', 'notes', 'assigned_to',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class InvoiceSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)

    class Meta:
        model = Invoice
        fields = ['id', 'invoice_number', 'customer', 'customer_name', 'status', 'subtotal', 'tax_rate',
                  'tax_amount', 'total', 'currency', 'invoice_date', 'due_date', 'paid_at', 'notes',
                  'created_at', 'updated_at']
        read_only_fields = ['tax_amount', 'paid_at', 'created_at', 'updated_at']

    def validate_customer(self, value):
        organization = self.context.get('organization')
        if value and organization and value.organization_id != organization.id:
            raise serializers.ValidationError('Customer not found.')
        return value

    def _save_with_totals(self, instance):
        # An explicit total wins over the derived one
        if 'total' not in self.initial_data:
            instance.calculate_totals()
        else:
            instance.tax_amount = instance.total - instance.subtotal
        instance.save()
        return instance

    def create(self, validated_data):
        return self._save_with_totals(Invoice(**validated_data))

    def update(self, instance, validated_data):
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        return self._save_with_totals(instance)
