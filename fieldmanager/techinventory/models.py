from decimal import Decimal

from django.conf import settings
from django.db import models


class Part(models.Model):
    """Part or supply an organization stocks and hands out to technicians"""
    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='parts')
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100, blank=True)
    sku = models.CharField(max_length=100, blank=True)
    current_stock = models.PositiveIntegerField(default=0)
    unit = models.CharField(max_length=20, default='each')
    unit_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    image_url = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku})" if self.sku else self.name

    class Meta:
        db_table = 'parts'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['organization', 'sku'], condition=~models.Q(sku=''),
                                    name='uniq_part_sku_per_org'),
        ]


class TechnicianInventory(models.Model):
    """Quantity of a part carried by a technician"""
    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='technician_inventory')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='inventory_items')
    part = models.ForeignKey(Part, on_delete=models.CASCADE, related_name='technician_inventory')
    vehicle = models.ForeignKey(
        'fleet.Vehicle', on_delete=models.SET_NULL, null=True, blank=True, related_name='technician_inventory'
    )
    assigned_quantity = models.PositiveIntegerField(default=0)
    current_quantity = models.PositiveIntegerField(default=0)
    min_quantity = models.PositiveIntegerField(default=0, help_text="Low stock threshold; 0 disables the alert")
    location = models.CharField(max_length=100, blank=True, help_text="Where on the vehicle the part is kept")
    is_low_stock = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    last_restocked_at = models.DateTimeField(null=True, blank=True)
    last_used_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} - {self.part}: {self.current_quantity}"

    class Meta:
        db_table = 'technician_inventory'
        ordering = ['part__name']
        verbose_name_plural = 'Technician inventory'
        constraints = [
            models.UniqueConstraint(fields=['user', 'part'], name='uniq_technician_part'),
        ]


class TechnicianInventoryTransaction(models.Model):
    """Every quantity change of a technician inventory item"""
    TRANSACTION_TYPE_CHOICES = [
        ('use', 'Use'),
        ('restock', 'Restock'),
        ('return', 'Return'),
        ('adjustment', 'Adjustment'),
    ]

    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='inventory_transactions')
    inventory = models.ForeignKey(TechnicianInventory, on_delete=models.CASCADE, related_name='transactions')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='inventory_transactions')
    transaction_type = models.CharField(max_length=20, choices=TRANSACTION_TYPE_CHOICES)
    quantity = models.PositiveIntegerField()
    previous_quantity = models.PositiveIntegerField()
    new_quantity = models.PositiveIntegerField()
    notes = models.TextField(blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='performed_inventory_transactions'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.transaction_type} {self.quantity} ({self.previous_quantity} -> {self.new_quantity})"

    class Meta:
        db_table = 'technician_inventory_transactions'
        ordering = ['-created_at', '-id']


class DailyInventoryVerification(models.Model):
    """A technician's end-of-day count of the inventory they carry"""
    STATUS_CHOICES = [
        ('verified', 'Verified'),
        ('discrepancy', 'Discrepancy'),
    ]

    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='inventory_verifications')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='inventory_verifications')
    vehicle = models.ForeignKey(
        'fleet.Vehicle', on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_verifications'
    )
    verification_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='verified')
    is_complete = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)
    items_checked = models.PositiveIntegerField(default=0)
    total_items = models.PositiveIntegerField(default=0)
    discrepancy_count = models.PositiveIntegerField(default=0)
    verification_details = models.JSONField(default=list, blank=True)
    photo_urls = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} - {self.verification_date} ({self.status})"

    class Meta:
        db_table = 'daily_inventory_verifications'
        ordering = ['-verification_date', 'user']
        constraints = [
            models.UniqueConstraint(fields=['user', 'verification_date'], name='uniq_verification_per_user_day'),
        ]
