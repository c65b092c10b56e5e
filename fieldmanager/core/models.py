from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils.text import slugify


class Organization(models.Model):
    """Tenant company using the application"""
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=120, unique=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=2, blank=True)
    zip_code = models.CharField(max_length=10, blank=True)
    plan_name = models.CharField(max_length=50, default='starter')
    has_call_manager = models.BooleanField(default=False, help_text="Plan includes the call manager feature")
    is_demo = models.BooleanField(default=False)
    trial_ends_at = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if not self.slug:
            base = slugify(self.name)[:100] or 'organization'
            slug = base
            counter = 1
            while Organization.objects.filter(slug=slug).exclude(pk=self.pk).exists():
                counter += 1
                slug = f'{base}-{counter}'
            self.slug = slug
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'organizations'
        ordering = ['name']


class User(AbstractUser):
    """Extended user model with organization membership and role"""
    ROLE_CHOICES = [
        ('admin', 'Admin'),
        ('manager', 'Manager'),
        ('technician', 'Technician'),
        ('user', 'User'),
    ]

    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, null=True, blank=True, related_name='users'
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='user')
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def display_name(self):
        full_name = self.get_full_name()
        return full_name or self.username

    class Meta:
        db_table = 'users'


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('view', 'View'),
        ('signup', 'Signup'),
        ('service_complete', 'Service Completed'),
        ('expense_approve', 'Expense Approved'),
        ('expense_reject', 'Expense Rejected'),
        ('job_convert', 'Calendar Job Converted'),
        ('file_upload', 'File Uploaded'),
        ('file_move', 'File Moved'),
        ('file_move_undo', 'File Move Undone'),
        ('file_share', 'File Shared'),
        ('file_sign', 'File Signed'),
        ('phone_provision', 'Phone Number Provisioned'),
        ('phone_release', 'Phone Number Released'),
        ('inventory_assign', 'Inventory Assigned'),
        ('inventory_use', 'Inventory Used'),
        ('inventory_restock', 'Inventory Restocked'),
        ('inventory_return', 'Inventory Returned'),
        ('inventory_adjust', 'Inventory Adjusted'),
        ('inventory_verify', 'Inventory Verified'),
    ]

    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, null=True, blank=True, related_name='audit_logs'
    )
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., vehicle number, file name)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., invoice number, phone number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_5d5f0c_idx'),
            models.Index(fields=['action'], name='audit_logs_action_7f6b21_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_0a9e43_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__c2d8e1_idx'),
        ]


class RealtimeEvent(models.Model):
    """Named server event that tells clients to refresh cached data"""
    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, null=True, blank=True, related_name='realtime_events'
    )
    event_type = models.CharField(max_length=100)
    data = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f'{self.event_type} #{self.pk}'

    class Meta:
        db_table = 'realtime_events'
        ordering = ['id']
        indexes = [
            models.Index(fields=['organization', 'id'], name='realtime_ev_organiz_4b1c7e_idx'),
            models.Index(fields=['created_at'], name='realtime_ev_created_9e2a55_idx'),
        ]
