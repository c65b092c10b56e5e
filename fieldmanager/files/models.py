import os
import secrets

from django.conf import settings
from django.db import models
from django.utils import timezone

from fieldmanager.core.models import User


def file_upload_path(instance, filename):
    """organization_<id>/YYYY/MM/<random>_<filename>"""
    now = timezone.now()
    return os.path.join(
        f"organization_{instance.organization_id}",
        f"{now:%Y}",
        f"{now:%m}",
        f"{secrets.token_hex(4)}_{filename}",
    )


def generate_share_token():
    return secrets.token_urlsafe(24)


class Folder(models.Model):
    """Folder in the organization's file manager; no parent means root level"""
    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='folders')
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    parent = models.ForeignKey('self', on_delete=models.CASCADE, null=True, blank=True, related_name='subfolders')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_folders'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def ancestor_ids(self):
        """Parent ids from the nearest parent up to the root"""
        ids = []
        parent_id = self.parent_id
        while parent_id is not None and parent_id not in ids:
            ids.append(parent_id)
            parent_id = Folder.objects.filter(pk=parent_id).values_list('parent_id', flat=True).first()
        return ids

    def is_descendant_of(self, folder):
        return folder.id in self.ancestor_ids()

    @property
    def path(self):
        parts = [self.name]
        parent = self.parent
        seen = set()
        while parent is not None and parent.id not in seen:
            seen.add(parent.id)
            parts.append(parent.name)
            parent = parent.parent
        return '/' + '/'.join(reversed(parts))

    class Meta:
        db_table = 'folders'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['organization', 'parent', 'name'], name='uniq_folder_name_per_parent'),
        ]


class FileItem(models.Model):
    """Uploaded file, optionally signed"""
    FILE_TYPE_CHOICES = [
        ('image', 'Image'),
        ('video', 'Video'),
        ('audio', 'Audio'),
        ('pdf', 'PDF'),
        ('document', 'Document'),
        ('spreadsheet', 'Spreadsheet'),
        ('text', 'Text'),
        ('archive', 'Archive'),
        ('other', 'Other'),
    ]
    SIGNATURE_STATUS_CHOICES = [
        ('none', 'None'),
        ('pending', 'Pending'),
        ('signed', 'Signed'),
    ]

    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='files')
    folder = models.ForeignKey(Folder, on_delete=models.CASCADE, null=True, blank=True, related_name='files')
    file = models.FileField(upload_to=file_upload_path, max_length=500)
    original_name = models.CharField(max_length=255)
    file_size = models.PositiveBigIntegerField(default=0)
    mime_type = models.CharField(max_length=255, blank=True)
    file_type = models.CharField(max_length=20, choices=FILE_TYPE_CHOICES, default='other')
    description = models.TextField(blank=True)
    tags = models.JSONField(default=list, blank=True)
    download_count = models.PositiveIntegerField(default=0)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='uploaded_files'
    )

    signature_status = models.CharField(max_length=10, choices=SIGNATURE_STATUS_CHOICES, default='none')
    signature_data = models.TextField(blank=True)
    signed_by = models.CharField(max_length=255, blank=True)
    signed_by_user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='signed_files'
    )
    signed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.original_name

    class Meta:
        db_table = 'files'
        ordering = ['-created_at']


class FolderPermission(models.Model):
    """Access rule on a folder for one user or for every user with a role"""
    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='folder_permissions')
    folder = models.ForeignKey(Folder, on_delete=models.CASCADE, related_name='permissions')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, null=True, blank=True, related_name='folder_permissions'
    )
    user_role = models.CharField(max_length=20, choices=User.ROLE_CHOICES, blank=True)
    can_view = models.BooleanField(default=True)
    can_upload = models.BooleanField(default=False)
    can_create_subfolder = models.BooleanField(default=False)
    can_edit = models.BooleanField(default=False)
    can_delete = models.BooleanField(default=False)
    can_move = models.BooleanField(default=False)
    inherit_permissions = models.BooleanField(default=True)
    apply_to_subfolders = models.BooleanField(default=False)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='granted_folder_permissions'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        subject = self.user.username if self.user_id else f"role:{self.user_role}"
        return f"{self.folder} - {subject}"

    class Meta:
        db_table = 'folder_permissions'
        ordering = ['folder', 'id']


class FileShare(models.Model):
    """Public link to a single file"""
    PERMISSION_CHOICES = [
        ('view', 'View'),
        ('download', 'Download'),
        ('edit', 'Edit'),
    ]

    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='file_shares')
    file = models.ForeignKey(FileItem, on_delete=models.CASCADE, related_name='shares')
    shared_with = models.EmailField(blank=True)
    permissions = models.CharField(max_length=10, choices=PERMISSION_CHOICES, default='view')
    token = models.CharField(max_length=64, unique=True, default=generate_share_token)
    expires_at = models.DateTimeField(null=True, blank=True)
    access_count = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='file_shares'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.file} ({self.permissions})"

    @property
    def is_expired(self):
        return self.expires_at is not None and self.expires_at <= timezone.now()

    class Meta:
        db_table = 'file_shares'
        ordering = ['-created_at']
