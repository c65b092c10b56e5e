from django.conf import settings
from django.urls import reverse
from rest_framework import serializers
from .models import Folder, FileItem, FolderPermission, FileShare
from .permissions import PERMISSION_FIELDS


def parse_tags(value):
    """Tags arrive as a list or a comma separated string"""
    if value in (None, ''):
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(',') if tag.strip()]
    return [str(tag).strip() for tag in value if str(tag).strip()]


class TagListField(serializers.Field):
    def to_representation(self, value):
        return value or []

    def to_internal_value(self, data):
        if not isinstance(data, (str, list, tuple)):
            raise serializers.ValidationError('Tags must be a list or a comma separated string.')
        return parse_tags(data)


class FolderSerializer(serializers.ModelSerializer):
    path = serializers.CharField(read_only=True)
    file_count = serializers.IntegerField(read_only=True, required=False)
    subfolder_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Folder
        fields = ['id', 'name', 'description', 'parent', 'path', 'file_count', 'subfolder_count',
                  'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Folder name cannot be blank.')
        if '/' in value:
            raise serializers.ValidationError('Folder name cannot contain "/".')
        return value

    def validate_parent(self, value):
        organization = self.context.get('organization')
        if value and organization and value.organization_id != organization.id:
            raise serializers.ValidationError('Parent folder not found.')
        if value and self.instance:
            if value.id == self.instance.id or value.is_descendant_of(self.instance):
                raise serializers.ValidationError('A folder cannot be moved into itself or one of its subfolders.')
        return value

    def validate(self, attrs):
        organization = self.context.get('organization')
        name = attrs.get('name', getattr(self.instance, 'name', None))
        parent = attrs['parent'] if 'parent' in attrs else getattr(self.instance, 'parent', None)
        if organization and name:
            siblings = Folder.objects.filter(organization=organization, parent=parent, name__iexact=name)
            if self.instance:
                siblings = siblings.exclude(pk=self.instance.pk)
            if siblings.exists():
                raise serializers.ValidationError({'name': 'A folder with this name already exists here.'})
        return attrs


class FileItemSerializer(serializers.ModelSerializer):
    tags = TagListField(required=False)
    folder_name = serializers.CharField(source='folder.name', read_only=True)
    uploaded_by_name = serializers.CharField(source='uploaded_by.display_name', read_only=True)
    download_url = serializers.SerializerMethodField()

    class Meta:
        model = FileItem
        fields = ['id', 'folder', 'folder_name', 'original_name', 'file_size', 'mime_type', 'file_type',
                  'description', 'tags', 'download_count', 'download_url', 'uploaded_by', 'uploaded_by_name',
                  'signature_status', 'signed_by', 'signed_at', 'created_at', 'updated_at']
        read_only_fields = ['folder', 'original_name', 'file_size', 'mime_type', 'file_type', 'download_count',
                            'uploaded_by', 'signature_status', 'signed_by', 'signed_at', 'created_at', 'updated_at']

    def get_download_url(self, obj):
        return reverse('file-download', kwargs={'pk': obj.pk})


class FileUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    folder_id = serializers.IntegerField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    tags = TagListField(required=False, default=list)

    def validate_file(self, value):
        if value.size > settings.MAX_UPLOAD_SIZE:
            limit_mb = settings.MAX_UPLOAD_SIZE // (1024 * 1024)
            raise serializers.ValidationError(f'File exceeds the {limit_mb} MB upload limit.')
        return value


class TextFileCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    content = serializers.CharField(allow_blank=True, trim_whitespace=False)
    folder_id = serializers.IntegerField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_name(self, value):
        value = value.strip()
        if not value or '/' in value:
            raise serializers.ValidationError('Enter a valid file name.')
        if '.' not in value:
            value = f'{value}.txt'
        return value


class FileMoveSerializer(serializers.Serializer):
    folder_id = serializers.IntegerField(allow_null=True)


class SignatureSerializer(serializers.Serializer):
    signature_data = serializers.CharField()
    signer_name = serializers.CharField(max_length=255)


class FolderPermissionSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)

    class Meta:
        model = FolderPermission
        fields = ['id', 'folder', 'user', 'username', 'user_role', *PERMISSION_FIELDS,
                  'inherit_permissions', 'apply_to_subfolders', 'expires_at', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['folder', 'created_by', 'created_at', 'updated_at']

    def validate_user(self, value):
        organization = self.context.get('organization')
        if value and organization and value.organization_id != organization.id:
            raise serializers.ValidationError('User not found.')
        return value

    def validate(self, attrs):
        user = attrs['user'] if 'user' in attrs else getattr(self.instance, 'user', None)
        user_role = attrs['user_role'] if 'user_role' in attrs else getattr(self.instance, 'user_role', '')
        if bool(user) == bool(user_role):
            raise serializers.ValidationError('Set exactly one of user or user_role.')

        folder = self.context.get('folder') or getattr(self.instance, 'folder', None)
        if folder is not None:
            existing = FolderPermission.objects.filter(folder=folder)
            existing = existing.filter(user=user) if user else existing.filter(user__isnull=True, user_role=user_role)
            if self.instance:
                existing = existing.exclude(pk=self.instance.pk)
            if existing.exists():
                raise serializers.ValidationError('A permission rule for this user or role already exists on the folder.')
        return attrs


class FileShareSerializer(serializers.ModelSerializer):
    file_name = serializers.CharField(source='file.original_name', read_only=True)
    share_url = serializers.SerializerMethodField()
    expires_in_days = serializers.IntegerField(write_only=True, required=False, min_value=1, max_value=365)
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = FileShare
        fields = ['id', 'file', 'file_name', 'shared_with', 'permissions', 'token', 'share_url', 'expires_at',
                  'expires_in_days', 'is_expired', 'access_count', 'created_by', 'created_at']
        read_only_fields = ['file', 'token', 'access_count', 'created_by', 'created_at']

    def get_share_url(self, obj):
        return reverse('shared-file', kwargs={'token': obj.token})
