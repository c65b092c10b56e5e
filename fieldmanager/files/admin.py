from django.contrib import admin
from .models import Folder, FileItem, FolderPermission, FileShare


class FolderPermissionInline(admin.TabularInline):
    model = FolderPermission
    fk_name = 'folder'
    extra = 0
    fields = ['user', 'user_role', 'can_view', 'can_upload', 'can_create_subfolder', 'can_edit', 'can_delete',
              'can_move', 'apply_to_subfolders', 'expires_at']


@admin.register(Folder)
class FolderAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'parent', 'created_by', 'created_at']
    search_fields = ['name']
    raw_id_fields = ['parent']
    inlines = [FolderPermissionInline]


@admin.register(FileItem)
class FileItemAdmin(admin.ModelAdmin):
    list_display = ['original_name', 'organization', 'folder', 'file_type', 'file_size', 'signature_status',
                    'download_count', 'created_at']
    list_filter = ['file_type', 'signature_status']
    search_fields = ['original_name', 'description']
    exclude = ['signature_data']


@admin.register(FileShare)
class FileShareAdmin(admin.ModelAdmin):
    list_display = ['file', 'shared_with', 'permissions', 'expires_at', 'access_count', 'created_at']
    list_filter = ['permissions']
    readonly_fields = ['token']
