import logging
from datetime import timedelta
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.conf import settings
from django.core.files.base import ContentFile
from django.db import transaction
from django.db.models import Count, F, Q
from django.http import FileResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from fieldmanager.core.events import broadcast_event
from fieldmanager.core.utils import create_audit_log, is_manager_or_admin, organization_required
from .models import Folder, FileItem, FolderPermission, FileShare
from .serializers import (
    FolderSerializer, FileItemSerializer, FileUploadSerializer, TextFileCreateSerializer,
    FileMoveSerializer, SignatureSerializer, FolderPermissionSerializer, FileShareSerializer,
)
from .permissions import filter_visible, get_effective_permissions, has_folder_permission
from .file_types import detect_file_type, guess_mime_type, is_signable
from . import moves

logger = logging.getLogger('fieldmanager.files')


def _forbidden(request, message):
    logger.warning(f"Permission denied for {request.user.username} on {request.path}: {message}")
    return Response({'error': message}, status=status.HTTP_403_FORBIDDEN)


def _resolve_folder(organization, folder_id):
    """Folder for an id, None for the root level"""
    if folder_id in (None, '', 'null', 'root'):
        return None
    return get_object_or_404(Folder, pk=folder_id, organization=organization)


def _can_change_file(user, file_item, field):
    if file_item.uploaded_by_id == user.id:
        return True
    return has_folder_permission(user, file_item.folder, field)


# File views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
@organization_required
def file_list(request):
    """
    List files in a folder.

    Query params: folder_id (root level when omitted), search (searches every
    folder the user can view), file_type.
    """
    organization = request.user.organization
    search = request.query_params.get('search', '').strip()
    file_type = request.query_params.get('file_type')

    files = FileItem.objects.select_related('folder', 'uploaded_by').filter(organization=organization)
    if search:
        files = files.filter(
            Q(original_name__icontains=search) | Q(description__icontains=search)
        )
    else:
        folder = _resolve_folder(organization, request.query_params.get('folder_id'))
        if not has_folder_permission(request.user, folder, 'can_view'):
            return _forbidden(request, 'You do not have permission to view this folder')
        files = files.filter(folder=folder)
    if file_type:
        files = files.filter(file_type=file_type)

    visible = filter_visible(request.user, files, lambda f: f.folder)
    return Response(FileItemSerializer(visible, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
@organization_required
def file_upload(request):
    """Upload a file (multipart: file, folder_id, description, tags)"""
    organization = request.user.organization
    serializer = FileUploadSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    folder = _resolve_folder(organization, serializer.validated_data.get('folder_id'))
    if not has_folder_permission(request.user, folder, 'can_upload'):
        return _forbidden(request, 'You do not have permission to upload to this folder')

    uploaded = serializer.validated_data['file']
    mime_type = getattr(uploaded, 'content_type', None) or guess_mime_type(uploaded.name)
    file_item = FileItem(
        organization=organization,
        folder=folder,
        original_name=uploaded.name,
        file_size=uploaded.size,
        mime_type=mime_type,
        file_type=detect_file_type(mime_type, uploaded.name),
        description=serializer.validated_data.get('description', ''),
        tags=serializer.validated_data.get('tags', []),
        uploaded_by=request.user,
    )
    file_item.file.save(uploaded.name, uploaded, save=False)
    file_item.save()

    logger.info(f"File '{file_item.original_name}' uploaded by {request.user.username}")
    create_audit_log(request, 'file_upload', 'FileItem', file_item.id, object_name=file_item.original_name)
    broadcast_event(organization, 'file_uploaded', {'file_id': file_item.id, 'folder_id': file_item.folder_id})
    return Response(FileItemSerializer(file_item).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@organization_required
def file_create_text(request):
    """Create a text file from a name and content"""
    organization = request.user.organization
    serializer = TextFileCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    folder = _resolve_folder(organization, serializer.validated_data.get('folder_id'))
    if not has_folder_permission(request.user, folder, 'can_upload'):
        return _forbidden(request, 'You do not have permission to create files in this folder')

    name = serializer.validated_data['name']
    content = serializer.validated_data['content'].encode('utf-8')
    file_item = FileItem(
        organization=organization,
        folder=folder,
        original_name=name,
        file_size=len(content),
        mime_type='text/plain',
        file_type='text',
        description=serializer.validated_data.get('description', ''),
        uploaded_by=request.user,
    )
    file_item.file.save(name, ContentFile(content), save=False)
    file_item.save()

    create_audit_log(request, 'create', 'FileItem', file_item.id, object_name=name)
    broadcast_event(organization, 'file_uploaded', {'file_id': file_item.id, 'folder_id': file_item.folder_id})
    return Response(FileItemSerializer(file_item).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def file_detail(request, pk):
    """Retrieve, update (description, tags) or delete a file"""
    organization = request.user.organization
    file_item = get_object_or_404(FileItem.objects.select_related('folder'), pk=pk, organization=organization)

    if not has_folder_permission(request.user, file_item.folder, 'can_view'):
        return _forbidden(request, 'You do not have permission to view this file')

    if request.method == 'GET':
        return Response(FileItemSerializer(file_item).data)
    elif request.method in ('PUT', 'PATCH'):
        if not _can_change_file(request.user, file_item, 'can_edit'):
            return _forbidden(request, 'You do not have permission to edit this file')
        serializer = FileItemSerializer(file_item, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'FileItem', file_item.id, changes=request.data,
                             object_name=file_item.original_name)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not _can_change_file(request.user, file_item, 'can_delete'):
            return _forbidden(request, 'You do not have permission to delete this file')
        file_id = file_item.id
        folder_id = file_item.folder_id
        create_audit_log(request, 'delete', 'FileItem', file_id, object_name=file_item.original_name)
        file_item.delete()
        broadcast_event(organization, 'file_deleted', {'file_id': file_id, 'folder_id': folder_id})
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def file_content(request, pk):
    """Read or replace the content of a text file"""
    organization = request.user.organization
    file_item = get_object_or_404(FileItem.objects.select_related('folder'), pk=pk, organization=organization)

    if file_item.file_type != 'text':
        return Response({'error': 'Only text files can be read or edited inline'}, status=status.HTTP_400_BAD_REQUEST)
    if not has_folder_permission(request.user, file_item.folder, 'can_view'):
        return _forbidden(request, 'You do not have permission to view this file')

    if request.method == 'GET':
        with file_item.file.open('rb') as handle:
            content = handle.read().decode('utf-8', errors='replace')
        return Response({'id': file_item.id, 'name': file_item.original_name, 'content': content})

    if not _can_change_file(request.user, file_item, 'can_edit'):
        return _forbidden(request, 'You do not have permission to edit this file')
    content = request.data.get('content')
    if content is None:
        return Response({'error': 'content is required'}, status=status.HTTP_400_BAD_REQUEST)

    data = str(content).encode('utf-8')
    file_item.file.delete(save=False)
    file_item.file.save(file_item.original_name, ContentFile(data), save=False)
    file_item.file_size = len(data)
    file_item.save()
    create_audit_log(request, 'update', 'FileItem', file_item.id, changes={'content': 'replaced'},
                     object_name=file_item.original_name)
    return Response(FileItemSerializer(file_item).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def file_download(request, pk):
    """Stream a file and count the download"""
    organization = request.user.organization
    file_item = get_object_or_404(FileItem.objects.select_related('folder'), pk=pk, organization=organization)
    if not has_folder_permission(request.user, file_item.folder, 'can_view'):
        return _forbidden(request, 'You do not have permission to download this file')

    FileItem.objects.filter(pk=file_item.pk).update(download_count=F('download_count') + 1)
    return FileResponse(file_item.file.open('rb'), as_attachment=True, filename=file_item.original_name,
                        content_type=file_item.mime_type or None)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def file_move(request, pk):
    """
    Move a file to another folder (folder_id null for the root level).

    The move can be undone with undo-move for a few seconds afterwards.
    """
    organization = request.user.organization
    serializer = FileMoveSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    file_item = get_object_or_404(FileItem.objects.select_related('folder'), pk=pk, organization=organization)
    target = _resolve_folder(organization, serializer.validated_data['folder_id'])

    if not has_folder_permission(request.user, file_item.folder, 'can_move'):
        return _forbidden(request, 'You do not have permission to move this file')
    if not has_folder_permission(request.user, target, 'can_upload'):
        return _forbidden(request, 'You do not have permission to move files into the target folder')

    previous_folder_id = file_item.folder_id
    target_id = target.id if target else None
    if previous_folder_id == target_id:
        return Response({'error': 'File is already in that folder'}, status=status.HTTP_400_BAD_REQUEST)

    file_item.folder = target
    file_item.save(update_fields=['folder', 'updated_at'])
    moves.remember_move(request.user, file_item.id, previous_folder_id)

    logger.info(f"File {file_item.id} moved from {previous_folder_id} to {target_id} by {request.user.username}")
    create_audit_log(request, 'file_move', 'FileItem', file_item.id,
                     changes={'from_folder_id': previous_folder_id, 'to_folder_id': target_id},
                     object_name=file_item.original_name)
    broadcast_event(organization, 'file_moved', {
        'file_id': file_item.id, 'from_folder_id': previous_folder_id, 'to_folder_id': target_id,
    })
    return Response({
        'file': FileItemSerializer(file_item).data,
        'previous_folder_id': previous_folder_id,
        'undo_seconds': settings.FILE_MOVE_UNDO_SECONDS,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def file_undo_move(request, pk):
    """Put a file back where the user's last move took it from"""
    organization = request.user.organization
    file_item = get_object_or_404(FileItem, pk=pk, organization=organization)

    slot = moves.take_undo_slot(request.user, file_item.id)
    if slot is None:
        return Response({'error': 'Nothing to undo'}, status=status.HTTP_409_CONFLICT)

    previous_folder_id = slot['previous_folder_id']
    previous_folder = None
    if previous_folder_id is not None:
        previous_folder = Folder.objects.filter(pk=previous_folder_id, organization=organization).first()
        if previous_folder is None:
            return Response({'error': 'The original folder no longer exists'}, status=status.HTTP_409_CONFLICT)

    moved_from = file_item.folder_id
    file_item.folder = previous_folder
    file_item.save(update_fields=['folder', 'updated_at'])

    logger.info(f"File {file_item.id} move undone by {request.user.username}")
    create_audit_log(request, 'file_move_undo', 'FileItem', file_item.id,
                     changes={'from_folder_id': moved_from, 'to_folder_id': previous_folder_id},
                     object_name=file_item.original_name)
    broadcast_event(organization, 'file_moved', {
        'file_id': file_item.id, 'from_folder_id': moved_from, 'to_folder_id': previous_folder_id, 'undo': True,
    })
    return Response({'file': FileItemSerializer(file_item).data})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def file_share(request, pk):
    """List a file's share links or create a new one"""
    organization = request.user.organization
    file_item = get_object_or_404(FileItem.objects.select_related('folder'), pk=pk, organization=organization)
    if not has_folder_permission(request.user, file_item.folder, 'can_view'):
        return _forbidden(request, 'You do not have permission to share this file')

    if request.method == 'GET':
        shares = file_item.shares.all()
        return Response(FileShareSerializer(shares, many=True).data)

    serializer = FileShareSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    if serializer.validated_data.get('permissions') == 'edit' and \
            not _can_change_file(request.user, file_item, 'can_edit'):
        return _forbidden(request, 'You do not have permission to share this file for editing')

    expires_in_days = serializer.validated_data.pop('expires_in_days', None)
    extra = {}
    if expires_in_days:
        extra['expires_at'] = timezone.now() + timedelta(days=expires_in_days)
    share = serializer.save(organization=organization, file=file_item, created_by=request.user, **extra)

    create_audit_log(request, 'file_share', 'FileItem', file_item.id,
                     changes={'share_id': share.id, 'permissions': share.permissions},
                     object_name=file_item.original_name)
    return Response(FileShareSerializer(share).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def shared_file(request, token):
    """
    Resolve a public share link.

    Returns the file metadata; with ?download=1 streams the file when the
    share allows downloads.
    """
    share = get_object_or_404(FileShare.objects.select_related('file'), token=token)
    if share.is_expired:
        return Response({'error': 'This share link has expired'}, status=status.HTTP_410_GONE)

    FileShare.objects.filter(pk=share.pk).update(access_count=F('access_count') + 1)
    file_item = share.file

    if request.query_params.get('download') in ('1', 'true'):
        if share.permissions not in ('download', 'edit'):
            return Response({'error': 'This share link does not allow downloads'}, status=status.HTTP_403_FORBIDDEN)
        FileItem.objects.filter(pk=file_item.pk).update(download_count=F('download_count') + 1)
        return FileResponse(file_item.file.open('rb'), as_attachment=True, filename=file_item.original_name,
                            content_type=file_item.mime_type or None)

    return Response({
        'name': file_item.original_name,
        'file_size': file_item.file_size,
        'mime_type': file_item.mime_type,
        'file_type': file_item.file_type,
        'permissions': share.permissions,
        'expires_at': share.expires_at,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def file_sign(request, pk):
    """Sign a PDF or Word document"""
    organization = request.user.organization
    serializer = SignatureSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        file_item = get_object_or_404(FileItem.objects.select_for_update(), pk=pk, organization=organization)
        if not has_folder_permission(request.user, file_item.folder, 'can_view'):
            return _forbidden(request, 'You do not have permission to sign this file')
        if not is_signable(file_item.file_type):
            return Response({'error': 'Only PDF and Word documents can be signed'}, status=status.HTTP_400_BAD_REQUEST)
        if file_item.signature_status == 'signed':
            return Response({'error': 'This document has already been signed'}, status=status.HTTP_409_CONFLICT)

        file_item.signature_status = 'signed'
        file_item.signature_data = serializer.validated_data['signature_data']
        file_item.signed_by = serializer.validated_data['signer_name']
        file_item.signed_by_user = request.user
        file_item.signed_at = timezone.now()
        file_item.save()

    logger.info(f"File {file_item.id} signed by {file_item.signed_by} ({request.user.username})")
    create_audit_log(request, 'file_sign', 'FileItem', file_item.id, changes={'signed_by': file_item.signed_by},
                     object_name=file_item.original_name)
    broadcast_event(organization, 'file_signed', {'file_id': file_item.id})
    return Response(FileItemSerializer(file_item).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def file_request_signature(request, pk):
    """Mark a document as waiting for a signature"""
    organization = request.user.organization
    file_item = get_object_or_404(FileItem.objects.select_related('folder'), pk=pk, organization=organization)
    if not has_folder_permission(request.user, file_item.folder, 'can_view'):
        return _forbidden(request, 'You do not have permission to view this file')
    if not is_signable(file_item.file_type):
        return Response({'error': 'Only PDF and Word documents can be signed'}, status=status.HTTP_400_BAD_REQUEST)
    if file_item.signature_status == 'signed':
        return Response({'error': 'This document has already been signed'}, status=status.HTTP_409_CONFLICT)

    file_item.signature_status = 'pending'
    file_item.save(update_fields=['signature_status', 'updated_at'])
    create_audit_log(request, 'update', 'FileItem', file_item.id, changes={'signature_status': 'pending'},
                     object_name=file_item.original_name)
    return Response(FileItemSerializer(file_item).data)


# Folder views
def _annotated_folders(organization):
    return Folder.objects.filter(organization=organization).annotate(
        file_count=Count('files', distinct=True),
        subfolder_count=Count('subfolders', distinct=True),
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def folder_list_create(request):
    """List subfolders of parent_id (root level when omitted) or create a folder"""
    organization = request.user.organization

    if request.method == 'GET':
        parent = _resolve_folder(organization, request.query_params.get('parent_id'))
        if not has_folder_permission(request.user, parent, 'can_view'):
            return _forbidden(request, 'You do not have permission to view this folder')
        folders = _annotated_folders(organization).filter(parent=parent)
        visible = filter_visible(request.user, folders, lambda f: f)
        return Response(FolderSerializer(visible, many=True).data)

    serializer = FolderSerializer(data=request.data, context={'organization': organization})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    parent = serializer.validated_data.get('parent')
    if not has_folder_permission(request.user, parent, 'can_create_subfolder'):
        return _forbidden(request, 'You do not have permission to create folders here')

    folder = serializer.save(organization=organization, created_by=request.user)
    logger.info(f"Folder '{folder.name}' created by {request.user.username}")
    create_audit_log(request, 'create', 'Folder', folder.id, object_name=folder.name)
    broadcast_event(organization, 'folder_updated', {'folder_id': folder.id, 'action': 'created'})
    return Response(FolderSerializer(folder).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def folder_detail(request, pk):
    """
    Retrieve, update or delete a folder.

    Changing the parent moves the folder; it cannot be moved under itself.
    DELETE refuses non-empty folders unless ?force=true is given.
    """
    organization = request.user.organization
    folder = get_object_or_404(_annotated_folders(organization), pk=pk)

    if not has_folder_permission(request.user, folder, 'can_view'):
        return _forbidden(request, 'You do not have permission to view this folder')

    if request.method == 'GET':
        return Response(FolderSerializer(folder).data)
    elif request.method in ('PUT', 'PATCH'):
        if not has_folder_permission(request.user, folder, 'can_edit'):
            return _forbidden(request, 'You do not have permission to edit this folder')
        serializer = FolderSerializer(folder, data=request.data, partial=request.method == 'PATCH',
                                      context={'organization': organization})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        if 'parent' in serializer.validated_data and serializer.validated_data['parent'] != folder.parent:
            new_parent = serializer.validated_data['parent']
            if not has_folder_permission(request.user, folder, 'can_move'):
                return _forbidden(request, 'You do not have permission to move this folder')
            if not has_folder_permission(request.user, new_parent, 'can_create_subfolder'):
                return _forbidden(request, 'You do not have permission to create folders in the target folder')
        serializer.save()
        create_audit_log(request, 'update', 'Folder', folder.id, changes=request.data, object_name=folder.name)
        broadcast_event(organization, 'folder_updated', {'folder_id': folder.id, 'action': 'updated'})
        return Response(serializer.data)
    else:  # DELETE
        if not has_folder_permission(request.user, folder, 'can_delete'):
            return _forbidden(request, 'You do not have permission to delete this folder')
        force = request.query_params.get('force', '').lower() in ('true', '1')
        if (folder.file_count or folder.subfolder_count) and not force:
            return Response({
                'error': 'Folder is not empty',
                'file_count': folder.file_count,
                'subfolder_count': folder.subfolder_count,
            }, status=status.HTTP_400_BAD_REQUEST)
        folder_id = folder.id
        create_audit_log(request, 'delete', 'Folder', folder_id, object_name=folder.name,
                         changes={'force': force})
        folder.delete()
        broadcast_event(organization, 'folder_updated', {'folder_id': folder_id, 'action': 'deleted'})
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def folder_permission_list_create(request, pk):
    """List or add permission rules on a folder (managers only)"""
    organization = request.user.organization
    folder = get_object_or_404(Folder, pk=pk, organization=organization)
    if not is_manager_or_admin(request.user):
        return _forbidden(request, 'Only managers can manage folder permissions')

    if request.method == 'GET':
        rules = folder.permissions.select_related('user')
        return Response(FolderPermissionSerializer(rules, many=True).data)

    serializer = FolderPermissionSerializer(data=request.data,
                                            context={'organization': organization, 'folder': folder})
    if serializer.is_valid():
        rule = serializer.save(organization=organization, folder=folder, created_by=request.user)
        create_audit_log(request, 'create', 'FolderPermission', rule.id, changes=request.data, object_name=folder.name)
        return Response(FolderPermissionSerializer(rule).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def folder_permission_detail(request, pk):
    """Retrieve, update or delete a folder permission rule (managers only)"""
    organization = request.user.organization
    rule = get_object_or_404(FolderPermission.objects.select_related('folder'), pk=pk, organization=organization)
    if not is_manager_or_admin(request.user):
        return _forbidden(request, 'Only managers can manage folder permissions')

    if request.method == 'GET':
        return Response(FolderPermissionSerializer(rule).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = FolderPermissionSerializer(rule, data=request.data, partial=request.method == 'PATCH',
                                                context={'organization': organization, 'folder': rule.folder})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'FolderPermission', rule.id, changes=request.data,
                             object_name=rule.folder.name)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        create_audit_log(request, 'delete', 'FolderPermission', rule.id, object_name=rule.folder.name)
        rule.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def folder_effective_permissions(request, pk):
    """The requesting user's resolved permissions on a folder"""
    organization = request.user.organization
    folder = get_object_or_404(Folder, pk=pk, organization=organization)
    effective = get_effective_permissions(request.user, folder)
    return Response({'folder_id': folder.id, **effective.as_dict()})
