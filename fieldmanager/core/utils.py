"""Utility functions for audit logging and role checks"""
import logging
from functools import wraps

from rest_framework import status
from rest_framework.response import Response

from .models import AuditLog

logger = logging.getLogger('fieldmanager.core')

MANAGER_ROLES = ('admin', 'manager')


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def is_admin(user):
    """Organization admin, or a superuser"""
    if not user or not user.is_authenticated:
        return False
    return user.is_superuser or user.role == 'admin'


def is_manager_or_admin(user):
    """
    Check if user can manage organization data.

    Organization roles take priority; staff/superusers are treated as managers.
    """
    if not user or not user.is_authenticated:
        return False
    if user.role in MANAGER_ROLES:
        return True
    return user.is_superuser or user.is_staff


def is_saas_admin(user):
    """Platform operator managing every tenant"""
    return bool(user and user.is_authenticated and user.is_superuser)


def organization_required(view_func):
    """Reject requests from users that belong to no organization"""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if request.user.organization_id is None:
            logger.warning(f"User {request.user.username} has no organization for {request.path}")
            return Response({'error': 'User is not assigned to an organization'}, status=status.HTTP_400_BAD_REQUEST)
        return view_func(request, *args, **kwargs)
    return wrapper


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None,
                     organization=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, file_move, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object (e.g., vehicle number, file name)
        object_reference: Reference identifier (e.g., invoice number, phone number)
        organization: Optional organization override (defaults to the user's organization)
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user

        if audit_user is not None and not audit_user.is_authenticated:
            audit_user = None

        if organization is None and audit_user is not None:
            organization = audit_user.organization

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or not object_id:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            organization=organization,
            user=audit_user,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None
