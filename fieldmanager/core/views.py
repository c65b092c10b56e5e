import logging
from datetime import timedelta

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.db.models import Q
from django.utils import timezone
from django.utils.dateparse import parse_date
from .models import Organization, Setting, AuditLog
from .serializers import (
    UserSerializer, UserCreateSerializer, RegisterSerializer, DemoSignupSerializer,
    SettingSerializer, AuditLogSerializer, RealtimeEventSerializer
)
from .events import get_events_since
from .utils import create_audit_log, is_admin, is_manager_or_admin, is_saas_admin

logger = logging.getLogger('fieldmanager.core')

User = get_user_model()

SEARCH_RESULTS_LIMIT = 20


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        token['organization_id'] = user.organization_id
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


def _token_response(user, status_code):
    token = CustomTokenObtainPairSerializer.get_token(user)
    return Response({
        'user': UserSerializer(user).data,
        'access': str(token.access_token),
        'refresh': str(token),
    }, status=status_code)


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Create an organization and its first admin user"""
    serializer = RegisterSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            user = serializer.save()
        logger.info(f"Registered organization {user.organization_id} with admin {user.username}")
        create_audit_log(request, 'signup', 'Organization', user.organization_id,
                         user=user, object_name=user.organization.name)
        return _token_response(user, status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([AllowAny])
def demo_signup(request):
    """Demo account signup: creates a trial organization with default data"""
    serializer = DemoSignupSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Demo signup validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        from fieldmanager.expenses.defaults import seed_default_categories

        with transaction.atomic():
            organization = Organization.objects.create(
                name=data['organization_name'],
                email=data['email'],
                phone=data['phone'],
                address=data.get('address', ''),
                city=data['city'],
                state=data['state'],
                zip_code=data['zip_code'],
                is_demo=True,
                plan_name='demo',
                trial_ends_at=timezone.localdate() + timedelta(days=settings.DEMO_TRIAL_DAYS),
            )
            user = User(
                username=data['username'],
                email=data['email'],
                first_name=data['first_name'],
                last_name=data['last_name'],
                phone=data['phone'],
                organization=organization,
                role='admin',
                is_active=True,
            )
            user.set_password(data['password'])
            user.save()
            seed_default_categories(organization)

        logger.info(f"Demo organization '{organization.name}' created for {user.username}")
        create_audit_log(request, 'signup', 'Organization', organization.id, user=user,
                         object_name=organization.name, changes={'is_demo': True})
        return _token_response(user, status.HTTP_201_CREATED)
    except Exception as e:
        logger.error(f"Unexpected error in demo_signup: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def user_list_create(request):
    """List the organization's users or create a new one (managers only)"""
    if not is_manager_or_admin(request.user):
        return Response({'error': 'Only managers can manage users'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'GET':
        users = User.objects.filter(organization=request.user.organization).order_by('username')
        role = request.query_params.get('role')
        if role:
            users = users.filter(role=role)
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)
    else:
        serializer = UserCreateSerializer(data=request.data)
        if serializer.is_valid():
            if serializer.validated_data.get('role') == 'admin' and not is_admin(request.user):
                return Response({'error': 'Only admins can create admin users'}, status=status.HTTP_403_FORBIDDEN)
            user = serializer.save(organization=request.user.organization)
            logger.info(f"User {user.username} created by {request.user.username}")
            create_audit_log(request, 'create', 'User', user.id, object_name=user.username)
            return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    """Retrieve, update or delete a user of the organization"""
    user = get_object_or_404(User, pk=pk, organization=request.user.organization)

    if request.method == 'GET':
        if user != request.user and not is_manager_or_admin(request.user):
            return Response({'error': 'Only managers can view other users'}, status=status.HTTP_403_FORBIDDEN)
        return Response(UserSerializer(user).data)

    if not is_manager_or_admin(request.user):
        return Response({'error': 'Only managers can modify users'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            if serializer.validated_data.get('role') == 'admin' and not is_admin(request.user):
                return Response({'error': 'Only admins can grant the admin role'}, status=status.HTTP_403_FORBIDDEN)
            serializer.save()
            create_audit_log(request, 'update', 'User', user.id, changes=request.data, object_name=user.username)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user == request.user:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request, 'delete', 'User', user.id, object_name=user.username)
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def technician_list(request):
    """Active field staff of the organization"""
    users = User.objects.filter(
        organization=request.user.organization,
        is_active=True,
        role__in=['technician', 'user'],
    ).order_by('first_name', 'last_name', 'username')
    return Response(UserSerializer(users, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user with organization and capability flags"""
    user = request.user
    user_data = UserSerializer(user).data

    manager = is_manager_or_admin(user)
    user_data['is_admin'] = is_admin(user)
    user_data['is_saas_admin'] = is_saas_admin(user)
    user_data['can_manage_fleet'] = manager
    user_data['can_manage_files'] = manager
    user_data['can_access_reports'] = manager
    user_data['can_manage_inventory'] = manager
    user_data['can_manage_users'] = manager

    organization = user.organization
    if organization and organization.is_demo and organization.trial_ends_at:
        user_data['trial_days_left'] = max((organization.trial_ends_at - timezone.localdate()).days, 0)

    return Response(user_data)


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def setting_list_create(request):
    """List all settings or create a new setting"""
    if request.method == 'GET':
        settings_qs = Setting.objects.all().order_by('key')
        serializer = SettingSerializer(settings_qs, many=True)
        return Response(serializer.data)
    else:
        serializer = SettingSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def setting_detail(request, pk):
    """Retrieve, update or delete a setting"""
    setting = get_object_or_404(Setting, pk=pk)

    if request.method == 'GET':
        serializer = SettingSerializer(setting)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        setting.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# AuditLog views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """
    List audit logs of the organization.

    Non-managers only see their own entries. Filters: action, model,
    date_from, date_to (YYYY-MM-DD).
    """
    logs = AuditLog.objects.select_related('user', 'user__organization').filter(
        organization=request.user.organization
    )
    if not is_manager_or_admin(request.user):
        logs = logs.filter(user=request.user)

    action = request.query_params.get('action')
    if action:
        logs = logs.filter(action=action)
    model_name = request.query_params.get('model')
    if model_name:
        logs = logs.filter(model_name__iexact=model_name)
    for param, lookup in (('date_from', 'created_at__date__gte'), ('date_to', 'created_at__date__lte')):
        value = request.query_params.get(param)
        if not value:
            continue
        try:
            day = parse_date(value)
        except ValueError:
            day = None
        if day is None:
            return Response({'error': f'{param} must be in YYYY-MM-DD format'}, status=status.HTTP_400_BAD_REQUEST)
        logs = logs.filter(**{lookup: day})

    serializer = AuditLogSerializer(logs[:500], many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    logs = AuditLog.objects.filter(organization=request.user.organization)
    if not is_manager_or_admin(request.user):
        logs = logs.filter(user=request.user)
    log = get_object_or_404(logs, pk=pk)
    serializer = AuditLogSerializer(log)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def event_feed(request):
    """
    Realtime events of the organization after ``since``.

    Clients keep ``last_id`` from the response and pass it back as ``since``.
    """
    try:
        since_id = int(request.query_params.get('since', 0))
    except (TypeError, ValueError):
        return Response({'error': 'since must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

    events = get_events_since(request.user.organization, since_id)
    last_id = events[-1].id if events else since_id
    return Response({
        'events': RealtimeEventSerializer(events, many=True).data,
        'last_id': last_id,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def global_search(request):
    """
    Search across the organization's records.

    Returns one group per record type, each capped at 20 results.
    """
    from fieldmanager.fleet.models import Vehicle
    from fieldmanager.scheduling.models import CalendarJob
    from fieldmanager.crm.models import Customer
    from fieldmanager.files.models import FileItem, Folder
    from fieldmanager.files.permissions import filter_visible
    from fieldmanager.techinventory.models import Part
    from fieldmanager.tutorials.models import Tutorial

    query = request.query_params.get('q', '').strip()
    results = {
        'vehicles': [],
        'calendar_jobs': [],
        'customers': [],
        'files': [],
        'folders': [],
        'parts': [],
        'tutorials': [],
    }
    if not query:
        return Response({'query': query, 'results': results})

    organization = request.user.organization
    limit = SEARCH_RESULTS_LIMIT

    try:
        vehicles = Vehicle.objects.filter(organization=organization).filter(
            Q(vehicle_number__icontains=query) | Q(license_plate__icontains=query) |
            Q(make__icontains=query) | Q(model__icontains=query) | Q(vin__icontains=query)
        )[:limit]
        results['vehicles'] = [
            {'id': v.id, 'vehicle_number': v.vehicle_number, 'license_plate': v.license_plate,
             'make': v.make, 'model': v.model, 'status': v.status}
            for v in vehicles
        ]

        jobs = CalendarJob.objects.filter(organization=organization).filter(
            Q(title__icontains=query) | Q(location__icontains=query) | Q(description__icontains=query)
        )[:limit]
        results['calendar_jobs'] = [
            {'id': j.id, 'title': j.title, 'start_date': j.start_date, 'status': j.status}
            for j in jobs
        ]

        customers = Customer.objects.filter(organization=organization).filter(
            Q(name__icontains=query) | Q(email__icontains=query) | Q(phone__icontains=query)
        )[:limit]
        results['customers'] = [
            {'id': c.id, 'name': c.name, 'email': c.email, 'phone': c.phone}
            for c in customers
        ]

        files = FileItem.objects.select_related('folder').filter(organization=organization).filter(
            Q(original_name__icontains=query) | Q(description__icontains=query)
        )
        files = filter_visible(request.user, files, lambda f: f.folder)[:limit]
        results['files'] = [
            {'id': f.id, 'name': f.original_name, 'folder_id': f.folder_id, 'file_type': f.file_type}
            for f in files
        ]

        folders = Folder.objects.filter(organization=organization, name__icontains=query)
        folders = filter_visible(request.user, folders, lambda f: f)[:limit]
        results['folders'] = [
            {'id': f.id, 'name': f.name, 'parent_id': f.parent_id}
            for f in folders
        ]

        parts = Part.objects.filter(organization=organization).filter(
            Q(name__icontains=query) | Q(sku__icontains=query)
        )[:limit]
        results['parts'] = [
            {'id': p.id, 'name': p.name, 'sku': p.sku, 'current_stock': p.current_stock}
            for p in parts
        ]

        tutorials = Tutorial.objects.filter(
            Q(organization__isnull=True) | Q(organization=organization), is_published=True
        ).filter(Q(title__icontains=query) | Q(description__icontains=query))[:limit]
        results['tutorials'] = [
            {'id': t.id, 'title': t.title, 'slug': t.slug, 'type': t.type}
            for t in tutorials
        ]
    except Exception as e:
        logger.error(f"Unexpected error in global_search: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response({'query': query, 'results': results})
