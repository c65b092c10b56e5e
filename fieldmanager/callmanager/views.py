import logging
from decimal import Decimal
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from fieldmanager.core.events import broadcast_event
from fieldmanager.core.models import Organization
from fieldmanager.core.utils import create_audit_log, is_saas_admin, organization_required
from .models import PhoneNumber
from .serializers import PhoneNumberSerializer, ProvisionPhoneSerializer, CallManagerOrganizationSerializer

logger = logging.getLogger('fieldmanager.callmanager')


def _saas_admin_only(request):
    if not is_saas_admin(request.user):
        logger.warning(f"User {request.user.username} denied SaaS admin access to {request.path}")
        return Response({'error': 'SaaS admin access required'}, status=status.HTTP_403_FORBIDDEN)
    return None


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def organization_list(request):
    """Organizations with their call manager flag and active number counts"""
    denied = _saas_admin_only(request)
    if denied:
        return denied
    organizations = Organization.objects.annotate(
        active_phone_numbers=Count('phone_numbers', filter=Q(phone_numbers__is_active=True), distinct=True),
        user_count=Count('users', distinct=True),
    ).order_by('name')
    search = request.query_params.get('search')
    if search:
        organizations = organizations.filter(Q(name__icontains=search) | Q(email__icontains=search))
    if request.query_params.get('has_call_manager') is not None:
        organizations = organizations.filter(
            has_call_manager=request.query_params['has_call_manager'].lower() in ('true', '1')
        )
    return Response(CallManagerOrganizationSerializer(organizations, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def phone_number_list(request):
    """Every provisioned number, optionally for one organization"""
    denied = _saas_admin_only(request)
    if denied:
        return denied
    numbers = PhoneNumber.objects.select_related('organization', 'assigned_to')
    organization_id = request.query_params.get('organization_id')
    if organization_id:
        numbers = numbers.filter(organization_id=organization_id)
    if request.query_params.get('include_released', '').lower() not in ('true', '1'):
        numbers = numbers.filter(is_active=True)
    return Response(PhoneNumberSerializer(numbers, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def provision_phone(request):
    """
    Provision a phone number for an organization.

    The organization needs the call manager feature unless force is set,
    which also turns the feature on. A previously released number is
    reactivated instead of duplicated, with a fresh provisioning date and no
    usage carried over. A number that is still active is a 409.
    """
    denied = _saas_admin_only(request)
    if denied:
        return denied
    serializer = ProvisionPhoneSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = dict(serializer.validated_data)
    organization = get_object_or_404(Organization, pk=data.pop('organization_id'))
    force = data.pop('force', False)

    if not organization.has_call_manager and not force:
        return Response({'error': 'Call manager is not enabled for this organization'},
                        status=status.HTTP_400_BAD_REQUEST)

    try:
        with transaction.atomic():
            phone = PhoneNumber.objects.select_for_update().filter(phone_number=data['phone_number']).first()
            if phone is not None and phone.is_active:
                return Response({'error': 'This phone number is already provisioned'},
                                status=status.HTTP_409_CONFLICT)

            if not organization.has_call_manager:
                organization.has_call_manager = True
                organization.save(update_fields=['has_call_manager', 'updated_at'])

            if phone is None:
                phone = PhoneNumber(phone_number=data['phone_number'])
            else:
                phone.provisioned_at = timezone.now()
                phone.usage_cost = Decimal('0.00')
            for field, value in data.items():
                setattr(phone, field, value)
            phone.organization = organization
            phone.is_active = True
            phone.is_call_enabled = True
            phone.is_sms_enabled = True
            phone.assigned_to = None
            phone.released_at = None
            phone.provisioned_by = request.user
            phone.save()
    except Exception as e:
        logger.error(f"Error provisioning phone number {data.get('phone_number')}: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Phone number {phone.phone_number} provisioned to organization {organization.id} by {request.user.username}")
    create_audit_log(request, 'phone_provision', 'PhoneNumber', phone.id, organization=organization,
                     object_reference=phone.phone_number, object_name=organization.name)
    broadcast_event(organization, 'phone_number_updated', {'phone_number_id': phone.id, 'action': 'provisioned'})
    return Response(PhoneNumberSerializer(phone).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def phone_number_detail(request, pk):
    """Retrieve or update a provisioned number (assignment, labels, costs, toggles)"""
    denied = _saas_admin_only(request)
    if denied:
        return denied
    phone = get_object_or_404(PhoneNumber.objects.select_related('organization'), pk=pk)

    if request.method == 'GET':
        return Response(PhoneNumberSerializer(phone).data)

    serializer = PhoneNumberSerializer(phone, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        create_audit_log(request, 'update', 'PhoneNumber', phone.id, changes=request.data,
                         organization=phone.organization, object_reference=phone.phone_number)
        broadcast_event(phone.organization, 'phone_number_updated', {'phone_number_id': phone.id, 'action': 'updated'})
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def release_phone(request, pk):
    """Release a number; the record stays for billing history"""
    denied = _saas_admin_only(request)
    if denied:
        return denied
    with transaction.atomic():
        phone = get_object_or_404(PhoneNumber.objects.select_for_update().select_related('organization'), pk=pk)
        if not phone.is_active:
            return Response({'error': 'Phone number has already been released'}, status=status.HTTP_409_CONFLICT)
        phone.is_active = False
        phone.is_call_enabled = False
        phone.is_sms_enabled = False
        phone.assigned_to = None
        phone.released_at = timezone.now()
        phone.save()

    logger.info(f"Phone number {phone.phone_number} released by {request.user.username}")
    create_audit_log(request, 'phone_release', 'PhoneNumber', phone.id, organization=phone.organization,
                     object_reference=phone.phone_number, object_name=phone.organization.name)
    broadcast_event(phone.organization, 'phone_number_updated', {'phone_number_id': phone.id, 'action': 'released'})
    return Response(PhoneNumberSerializer(phone).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@organization_required
def organization_phone_numbers(request):
    """The requesting organization's active numbers"""
    organization = request.user.organization
    numbers = PhoneNumber.objects.select_related('assigned_to').filter(organization=organization, is_active=True)
    return Response({
        'enabled': organization.has_call_manager,
        'phone_numbers': PhoneNumberSerializer(numbers, many=True).data,
    })
