import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.cache import cache
from django.db import IntegrityError, transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from fieldmanager.core.cache_utils import make_namespaced_key, VEHICLES_NAMESPACE, VEHICLES_LIST_CACHE_TTL
from fieldmanager.core.events import broadcast_event
from fieldmanager.core.utils import create_audit_log, is_manager_or_admin, organization_required
from .models import Vehicle, MaintenanceInterval, MaintenanceRecord, GPSSettings
from .serializers import (
    VehicleSerializer, MaintenanceIntervalSerializer, MaintenanceRecordSerializer,
    ServiceCompletionSerializer, GPSSettingsSerializer
)
from .filters import VehicleFilter
from .maintenance import evaluate_interval

logger = logging.getLogger('fieldmanager.fleet')


def _interval_rows(intervals, today):
    """Serialized intervals, most urgent first"""
    rows = []
    for interval in intervals:
        due = evaluate_interval(interval, today)
        data = MaintenanceIntervalSerializer(interval).data
        rows.append((due.status.urgency, due.days_remaining if due.days_remaining is not None else 10 ** 6, data))
    rows.sort(key=lambda row: (row[0], row[1]))
    return [row[2] for row in rows]


# Vehicle views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def vehicle_list_create(request):
    """List all vehicles or create a new vehicle (create requires manager)"""
    organization = request.user.organization
    try:
        if request.method == 'GET':
            cache_key = make_namespaced_key(VEHICLES_NAMESPACE, organization.id, **request.query_params.dict())
            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache hit for vehicle list (organization {organization.id})")
                return Response(cached_data)

            queryset = Vehicle.objects.select_related('assigned_to').filter(organization=organization)
            filterset = VehicleFilter(request.query_params, queryset=queryset)
            response_data = VehicleSerializer(filterset.qs, many=True).data

            cache.set(cache_key, response_data, VEHICLES_LIST_CACHE_TTL)
            return Response(response_data)

        if not is_manager_or_admin(request.user):
            logger.warning(f"User {request.user.username} attempted to create vehicle without manager privileges")
            return Response({'error': 'Only managers can add vehicles'}, status=status.HTTP_403_FORBIDDEN)

        serializer = VehicleSerializer(data=request.data, context={'organization': organization})
        if serializer.is_valid():
            try:
                with transaction.atomic():
                    vehicle = serializer.save(organization=organization)
            except IntegrityError as e:
                logger.error(f"IntegrityError creating vehicle: {str(e)}", exc_info=True)
                return Response({'error': 'A vehicle with this number already exists'}, status=status.HTTP_400_BAD_REQUEST)
            logger.info(f"Vehicle '{vehicle.vehicle_number}' created by {request.user.username}")
            create_audit_log(request, 'create', 'Vehicle', vehicle.id, object_name=vehicle.vehicle_number)
            broadcast_event(organization, 'vehicle_updated', {'vehicle_id': vehicle.id, 'action': 'created'})
            return Response(serializer.data, status=status.HTTP_201_CREATED)

        logger.warning(f"Vehicle creation validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Unexpected error in vehicle_list_create: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def vehicle_detail(request, pk):
    """Retrieve, update or delete a vehicle (update/delete requires manager)"""
    organization = request.user.organization
    vehicle = get_object_or_404(Vehicle, pk=pk, organization=organization)

    if request.method == 'GET':
        return Response(VehicleSerializer(vehicle).data)

    if not is_manager_or_admin(request.user):
        logger.warning(f"User {request.user.username} attempted to modify vehicle {pk} without manager privileges")
        return Response({'error': 'Only managers can modify vehicles'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = VehicleSerializer(vehicle, data=request.data, partial=request.method == 'PATCH',
                                       context={'organization': organization})
        if serializer.is_valid():
            serializer.save()
            logger.info(f"Vehicle {pk} updated by {request.user.username}")
            create_audit_log(request, 'update', 'Vehicle', vehicle.id, changes=request.data,
                             object_name=vehicle.vehicle_number)
            broadcast_event(organization, 'vehicle_updated', {'vehicle_id': vehicle.id, 'action': 'updated'})
            return Response(serializer.data)
        logger.warning(f"Vehicle update validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        vehicle_id = vehicle.id
        create_audit_log(request, 'delete', 'Vehicle', vehicle_id, object_name=vehicle.vehicle_number)
        vehicle.delete()
        logger.info(f"Vehicle {pk} deleted by {request.user.username}")
        broadcast_event(organization, 'vehicle_updated', {'vehicle_id': vehicle_id, 'action': 'deleted'})
        return Response(status=status.HTTP_204_NO_CONTENT)


# Maintenance views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def vehicle_maintenance(request, pk):
    """
    Maintenance intervals of a vehicle with their due status (GET),
    or add a new interval (POST, managers only).
    """
    organization = request.user.organization
    vehicle = get_object_or_404(Vehicle, pk=pk, organization=organization)

    if request.method == 'GET':
        intervals = vehicle.maintenance_intervals.select_related('vehicle')
        return Response({
            'vehicle': VehicleSerializer(vehicle).data,
            'intervals': _interval_rows(intervals, timezone.localdate()),
        })

    if not is_manager_or_admin(request.user):
        return Response({'error': 'Only managers can manage maintenance schedules'}, status=status.HTTP_403_FORBIDDEN)

    serializer = MaintenanceIntervalSerializer(data=request.data)
    if serializer.is_valid():
        interval = serializer.save(vehicle=vehicle)
        logger.info(f"Maintenance interval '{interval.name}' added to vehicle {vehicle.vehicle_number}")
        create_audit_log(request, 'create', 'MaintenanceInterval', interval.id, object_name=interval.name,
                         object_reference=vehicle.vehicle_number)
        broadcast_event(organization, 'maintenance_updated', {'vehicle_id': vehicle.id, 'interval_id': interval.id})
        return Response(MaintenanceIntervalSerializer(interval).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def maintenance_interval_detail(request, pk):
    """Retrieve, update or delete a maintenance interval"""
    organization = request.user.organization
    interval = get_object_or_404(
        MaintenanceInterval.objects.select_related('vehicle'), pk=pk, vehicle__organization=organization
    )

    if request.method == 'GET':
        return Response(MaintenanceIntervalSerializer(interval).data)

    if not is_manager_or_admin(request.user):
        return Response({'error': 'Only managers can manage maintenance schedules'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = MaintenanceIntervalSerializer(interval, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'MaintenanceInterval', interval.id, changes=request.data,
                             object_name=interval.name)
            broadcast_event(organization, 'maintenance_updated', {'vehicle_id': interval.vehicle_id, 'interval_id': interval.id})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        vehicle_id = interval.vehicle_id
        create_audit_log(request, 'delete', 'MaintenanceInterval', interval.id, object_name=interval.name)
        interval.delete()
        broadcast_event(organization, 'maintenance_updated', {'vehicle_id': vehicle_id})
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def maintenance_interval_complete(request, pk):
    """
    Log a completed service for an interval.

    Service date defaults to today and mileage to the vehicle's current
    mileage. A higher service mileage also moves the vehicle's odometer.
    """
    organization = request.user.organization
    interval = get_object_or_404(
        MaintenanceInterval.objects.select_related('vehicle'), pk=pk, vehicle__organization=organization
    )
    serializer = ServiceCompletionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    service_date = data.get('service_date') or timezone.localdate()
    if service_date > timezone.localdate():
        return Response({'error': 'Service date cannot be in the future'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        with transaction.atomic():
            vehicle = Vehicle.objects.select_for_update().get(pk=interval.vehicle_id)
            mileage = data.get('mileage', vehicle.current_mileage)

            record = MaintenanceRecord.objects.create(
                vehicle=vehicle,
                interval=interval,
                service_date=service_date,
                mileage=mileage,
                cost=data.get('cost'),
                notes=data.get('notes', ''),
                performed_by=request.user,
            )
            interval.last_service_date = service_date
            interval.last_service_mileage = mileage
            interval.save(update_fields=['last_service_date', 'last_service_mileage', 'updated_at'])

            if mileage is not None and mileage > vehicle.current_mileage:
                vehicle.current_mileage = mileage
                vehicle.save(update_fields=['current_mileage', 'updated_at'])
            interval.vehicle = vehicle

        logger.info(f"Service '{interval.name}' completed on vehicle {vehicle.vehicle_number} by {request.user.username}")
        create_audit_log(request, 'service_complete', 'MaintenanceInterval', interval.id,
                         changes={'service_date': str(service_date), 'mileage': mileage},
                         object_name=interval.name, object_reference=vehicle.vehicle_number)
        broadcast_event(organization, 'maintenance_updated', {'vehicle_id': vehicle.id, 'interval_id': interval.id})
        return Response({
            'record': MaintenanceRecordSerializer(record).data,
            'interval': MaintenanceIntervalSerializer(interval).data,
        }, status=status.HTTP_201_CREATED)
    except Exception as e:
        logger.error(f"Unexpected error completing service for interval {pk}: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def maintenance_interval_records(request, pk):
    """Service history of an interval"""
    interval = get_object_or_404(MaintenanceInterval, pk=pk, vehicle__organization=request.user.organization)
    records = interval.records.select_related('interval', 'performed_by')
    return Response(MaintenanceRecordSerializer(records, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@organization_required
def maintenance_due(request):
    """Overdue and due-soon intervals across the organization's active vehicles"""
    today = timezone.localdate()
    intervals = MaintenanceInterval.objects.select_related('vehicle').filter(
        vehicle__organization=request.user.organization,
        vehicle__is_active=True,
        is_active=True,
    )
    due_intervals = [interval for interval in intervals if evaluate_interval(interval, today).is_due]
    rows = _interval_rows(due_intervals, today)
    return Response({
        'count': len(rows),
        'overdue': sum(1 for row in rows if row['service_due']['status'] == 'overdue'),
        'due_soon': sum(1 for row in rows if row['service_due']['status'] == 'due_soon'),
        'intervals': rows,
    })


# GPS settings
@api_view(['GET', 'POST', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
@organization_required
def gps_settings(request):
    """Read or update the organization's GPS settings (created with defaults on first access)"""
    organization = request.user.organization
    gps, created = GPSSettings.objects.get_or_create(organization=organization)
    if created:
        logger.info(f"Created default GPS settings for organization {organization.id}")

    if request.method == 'GET':
        return Response(GPSSettingsSerializer(gps).data)

    if not is_manager_or_admin(request.user):
        return Response({'error': 'Only managers can change GPS settings'}, status=status.HTTP_403_FORBIDDEN)

    serializer = GPSSettingsSerializer(gps, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        changed = [key for key in request.data.keys() if key != 'onestep_gps_api_key']
        if 'onestep_gps_api_key' in request.data:
            changed.append('onestep_gps_api_key (hidden)')
        create_audit_log(request, 'update', 'GPSSettings', gps.id, changes={'fields': changed})
        broadcast_event(organization, 'gps_settings_updated', {})
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
