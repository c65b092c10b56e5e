import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date
from fieldmanager.core.cache_signals import suspend_cache_signals
from fieldmanager.core.cache_utils import invalidate_namespace, REPORTS_NAMESPACE
from fieldmanager.core.events import broadcast_event
from fieldmanager.core.models import User
from fieldmanager.core.utils import create_audit_log, is_manager_or_admin, organization_required
from fieldmanager.fleet.models import Vehicle
from .models import Part, TechnicianInventory, DailyInventoryVerification
from .serializers import (
    PartSerializer, TechnicianInventorySerializer, InventoryAssignSerializer, BulkAssignSerializer,
    InventoryTransactionInputSerializer, TechnicianInventoryTransactionSerializer,
    VerificationSubmitSerializer, DailyInventoryVerificationSerializer,
)
from .stock import InventoryError, apply_transaction, assign_part, evaluate_counts, is_low_stock

logger = logging.getLogger('fieldmanager.techinventory')

TRANSACTION_AUDIT_ACTIONS = {
    'use': 'inventory_use',
    'restock': 'inventory_restock',
    'return': 'inventory_return',
    'adjustment': 'inventory_adjust',
}


def _manager_only(request, message='Only managers can manage technician inventory'):
    if not is_manager_or_admin(request.user):
        logger.warning(f"User {request.user.username} denied on {request.path}")
        return Response({'error': message}, status=status.HTTP_403_FORBIDDEN)
    return None


def _inventory_queryset(organization):
    return TechnicianInventory.objects.select_related('part', 'user', 'vehicle').filter(organization=organization)


def _get_item_for(request, pk):
    """Inventory item the requesting user may work with (own items, any item for managers)"""
    queryset = _inventory_queryset(request.user.organization)
    if not is_manager_or_admin(request.user):
        queryset = queryset.filter(user=request.user)
    return get_object_or_404(queryset, pk=pk)


def _parse_bool(value):
    return str(value).lower() in ('true', '1')


# Technician views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
@organization_required
def my_inventory(request):
    """The requesting technician's active inventory"""
    items = _inventory_queryset(request.user.organization).filter(user=request.user, is_active=True)
    if _parse_bool(request.query_params.get('low_stock', '')):
        items = items.filter(is_low_stock=True)
    data = TechnicianInventorySerializer(items, many=True).data
    return Response({
        'items': data,
        'total_items': len(data),
        'low_stock_count': sum(1 for item in data if item['is_low_stock']),
    })


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def inventory_item(request, pk):
    """
    Retrieve an inventory item or record a quantity change.

    PATCH body: type (use, restock, return, adjustment), quantity, notes.
    """
    item = _get_item_for(request, pk)
    if request.method == 'GET':
        return Response(TechnicianInventorySerializer(item).data)

    serializer = InventoryTransactionInputSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    transaction_type = serializer.validated_data['type']
    if not item.is_active:
        return Response({'error': 'This inventory item is no longer active'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        log = apply_transaction(item, transaction_type, serializer.validated_data['quantity'],
                                performed_by=request.user, notes=serializer.validated_data['notes'])
    except InventoryError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request, TRANSACTION_AUDIT_ACTIONS[transaction_type], 'TechnicianInventory', item.id,
                     changes={'previous_quantity': log.previous_quantity, 'new_quantity': log.new_quantity},
                     object_name=item.part.name)
    broadcast_event(item.organization, 'inventory_updated', {'inventory_id': item.id, 'user_id': item.user_id})
    return Response({
        'item': TechnicianInventorySerializer(item).data,
        'transaction': TechnicianInventoryTransactionSerializer(log).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_transactions(request, pk):
    """Transaction history of an inventory item, newest first"""
    item = _get_item_for(request, pk)
    transactions = item.transactions.select_related('inventory__part', 'performed_by')
    return Response(TechnicianInventoryTransactionSerializer(transactions, many=True).data)


# Parts & supplies
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def part_list_create(request):
    """List parts and supplies or add one (managers only)"""
    organization = request.user.organization
    if request.method == 'GET':
        parts = Part.objects.filter(organization=organization).annotate(
            assigned_count=Count('technician_inventory', filter=Q(technician_inventory__is_active=True))
        )
        if not _parse_bool(request.query_params.get('include_inactive', '')):
            parts = parts.filter(is_active=True)
        search = request.query_params.get('search')
        if search:
            parts = parts.filter(Q(name__icontains=search) | Q(sku__icontains=search) | Q(category__icontains=search))
        category = request.query_params.get('category')
        if category:
            parts = parts.filter(category__iexact=category)
        return Response(PartSerializer(parts, many=True).data)

    denied = _manager_only(request, 'Only managers can add parts')
    if denied:
        return denied
    serializer = PartSerializer(data=request.data, context={'organization': organization})
    if serializer.is_valid():
        part = serializer.save(organization=organization)
        logger.info(f"Part '{part.name}' created by {request.user.username}")
        create_audit_log(request, 'create', 'Part', part.id, object_name=part.name, object_reference=part.sku)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def part_detail(request, pk):
    """
    Retrieve, update or delete a part.

    Parts still assigned to technicians are deactivated instead of deleted.
    """
    organization = request.user.organization
    part = get_object_or_404(Part, pk=pk, organization=organization)

    if request.method == 'GET':
        return Response(PartSerializer(part).data)

    denied = _manager_only(request, 'Only managers can change parts')
    if denied:
        return denied

    if request.method in ('PUT', 'PATCH'):
        serializer = PartSerializer(part, data=request.data, partial=request.method == 'PATCH',
                                    context={'organization': organization})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'Part', part.id, changes=request.data, object_name=part.name)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if part.technician_inventory.filter(is_active=True).exists():
        part.is_active = False
        part.save(update_fields=['is_active', 'updated_at'])
        create_audit_log(request, 'update', 'Part', part.id, changes={'is_active': False}, object_name=part.name)
        return Response({
            'message': 'Part is assigned to technicians and was deactivated instead of deleted',
            'part': PartSerializer(part).data,
        })
    create_audit_log(request, 'delete', 'Part', part.id, object_name=part.name)
    part.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Admin views
def _assign(request, organization, user, part, quantity, **options):
    item, created = assign_part(organization, user, part, quantity, performed_by=request.user, **options)
    create_audit_log(request, 'inventory_assign', 'TechnicianInventory', item.id,
                     changes={'user_id': user.id, 'part_id': part.id, 'assigned_quantity': quantity,
                              'created': created},
                     object_name=part.name)
    return item, created


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def admin_inventory_list_create(request):
    """
    Every technician's inventory, or assign a part to a technician.

    Re-assigning a part the technician already carries updates the
    assignment and resets the current quantity.
    """
    denied = _manager_only(request)
    if denied:
        return denied
    organization = request.user.organization

    if request.method == 'GET':
        items = _inventory_queryset(organization)
        if not _parse_bool(request.query_params.get('include_inactive', '')):
            items = items.filter(is_active=True)
        user_id = request.query_params.get('user_id')
        if user_id:
            items = items.filter(user_id=user_id)
        if _parse_bool(request.query_params.get('low_stock', '')):
            items = items.filter(is_low_stock=True)
        return Response(TechnicianInventorySerializer(items.order_by('user__username', 'part__name'), many=True).data)

    serializer = InventoryAssignSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    user = get_object_or_404(User, pk=data['user'], organization=organization)
    part = get_object_or_404(Part, pk=data['part'], organization=organization, is_active=True)
    vehicle = None
    if data.get('vehicle'):
        vehicle = get_object_or_404(Vehicle, pk=data['vehicle'], organization=organization)

    item, created = _assign(request, organization, user, part, data['assigned_quantity'], vehicle=vehicle,
                            min_quantity=data.get('min_quantity'), location=data.get('location'),
                            notes=data.get('notes'))
    broadcast_event(organization, 'inventory_updated', {'inventory_id': item.id, 'user_id': user.id})
    return Response(TechnicianInventorySerializer(item).data,
                    status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def admin_inventory_detail(request, pk):
    """
    Retrieve, update or remove an assignment.

    A current_quantity in the body is applied as an adjustment. DELETE
    deactivates the item and keeps its history.
    """
    denied = _manager_only(request)
    if denied:
        return denied
    organization = request.user.organization
    item = get_object_or_404(_inventory_queryset(organization), pk=pk)

    if request.method == 'GET':
        return Response(TechnicianInventorySerializer(item).data)

    if request.method == 'DELETE':
        item.is_active = False
        item.save(update_fields=['is_active', 'updated_at'])
        create_audit_log(request, 'delete', 'TechnicianInventory', item.id, object_name=item.part.name)
        broadcast_event(organization, 'inventory_updated', {'inventory_id': item.id, 'user_id': item.user_id})
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = TechnicianInventorySerializer(item, data=request.data, partial=True,
                                               context={'organization': organization})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    new_quantity = request.data.get('current_quantity')
    if new_quantity is not None:
        try:
            new_quantity = int(new_quantity)
        except (TypeError, ValueError):
            return Response({'current_quantity': ['A valid integer is required.']}, status=status.HTTP_400_BAD_REQUEST)
        if new_quantity < 0:
            return Response({'current_quantity': ['Quantity cannot be negative.']}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        item = serializer.save()
        item.is_low_stock = is_low_stock(item.current_quantity, item.min_quantity)
        item.save(update_fields=['is_low_stock', 'updated_at'])
        if new_quantity is not None and new_quantity != item.current_quantity:
            apply_transaction(item, 'adjustment', new_quantity, performed_by=request.user,
                              notes=request.data.get('notes', '') or 'Adjusted by manager')

    create_audit_log(request, 'update', 'TechnicianInventory', item.id, changes=request.data, object_name=item.part.name)
    broadcast_event(organization, 'inventory_updated', {'inventory_id': item.id, 'user_id': item.user_id})
    return Response(TechnicianInventorySerializer(item).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@organization_required
def admin_bulk_assign(request):
    """Assign several parts to several technicians in one go"""
    denied = _manager_only(request)
    if denied:
        return denied
    organization = request.user.organization
    serializer = BulkAssignSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user_ids = set(serializer.validated_data['user_ids'])
    users = list(User.objects.filter(pk__in=user_ids, organization=organization))
    if len(users) != len(user_ids):
        return Response({'error': 'One or more users were not found'}, status=status.HTTP_400_BAD_REQUEST)
    entries = serializer.validated_data['items']
    parts = Part.objects.in_bulk([entry['part_id'] for entry in entries])
    if any(entry['part_id'] not in parts or parts[entry['part_id']].organization_id != organization.id
           for entry in entries):
        return Response({'error': 'One or more parts were not found'}, status=status.HTTP_400_BAD_REQUEST)

    created_count = 0
    updated_count = 0
    try:
        with suspend_cache_signals(), transaction.atomic():
            for user in users:
                for entry in entries:
                    _, created = _assign(request, organization, user, parts[entry['part_id']], entry['quantity'],
                                         min_quantity=entry.get('min_quantity'))
                    if created:
                        created_count += 1
                    else:
                        updated_count += 1
        invalidate_namespace(REPORTS_NAMESPACE)
    except Exception as e:
        logger.error(f"Bulk inventory assignment failed: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Bulk assigned {len(entries)} parts to {len(users)} technicians by {request.user.username}")
    broadcast_event(organization, 'inventory_updated', {'user_ids': sorted(user_ids)})
    return Response({'created': created_count, 'updated': updated_count}, status=status.HTTP_201_CREATED)


# Daily verification
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def daily_verification(request):
    """
    Today's inventory count for the requesting technician.

    GET returns the stored verification (or null) and the items to count.
    POST submits counts; mismatched items are corrected with an adjustment
    and resubmitting on the same day replaces the earlier result.
    """
    organization = request.user.organization
    today = timezone.localdate()
    items = _inventory_queryset(organization).filter(user=request.user, is_active=True)

    if request.method == 'GET':
        verification = DailyInventoryVerification.objects.filter(user=request.user, verification_date=today).first()
        return Response({
            'date': today.isoformat(),
            'verification': DailyInventoryVerificationSerializer(verification).data if verification else None,
            'items': TechnicianInventorySerializer(items, many=True).data,
        })

    serializer = VerificationSubmitSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    vehicle = None
    if data.get('vehicle'):
        vehicle = get_object_or_404(Vehicle, pk=data['vehicle'], organization=organization)

    items_by_part = {item.part_id: item for item in items}
    unknown = [entry['part_id'] for entry in data['verification_details'] if entry['part_id'] not in items_by_part]
    if unknown:
        return Response({'error': f"Parts not in your inventory: {', '.join(str(p) for p in unknown)}"},
                        status=status.HTTP_400_BAD_REQUEST)

    expected = {part_id: item.current_quantity for part_id, item in items_by_part.items()}
    details, discrepancy_count = evaluate_counts(expected, data['verification_details'])

    with transaction.atomic():
        for detail in details:
            if not detail['matches']:
                apply_transaction(items_by_part[detail['part_id']], 'adjustment', detail['actual_qty'],
                                  performed_by=request.user, notes='Daily inventory verification')
        verification, created = DailyInventoryVerification.objects.update_or_create(
            user=request.user,
            verification_date=today,
            defaults={
                'organization': organization,
                'vehicle': vehicle,
                'status': 'discrepancy' if discrepancy_count else 'verified',
                'is_complete': True,
                'completed_at': timezone.now(),
                'items_checked': len(details),
                'total_items': len(items_by_part),
                'discrepancy_count': discrepancy_count,
                'verification_details': details,
                'photo_urls': data.get('photo_urls', []),
                'notes': data.get('notes', ''),
            },
        )

    logger.info(f"Daily inventory verification by {request.user.username}: {discrepancy_count} discrepancies")
    create_audit_log(request, 'inventory_verify', 'DailyInventoryVerification', verification.id,
                     changes={'discrepancy_count': discrepancy_count, 'items_checked': len(details)},
                     object_name=str(today))
    broadcast_event(organization, 'inventory_verified', {'user_id': request.user.id, 'verification_id': verification.id})
    return Response(DailyInventoryVerificationSerializer(verification).data,
                    status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


def _parse_day(value):
    """Date from YYYY-MM-DD, None when malformed or impossible"""
    try:
        return parse_date(value)
    except ValueError:
        return None


def _requested_date(request):
    value = request.query_params.get('date')
    if not value:
        return timezone.localdate()
    return _parse_day(value)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@organization_required
def admin_verification_list(request):
    """Submitted verifications, filtered by date and user_id"""
    denied = _manager_only(request)
    if denied:
        return denied
    verifications = DailyInventoryVerification.objects.select_related('user', 'vehicle').filter(
        organization=request.user.organization
    )
    if request.query_params.get('date'):
        verification_date = _parse_day(request.query_params['date'])
        if verification_date is None:
            return Response({'error': 'date must be in YYYY-MM-DD format'}, status=status.HTTP_400_BAD_REQUEST)
        verifications = verifications.filter(verification_date=verification_date)
    user_id = request.query_params.get('user_id')
    if user_id:
        try:
            verifications = verifications.filter(user_id=int(user_id))
        except ValueError:
            return Response({'error': 'user_id must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    if request.query_params.get('status'):
        verifications = verifications.filter(status=request.query_params['status'])
    return Response(DailyInventoryVerificationSerializer(verifications, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@organization_required
def admin_verification_summary(request):
    """Which technicians with inventory have verified for a day (today by default)"""
    denied = _manager_only(request)
    if denied:
        return denied
    organization = request.user.organization
    summary_date = _requested_date(request)
    if summary_date is None:
        return Response({'error': 'date must be in YYYY-MM-DD format'}, status=status.HTTP_400_BAD_REQUEST)

    technician_ids = TechnicianInventory.objects.filter(
        organization=organization, is_active=True
    ).values_list('user_id', flat=True).distinct()
    technicians = User.objects.filter(pk__in=list(technician_ids)).order_by('username')
    verifications = {
        v.user_id: v for v in DailyInventoryVerification.objects.filter(
            organization=organization, verification_date=summary_date, is_complete=True
        )
    }

    rows = []
    for technician in technicians:
        verification = verifications.get(technician.id)
        rows.append({
            'user_id': technician.id,
            'name': technician.display_name,
            'status': verification.status if verification else 'pending',
            'completed_at': verification.completed_at if verification else None,
            'discrepancy_count': verification.discrepancy_count if verification else 0,
        })

    completed = sum(1 for row in rows if row['status'] != 'pending')
    return Response({
        'date': summary_date.isoformat(),
        'total_technicians': len(rows),
        'completed': completed,
        'pending': len(rows) - completed,
        'discrepancies': sum(1 for row in rows if row['status'] == 'discrepancy'),
        'technicians': rows,
    })
