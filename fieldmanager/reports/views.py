import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Count
from django.utils import timezone
from fieldmanager.core.cache_utils import cached_query, REPORTS_NAMESPACE, REPORTS_CACHE_TTL
from fieldmanager.core.utils import is_manager_or_admin, organization_required
from fieldmanager.crm.models import Customer, Lead, Invoice
from fieldmanager.expenses.models import Expense
from fieldmanager.fleet.maintenance import Status, evaluate_interval
from fieldmanager.fleet.models import Vehicle, MaintenanceInterval
from fieldmanager.scheduling.models import CalendarJob
from fieldmanager.techinventory.models import TechnicianInventory, DailyInventoryVerification
from . import aggregation

logger = logging.getLogger('fieldmanager.reports')


def _check_access(request):
    if not is_manager_or_admin(request.user):
        logger.warning(f"User {request.user.username} denied access to reports")
        return Response({'error': 'Only managers can view reports'}, status=status.HTTP_403_FORBIDDEN)
    return None


def _time_range(request):
    time_range = request.query_params.get('range', aggregation.DEFAULT_TIME_RANGE)
    start = aggregation.range_start(time_range, timezone.localdate())
    return time_range, start


@cached_query(cache_ttl=REPORTS_CACHE_TTL, namespace=REPORTS_NAMESPACE)
def build_report_data(organization_id, time_range, today):
    start = aggregation.range_start(time_range, today)
    invoices = list(Invoice.objects.filter(
        organization_id=organization_id, created_at__date__gte=start, status__in=['paid', 'refunded']
    ).values('status', 'total', 'created_at'))
    leads = list(Lead.objects.filter(
        organization_id=organization_id, created_at__date__gte=start
    ).values('status', 'source', 'created_at'))
    expenses = list(Expense.objects.filter(
        organization_id=organization_id, expense_date__gte=start
    ).exclude(status='rejected').values('amount', 'expense_date'))
    customer_count = Customer.objects.filter(organization_id=organization_id, created_at__date__gte=start).count()

    return {
        'range': time_range,
        'start_date': start.isoformat(),
        'metrics': aggregation.summarize(invoices, leads, expenses, customer_count),
        'revenue': aggregation.revenue_by_month(invoices),
        'leads': aggregation.leads_by_month(leads),
        'expenses': aggregation.expenses_by_month(expenses),
        'close_rate': aggregation.close_rate_by_month(leads),
        'lead_sources': aggregation.lead_sources(leads),
    }


@cached_query(cache_ttl=REPORTS_CACHE_TTL, namespace=REPORTS_NAMESPACE)
def build_expenses_by_category(organization_id, time_range, today):
    start = aggregation.range_start(time_range, today)
    expenses = list(Expense.objects.filter(
        organization_id=organization_id, expense_date__gte=start
    ).exclude(status='rejected').values('amount', 'category__name', 'category__color'))
    categories = aggregation.totals_by_category(expenses)
    return {
        'range': time_range,
        'start_date': start.isoformat(),
        'total': round(sum(entry['amount'] for entry in categories), 2),
        'categories': categories,
    }


@cached_query(cache_ttl=REPORTS_CACHE_TTL, namespace=REPORTS_NAMESPACE)
def build_job_report(organization_id, time_range, today):
    start = aggregation.range_start(time_range, today)
    jobs = list(CalendarJob.objects.filter(
        organization_id=organization_id, start_date__date__gte=start
    ).values('status', 'priority', 'start_date'))
    completed_rows = [row for row in jobs if row['status'] in aggregation.JOB_DONE_STATUSES]

    return {
        'range': time_range,
        'start_date': start.isoformat(),
        'summary': aggregation.job_completion(jobs),
        'by_priority': {
            priority: sum(1 for row in jobs if row['priority'] == priority)
            for priority, _ in CalendarJob.PRIORITY_CHOICES
        },
        'scheduled_by_month': aggregation.count_by_month(jobs, 'start_date'),
        'completed_by_month': aggregation.count_by_month(completed_rows, 'start_date'),
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@organization_required
def report_data(request):
    """
    Consolidated dashboard metrics and chart series.

    Query params: range (3months, 6months, 12months; default 12months).
    """
    denied = _check_access(request)
    if denied:
        return denied
    try:
        time_range, _ = _time_range(request)
    except aggregation.InvalidTimeRange as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    try:
        data = build_report_data(request.user.organization_id, time_range, timezone.localdate())
    except Exception as e:
        logger.error(f"Error building report data: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@organization_required
def expenses_by_category(request):
    """Expense totals per category for a time range"""
    denied = _check_access(request)
    if denied:
        return denied
    try:
        time_range, _ = _time_range(request)
    except aggregation.InvalidTimeRange as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(build_expenses_by_category(request.user.organization_id, time_range, timezone.localdate()))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@organization_required
def job_report(request):
    """Calendar job volume and completion rate for a time range"""
    denied = _check_access(request)
    if denied:
        return denied
    try:
        time_range, _ = _time_range(request)
    except aggregation.InvalidTimeRange as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(build_job_report(request.user.organization_id, time_range, timezone.localdate()))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@organization_required
def fleet_report(request):
    """Vehicle counts by status and maintenance due counts"""
    denied = _check_access(request)
    if denied:
        return denied
    organization = request.user.organization
    today = timezone.localdate()

    vehicles = Vehicle.objects.filter(organization=organization, is_active=True)
    by_status = {row['status']: row['count'] for row in vehicles.values('status').annotate(count=Count('id'))}

    intervals = MaintenanceInterval.objects.select_related('vehicle').filter(
        vehicle__organization=organization, vehicle__is_active=True, is_active=True
    )
    statuses = [evaluate_interval(interval, today).status for interval in intervals]

    return Response({
        'total_vehicles': vehicles.count(),
        'by_status': {value: by_status.get(value, 0) for value, _ in Vehicle.STATUS_CHOICES},
        'maintenance': {
            'intervals': len(statuses),
            'overdue': statuses.count(Status.OVERDUE),
            'due_soon': statuses.count(Status.DUE_SOON),
            'ok': statuses.count(Status.OK),
            'unknown': statuses.count(Status.UNKNOWN),
        },
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@organization_required
def inventory_report(request):
    """Technician inventory low-stock counts and today's verification summary"""
    denied = _check_access(request)
    if denied:
        return denied
    organization = request.user.organization
    today = timezone.localdate()

    items = TechnicianInventory.objects.filter(organization=organization, is_active=True)
    technician_ids = set(items.values_list('user_id', flat=True))
    verifications = DailyInventoryVerification.objects.filter(
        organization=organization, verification_date=today, is_complete=True
    )
    completed = verifications.count()

    return Response({
        'total_items': items.count(),
        'low_stock_items': items.filter(is_low_stock=True).count(),
        'out_of_stock_items': items.filter(current_quantity=0).count(),
        'technicians': len(technician_ids),
        'verification': {
            'date': today.isoformat(),
            'completed': completed,
            'pending': max(len(technician_ids) - completed, 0),
            'discrepancies': verifications.filter(status='discrepancy').count(),
        },
    })
