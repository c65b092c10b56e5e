import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Q
from django.http import Http404
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date
from fieldmanager.core.events import broadcast_event
from fieldmanager.core.utils import create_audit_log, is_manager_or_admin, organization_required
from .models import CalendarJob, Project
from .serializers import CalendarJobSerializer, ProjectSerializer, ConvertToJobSerializer
from .filters import CalendarJobFilter
from . import calendar_grid

logger = logging.getLogger('fieldmanager.scheduling')


def _job_span(job):
    start = timezone.localtime(job.start_date).date()
    end = timezone.localtime(job.end_date).date() if job.end_date else None
    return start, end


# Calendar job views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def calendar_job_list_create(request):
    """List calendar jobs or schedule a new one"""
    organization = request.user.organization
    if request.method == 'GET':
        queryset = CalendarJob.objects.select_related('customer', 'lead', 'assigned_to').filter(
            organization=organization
        )
        filterset = CalendarJobFilter(request.query_params, queryset=queryset)
        return Response(CalendarJobSerializer(filterset.qs, many=True).data)

    serializer = CalendarJobSerializer(data=request.data, context={'organization': organization})
    if serializer.is_valid():
        job = serializer.save(organization=organization, created_by=request.user)
        logger.info(f"Calendar job '{job.title}' scheduled by {request.user.username}")
        create_audit_log(request, 'create', 'CalendarJob', job.id, object_name=job.title)
        broadcast_event(organization, 'calendar_job_updated', {'job_id': job.id, 'action': 'created'})
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    logger.warning(f"Calendar job validation failed: {serializer.errors}")
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def calendar_job_detail(request, pk):
    """Retrieve, update or delete a calendar job"""
    organization = request.user.organization
    job = get_object_or_404(CalendarJob, pk=pk, organization=organization)

    if request.method == 'GET':
        return Response(CalendarJobSerializer(job).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CalendarJobSerializer(job, data=request.data, partial=request.method == 'PATCH',
                                           context={'organization': organization})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'CalendarJob', job.id, changes=request.data, object_name=job.title)
            broadcast_event(organization, 'calendar_job_updated', {'job_id': job.id, 'action': 'updated'})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        job_id = job.id
        create_audit_log(request, 'delete', 'CalendarJob', job_id, object_name=job.title)
        job.delete()
        broadcast_event(organization, 'calendar_job_updated', {'job_id': job_id, 'action': 'deleted'})
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def calendar_job_convert(request, pk):
    """
    Convert a calendar job into a project.

    The project takes the job's dates and customer; name and description
    default to the job's title and description.
    """
    organization = request.user.organization
    serializer = ConvertToJobSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        with transaction.atomic():
            job = get_object_or_404(CalendarJob.objects.select_for_update(), pk=pk, organization=organization)
            if job.project_id or job.status == 'converted':
                return Response({'error': 'Calendar job has already been converted'}, status=status.HTTP_400_BAD_REQUEST)
            if job.status == 'cancelled':
                return Response({'error': 'Cancelled calendar jobs cannot be converted'}, status=status.HTTP_400_BAD_REQUEST)

            project = Project.objects.create(
                organization=organization,
                name=serializer.validated_data.get('name') or job.title,
                description=serializer.validated_data.get('description') or job.description,
                customer=job.customer,
                start_date=job.start_date,
                end_date=job.end_date,
                created_by=request.user,
            )
            job.project = project
            job.status = 'converted'
            job.save(update_fields=['project', 'status', 'updated_at'])
    except Http404:
        raise
    except Exception as e:
        logger.error(f"Unexpected error converting calendar job {pk}: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Calendar job {job.id} converted to project {project.id} by {request.user.username}")
    create_audit_log(request, 'job_convert', 'CalendarJob', job.id, changes={'project_id': project.id},
                     object_name=job.title)
    broadcast_event(organization, 'calendar_job_updated', {'job_id': job.id, 'action': 'converted'})
    broadcast_event(organization, 'project_updated', {'project_id': project.id, 'action': 'created'})
    return Response({
        'project': ProjectSerializer(project).data,
        'calendar_job': CalendarJobSerializer(job).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@organization_required
def calendar_view(request):
    """
    Day grid for a calendar view.

    Query params: view (1week, 2weeks, 1month, 3months; default 1month) and
    date (YYYY-MM-DD anchor, default today).
    """
    view = request.query_params.get('view', calendar_grid.MONTH)
    if view not in calendar_grid.VIEW_MODES:
        return Response({'error': f"view must be one of {', '.join(calendar_grid.VIEW_MODES)}"},
                        status=status.HTTP_400_BAD_REQUEST)

    today = timezone.localdate()
    anchor_param = request.query_params.get('date')
    anchor = today
    if anchor_param:
        anchor = parse_date(anchor_param)
        if anchor is None:
            return Response({'error': 'date must be in YYYY-MM-DD format'}, status=status.HTTP_400_BAD_REQUEST)

    days = calendar_grid.view_days(view, anchor)
    first, last = days[0], days[-1]

    jobs = CalendarJob.objects.filter(organization=request.user.organization, start_date__date__lte=last).filter(
        Q(end_date__date__gte=first) | Q(end_date__isnull=True, start_date__date__gte=first)
    ).order_by('start_date')
    if request.query_params.get('include_cancelled', '').lower() not in ('true', '1'):
        jobs = jobs.exclude(status='cancelled')

    jobs_by_day = calendar_grid.assign_jobs_to_days(days, list(jobs), _job_span)

    return Response({
        'view': view,
        'title': calendar_grid.view_title(view, anchor),
        'date': anchor,
        'start': first,
        'end': last,
        'prev_date': calendar_grid.navigate(view, anchor, -1),
        'next_date': calendar_grid.navigate(view, anchor, 1),
        'days': [
            {
                'date': day,
                'is_current_period': calendar_grid.is_current_period(view, anchor, day),
                'is_today': day == today,
                'jobs': [
                    {
                        'id': job.id,
                        'title': job.title,
                        'status': job.status,
                        'priority': job.priority,
                        'start_date': job.start_date,
                        'end_date': job.end_date,
                    }
                    for job in jobs_by_day[day]
                ],
            }
            for day in days
        ],
    })


# Project views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def project_list_create(request):
    """List projects or create a new project"""
    organization = request.user.organization
    if request.method == 'GET':
        projects = Project.objects.select_related('customer').filter(organization=organization)
        project_status = request.query_params.get('status')
        if project_status:
            projects = projects.filter(status=project_status)
        return Response(ProjectSerializer(projects, many=True).data)

    serializer = ProjectSerializer(data=request.data, context={'organization': organization})
    if serializer.is_valid():
        project = serializer.save(organization=organization, created_by=request.user)
        create_audit_log(request, 'create', 'Project', project.id, object_name=project.name)
        broadcast_event(organization, 'project_updated', {'project_id': project.id, 'action': 'created'})
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def project_detail(request, pk):
    """Retrieve, update or delete a project"""
    organization = request.user.organization
    project = get_object_or_404(Project, pk=pk, organization=organization)

    if request.method == 'GET':
        return Response(ProjectSerializer(project).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProjectSerializer(project, data=request.data, partial=request.method == 'PATCH',
                                       context={'organization': organization})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'Project', project.id, changes=request.data, object_name=project.name)
            broadcast_event(organization, 'project_updated', {'project_id': project.id, 'action': 'updated'})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not is_manager_or_admin(request.user):
            return Response({'error': 'Only managers can delete projects'}, status=status.HTTP_403_FORBIDDEN)
        project_id = project.id
        create_audit_log(request, 'delete', 'Project', project_id, object_name=project.name)
        project.delete()
        broadcast_event(organization, 'project_updated', {'project_id': project_id, 'action': 'deleted'})
        return Response(status=status.HTTP_204_NO_CONTENT)
