import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.cache import cache
from django.db.models import Avg, Count, F, Q, Sum
from django.shortcuts import get_object_or_404
from fieldmanager.core.cache_utils import make_namespaced_key, TUTORIALS_NAMESPACE, TUTORIALS_CACHE_TTL
from fieldmanager.core.utils import create_audit_log, is_admin
from .models import TutorialCategory, Tutorial, TutorialProgress
from .progress import apply_progress_update, start_tutorial
from .serializers import (
    TutorialCategorySerializer, TutorialSerializer, TutorialProgressSerializer, StartTutorialSerializer,
    ProgressUpdateSerializer,
)

logger = logging.getLogger('fieldmanager.tutorials')


def visible_tutorials(user):
    """Global tutorials plus the user's organization's own"""
    return Tutorial.objects.select_related('category').filter(
        Q(organization__isnull=True) | Q(organization_id=user.organization_id)
    )


def _admin_only(request):
    if not is_admin(request.user):
        logger.warning(f"User {request.user.username} denied tutorial management")
        return Response({'error': 'Only admins can manage tutorials'}, status=status.HTTP_403_FORBIDDEN)
    return None


def _can_edit(user, tutorial):
    if tutorial.organization_id is None:
        return user.is_superuser
    return is_admin(user) and tutorial.organization_id == user.organization_id


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def tutorial_list_create(request):
    """
    List published tutorials or add one (admins).

    Query params: category (slug), type, difficulty, search. Tutorials
    created by organization admins belong to their organization; superusers
    without an organization create global tutorials.
    """
    if request.method == 'GET':
        params = {key: request.query_params.get(key, '').strip()
                  for key in ('category', 'type', 'difficulty', 'search')}
        cache_key = make_namespaced_key(TUTORIALS_NAMESPACE, request.user.organization_id, **params)
        cached_data = cache.get(cache_key)
        if cached_data is not None:
            logger.debug(f"Cache HIT for tutorials: {cache_key}")
            return Response(cached_data)

        tutorials = visible_tutorials(request.user).filter(is_published=True)
        if params['category']:
            tutorials = tutorials.filter(category__slug=params['category'])
        if params['type']:
            tutorials = tutorials.filter(type=params['type'])
        if params['difficulty']:
            tutorials = tutorials.filter(difficulty=params['difficulty'])
        if params['search']:
            tutorials = tutorials.filter(
                Q(title__icontains=params['search']) | Q(description__icontains=params['search']) |
                Q(content__icontains=params['search'])
            )
        response_data = TutorialSerializer(tutorials, many=True).data
        cache.set(cache_key, response_data, TUTORIALS_CACHE_TTL)
        return Response(response_data)

    denied = _admin_only(request)
    if denied:
        return denied
    serializer = TutorialSerializer(data=request.data)
    if serializer.is_valid():
        tutorial = serializer.save(organization=request.user.organization, created_by=request.user)
        logger.info(f"Tutorial '{tutorial.title}' created by {request.user.username}")
        create_audit_log(request, 'create', 'Tutorial', tutorial.id, object_name=tutorial.title)
        return Response(TutorialSerializer(tutorial).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def tutorial_detail(request, pk):
    """Retrieve a tutorial (counts a view), update or delete it"""
    tutorial = get_object_or_404(visible_tutorials(request.user), pk=pk)

    if request.method == 'GET':
        if not tutorial.is_published and not _can_edit(request.user, tutorial):
            return Response({'error': 'Tutorial not found'}, status=status.HTTP_404_NOT_FOUND)
        Tutorial.objects.filter(pk=tutorial.pk).update(view_count=F('view_count') + 1)
        tutorial.refresh_from_db(fields=['view_count'])
        return Response(TutorialSerializer(tutorial).data)

    if not _can_edit(request.user, tutorial):
        return Response({'error': 'You do not have permission to change this tutorial'},
                        status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = TutorialSerializer(tutorial, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'Tutorial', tutorial.id, changes=request.data, object_name=tutorial.title)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        create_audit_log(request, 'delete', 'Tutorial', tutorial.id, object_name=tutorial.title)
        tutorial.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tutorial_category_list(request):
    """Active categories with the number of published tutorials the user can see"""
    cache_key = make_namespaced_key(TUTORIALS_NAMESPACE, 'categories', request.user.organization_id)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        return Response(cached_data)

    visible = Q(tutorials__is_published=True) & (
        Q(tutorials__organization__isnull=True) | Q(tutorials__organization_id=request.user.organization_id)
    )
    categories = TutorialCategory.objects.filter(is_active=True).annotate(tutorial_count=Count('tutorials', filter=visible))
    response_data = TutorialCategorySerializer(categories, many=True).data
    cache.set(cache_key, response_data, TUTORIALS_CACHE_TTL)
    return Response(response_data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tutorial_progress_list(request):
    """The requesting user's progress records"""
    progress = TutorialProgress.objects.select_related('tutorial__category').filter(user=request.user)
    return Response(TutorialProgressSerializer(progress, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def tutorial_progress_start(request):
    """Start a tutorial; starting one already underway returns the existing record"""
    serializer = StartTutorialSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    tutorial = get_object_or_404(visible_tutorials(request.user), pk=serializer.validated_data['tutorial_id'],
                                 is_published=True)
    progress, created = start_tutorial(request.user, tutorial)
    return Response(TutorialProgressSerializer(progress).data,
                    status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def tutorial_progress_detail(request, pk):
    """
    Retrieve or update one of the user's progress records.

    PATCH body: step_completed, current_step, time_spent (seconds to add),
    completed, rating (1-5) and feedback.
    """
    progress = get_object_or_404(TutorialProgress.objects.select_related('tutorial'), pk=pk, user=request.user)
    if request.method == 'GET':
        return Response(TutorialProgressSerializer(progress).data)

    serializer = ProgressUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    progress = apply_progress_update(progress, serializer.validated_data)
    if serializer.validated_data.get('completed'):
        logger.info(f"{request.user.username} completed tutorial {progress.tutorial_id}")
    return Response(TutorialProgressSerializer(progress).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tutorial_stats(request):
    """Learning totals for the requesting user"""
    progress = TutorialProgress.objects.filter(user=request.user)
    totals = progress.aggregate(
        total=Count('id'),
        completed=Count('id', filter=Q(status='completed')),
        in_progress=Count('id', filter=Q(status='in_progress')),
        time_spent=Sum('time_spent'),
        average_rating=Avg('rating'),
    )
    average = totals['average_rating']
    return Response({
        'total_tutorials': visible_tutorials(request.user).filter(is_published=True).count(),
        'started': totals['total'],
        'completed': totals['completed'],
        'in_progress': totals['in_progress'],
        'total_time_spent': totals['time_spent'] or 0,
        'average_rating': round(average, 2) if average is not None else None,
    })
