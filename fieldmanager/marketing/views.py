import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.core.cache import cache
from django.db.models import F, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from fieldmanager.core.cache_utils import make_namespaced_key, POPUPS_NAMESPACE, POPUPS_CACHE_TTL
from fieldmanager.core.models import Organization
from fieldmanager.core.utils import create_audit_log, is_manager_or_admin, organization_required
from .models import WebsitePopup
from .serializers import WebsitePopupSerializer, PublicPopupSerializer

logger = logging.getLogger('fieldmanager.marketing')


def _manager_only(request):
    if not is_manager_or_admin(request.user):
        logger.warning(f"User {request.user.username} denied popup management")
        return Response({'error': 'Only managers can manage website popups'}, status=status.HTTP_403_FORBIDDEN)
    return None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def popup_list_create(request):
    """List website popups (with stats) or create a new popup"""
    denied = _manager_only(request)
    if denied:
        return denied
    organization = request.user.organization

    if request.method == 'GET':
        popups = WebsitePopup.objects.filter(organization=organization)
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            popups = popups.filter(is_active=is_active.lower() in ('true', '1'))
        return Response(WebsitePopupSerializer(popups, many=True).data)

    serializer = WebsitePopupSerializer(data=request.data)
    if serializer.is_valid():
        popup = serializer.save(organization=organization, created_by=request.user)
        logger.info(f"Popup '{popup.title}' created by {request.user.username}")
        create_audit_log(request, 'create', 'WebsitePopup', popup.id, object_name=popup.title)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def popup_detail(request, pk):
    """Retrieve, update or delete a website popup"""
    denied = _manager_only(request)
    if denied:
        return denied
    popup = get_object_or_404(WebsitePopup, pk=pk, organization=request.user.organization)

    if request.method == 'GET':
        return Response(WebsitePopupSerializer(popup).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = WebsitePopupSerializer(popup, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'WebsitePopup', popup.id, changes=request.data, object_name=popup.title)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        create_audit_log(request, 'delete', 'WebsitePopup', popup.id, object_name=popup.title)
        popup.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


def _public_organization(identifier):
    if not identifier:
        return None
    lookup = Q(slug=identifier)
    if str(identifier).isdigit():
        lookup |= Q(pk=int(identifier))
    return Organization.objects.filter(lookup, is_active=True).first()


@api_view(['GET'])
@permission_classes([AllowAny])
def public_popup_list(request):
    """
    Popups the public website should show.

    Query params: organization (slug or id, required) and page (path being
    viewed). Only active popups inside their date window are returned,
    highest priority first.
    """
    organization = _public_organization(request.query_params.get('organization'))
    if organization is None:
        return Response({'error': 'Organization not found'}, status=status.HTTP_404_NOT_FOUND)
    page = request.query_params.get('page', '').strip()

    cache_key = make_namespaced_key(POPUPS_NAMESPACE, organization.id, page)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        logger.debug(f"Cache HIT for public popups of organization {organization.id}")
        return Response(cached_data)

    now = timezone.now()
    popups = WebsitePopup.objects.filter(organization=organization, is_active=True).filter(
        Q(start_date__isnull=True) | Q(start_date__lte=now),
        Q(end_date__isnull=True) | Q(end_date__gte=now),
    ).order_by('-priority', '-created_at')
    popups = [popup for popup in popups if not page or popup.shows_on(page)]

    response_data = PublicPopupSerializer(popups, many=True).data
    cache.set(cache_key, response_data, POPUPS_CACHE_TTL)
    return Response(response_data)


def _count(pk, field):
    popup = get_object_or_404(WebsitePopup, pk=pk, is_active=True)
    WebsitePopup.objects.filter(pk=popup.pk).update(**{field: F(field) + 1})
    popup.refresh_from_db(fields=[field])
    return Response({'id': popup.id, field: getattr(popup, field)})


@api_view(['POST'])
@permission_classes([AllowAny])
def popup_impression(request, pk):
    """Count a popup being shown"""
    return _count(pk, 'impressions')


@api_view(['POST'])
@permission_classes([AllowAny])
def popup_click(request, pk):
    """Count a click on the popup's call to action"""
    return _count(pk, 'clicks')
