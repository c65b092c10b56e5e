"""
Realtime event feed.

Mutations record a named event per organization; clients poll
``/api/v1/events/?since=<id>`` and refresh the data the event names.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from .models import RealtimeEvent

logger = logging.getLogger('fieldmanager.core')

EVENT_FEED_LIMIT = 100


def broadcast_event(organization, event_type, data=None):
    """Record a named event; never raises"""
    try:
        event = RealtimeEvent.objects.create(
            organization=organization,
            event_type=event_type,
            data=data or {},
        )
        logger.debug(f"Broadcast event {event_type} #{event.id} for organization {getattr(organization, 'id', None)}")
        return event
    except Exception as e:
        logger.error(f"Failed to broadcast event {event_type}: {str(e)}", exc_info=True)
        return None


def get_events_since(organization, since_id=0, limit=EVENT_FEED_LIMIT):
    """Events after ``since_id`` for an organization, oldest first"""
    return list(
        RealtimeEvent.objects.filter(organization=organization, id__gt=since_id)
        .order_by('id')[:limit]
    )


def purge_old_events(days=None):
    """Delete events older than the retention window, returns the count deleted"""
    if days is None:
        days = settings.REALTIME_EVENT_RETENTION_DAYS
    cutoff = timezone.now() - timedelta(days=days)
    deleted, _ = RealtimeEvent.objects.filter(created_at__lt=cutoff).delete()
    if deleted:
        logger.info(f"Purged {deleted} realtime events older than {days} days")
    return deleted
