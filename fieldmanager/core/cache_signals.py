"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import (
    invalidate_namespace,
    VEHICLES_NAMESPACE, EXPENSE_CATEGORIES_NAMESPACE, TUTORIALS_NAMESPACE,
    POPUPS_NAMESPACE, REPORTS_NAMESPACE,
)

logger = logging.getLogger('fieldmanager.core.cache')

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

# Model name -> cache namespaces it feeds
MODEL_NAMESPACES = {
    'Vehicle': [VEHICLES_NAMESPACE, REPORTS_NAMESPACE],
    'MaintenanceInterval': [REPORTS_NAMESPACE],
    'MaintenanceRecord': [REPORTS_NAMESPACE],
    'ExpenseCategory': [EXPENSE_CATEGORIES_NAMESPACE, REPORTS_NAMESPACE],
    'Expense': [EXPENSE_CATEGORIES_NAMESPACE, REPORTS_NAMESPACE],
    'Customer': [REPORTS_NAMESPACE],
    'Lead': [REPORTS_NAMESPACE],
    'Invoice': [REPORTS_NAMESPACE],
    'CalendarJob': [REPORTS_NAMESPACE],
    'TechnicianInventory': [REPORTS_NAMESPACE],
    'DailyInventoryVerification': [REPORTS_NAMESPACE],
    'Tutorial': [TUTORIALS_NAMESPACE],
    'TutorialCategory': [TUTORIALS_NAMESPACE],
    'WebsitePopup': [POPUPS_NAMESPACE],
}


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_model_cache(sender, instance, **kwargs):
    """Invalidate the namespaces fed by the changed model"""
    if is_suspended():
        return

    namespaces = MODEL_NAMESPACES.get(sender.__name__)
    if not namespaces:
        return

    for namespace in namespaces:
        try:
            invalidate_namespace(namespace)
        except Exception as e:
            logger.warning(f"Error invalidating {namespace} cache: {e}")
