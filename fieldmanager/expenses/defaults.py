"""Default expense categories seeded for every organization"""
import logging

from fieldmanager.core.cache_utils import invalidate_namespace, EXPENSE_CATEGORIES_NAMESPACE
from .models import ExpenseCategory

logger = logging.getLogger('fieldmanager.expenses')

DEFAULT_CATEGORIES = [
    ('Fuel', 'Gas and diesel for company vehicles', '#EF4444'),
    ('Maintenance', 'Vehicle repairs and scheduled service', '#F59E0B'),
    ('Supplies', 'Job materials and consumables', '#10B981'),
    ('Equipment', 'Tools and equipment purchases', '#3B82F6'),
    ('Meals', 'Meals while on the road', '#8B5CF6'),
    ('Travel', 'Lodging, tolls and parking', '#EC4899'),
    ('Other', 'Anything else', '#6B7280'),
]


def seed_default_categories(organization):
    """Create the default categories an organization is missing; returns how many were created"""
    existing = set(
        ExpenseCategory.objects.filter(organization=organization).values_list('name', flat=True)
    )
    to_create = [
        ExpenseCategory(organization=organization, name=name, description=description,
                        color=color, is_default=True)
        for name, description, color in DEFAULT_CATEGORIES
        if name not in existing
    ]
    if to_create:
        ExpenseCategory.objects.bulk_create(to_create)
        # bulk_create sends no post_save signals
        invalidate_namespace(EXPENSE_CATEGORIES_NAMESPACE)
        logger.info(f"Seeded {len(to_create)} default expense categories for organization {organization.id}")
    return len(to_create)
