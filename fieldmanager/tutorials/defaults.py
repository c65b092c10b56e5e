"""Starter help center content shared by every organization"""
import logging

from .models import TutorialCategory, Tutorial

logger = logging.getLogger('fieldmanager.tutorials')

DEFAULT_CATEGORIES = [
    {'name': 'Getting Started', 'slug': 'getting-started', 'icon': 'play-circle', 'color': '#3B82F6',
     'description': 'Essential tutorials for new users to get up and running'},
    {'name': 'Core Features', 'slug': 'core-features', 'icon': 'settings', 'color': '#10B981',
     'description': 'The main features used every day'},
    {'name': 'Mobile App', 'slug': 'mobile-app', 'icon': 'smartphone', 'color': '#8B5CF6',
     'description': 'Working from the field on a phone or tablet'},
    {'name': 'Advanced Features', 'slug': 'advanced-features', 'icon': 'star', 'color': '#F59E0B',
     'description': 'Workflows for power users'},
    {'name': 'Admin & Management', 'slug': 'admin-management', 'icon': 'shield', 'color': '#EF4444',
     'description': 'Administrative tools and team management'},
]

DEFAULT_TUTORIALS = [
    {
        'title': 'Account Setup & First Login',
        'slug': 'account-setup-first-login',
        'category': 'getting-started',
        'type': 'video',
        'difficulty': 'beginner',
        'estimated_time': 15,
        'description': 'Set up your account and organization profile and find your way around the dashboard.',
        'content': (
            "# Account Setup & First Login\n\n"
            "1. Create your account and verify your email\n"
            "2. Fill in your company information\n"
            "3. Take a tour of the dashboard\n"
            "4. Review your preferences\n"
        ),
        'tags': ['setup', 'onboarding', 'basics'],
        'prerequisites': [],
    },
    {
        'title': 'Adding Your First Customer',
        'slug': 'adding-first-customer',
        'category': 'getting-started',
        'type': 'interactive',
        'difficulty': 'beginner',
        'estimated_time': 10,
        'description': 'Add a customer with contact and billing details.',
        'interactive_steps': [
            {'title': 'Open the Customers page', 'target': '/customers'},
            {'title': 'Click "Add New Customer"'},
            {'title': 'Fill in the required information'},
            {'title': 'Save and check the new record'},
        ],
        'content': "# Adding Your First Customer\n\nKeep contact details verified and names consistent.\n",
        'tags': ['customers', 'data-entry', 'basics'],
        'prerequisites': ['account-setup-first-login'],
    },
    {
        'title': 'Creating Your First Project',
        'slug': 'creating-first-project',
        'category': 'core-features',
        'type': 'video',
        'difficulty': 'beginner',
        'estimated_time': 20,
        'description': 'Create a project, assign the team and track progress.',
        'content': (
            "# Creating Your First Project\n\n"
            "Schedule a job on the calendar, then convert it to a project once the customer confirms.\n"
        ),
        'tags': ['projects', 'workflow', 'team-management'],
        'prerequisites': ['adding-first-customer'],
    },
    {
        'title': 'GPS Tracking & Mobile Features',
        'slug': 'gps-tracking-mobile',
        'category': 'mobile-app',
        'type': 'video',
        'difficulty': 'intermediate',
        'estimated_time': 25,
        'description': 'Location tracking, mobile check-ins and field reporting.',
        'content': "# GPS Tracking & Mobile Features\n\nCheck in at job sites and report from the field.\n",
        'tags': ['mobile', 'gps', 'tracking', 'field-work'],
        'prerequisites': ['creating-first-project'],
    },
    {
        'title': 'Advanced Reporting & Analytics',
        'slug': 'advanced-reporting-analytics',
        'category': 'advanced-features',
        'type': 'interactive',
        'difficulty': 'advanced',
        'estimated_time': 35,
        'description': 'Revenue, lead and expense reports and what they tell you.',
        'interactive_steps': [
            {'title': 'Open Reports', 'target': '/reports'},
            {'title': 'Switch the time range'},
            {'title': 'Read the close rate chart'},
            {'title': 'Break expenses down by category'},
        ],
        'content': "# Advanced Reporting & Analytics\n\nEvery chart groups data by month.\n",
        'tags': ['reporting', 'analytics', 'dashboard'],
        'prerequisites': ['creating-first-project', 'gps-tracking-mobile'],
    },
    {
        'title': 'Team Management & Permissions',
        'slug': 'team-management-permissions',
        'category': 'admin-management',
        'type': 'documentation',
        'difficulty': 'intermediate',
        'estimated_time': 30,
        'description': 'Manage team members, roles and folder permissions.',
        'content': (
            "# Team Management & Permissions\n\n"
            "Roles decide what each user can do. Folder permissions can be set per user or per role "
            "and passed down to subfolders.\n"
        ),
        'tags': ['team', 'permissions', 'admin', 'security'],
        'prerequisites': ['account-setup-first-login'],
    },
]


def seed_tutorials(update=False):
    """
    Create the default categories and global tutorials that are missing.

    Existing records are left alone unless ``update`` is set. Returns a dict
    of created and updated counts.
    """
    counts = {'categories_created': 0, 'tutorials_created': 0, 'updated': 0}
    categories = {}
    for sort_order, entry in enumerate(DEFAULT_CATEGORIES, start=1):
        defaults = {**entry, 'sort_order': sort_order}
        slug = defaults.pop('slug')
        category, created = TutorialCategory.objects.get_or_create(slug=slug, defaults=defaults)
        if created:
            counts['categories_created'] += 1
        elif update:
            TutorialCategory.objects.filter(pk=category.pk).update(**defaults)
            counts['updated'] += 1
        categories[slug] = category

    for entry in DEFAULT_TUTORIALS:
        defaults = {**entry, 'category': categories[entry['category']], 'organization': None}
        slug = defaults.pop('slug')
        tutorial, created = Tutorial.objects.get_or_create(slug=slug, defaults=defaults)
        if created:
            counts['tutorials_created'] += 1
        elif update:
            for field, value in defaults.items():
                setattr(tutorial, field, value)
            tutorial.save()
            counts['updated'] += 1

    logger.info(f"Seeded tutorials: {counts}")
    return counts
