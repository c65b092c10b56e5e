"""
Management command to delete old realtime events
"""
from django.conf import settings
from django.core.management.base import BaseCommand
from fieldmanager.core.events import purge_old_events


class Command(BaseCommand):
    help = "Deletes realtime events older than the retention window"

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=None,
            help=f'Keep events from the last N days (default: {settings.REALTIME_EVENT_RETENTION_DAYS})',
        )

    def handle(self, *args, **options):
        deleted = purge_old_events(days=options['days'])
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} realtime events."))
