"""
Management command to load the default help center content
"""
from django.core.management.base import BaseCommand
from fieldmanager.tutorials.defaults import seed_tutorials


class Command(BaseCommand):
    help = "Loads the default tutorial categories and starter tutorials"

    def add_arguments(self, parser):
        parser.add_argument(
            '--update',
            action='store_true',
            help='Overwrite existing default categories and tutorials with the bundled content',
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("=" * 60))
        self.stdout.write(self.style.SUCCESS("SEEDING TUTORIALS"))
        self.stdout.write(self.style.SUCCESS("=" * 60))

        counts = seed_tutorials(update=options['update'])

        self.stdout.write(f"Categories created: {counts['categories_created']}")
        self.stdout.write(f"Tutorials created: {counts['tutorials_created']}")
        if options['update']:
            self.stdout.write(f"Records updated: {counts['updated']}")
        self.stdout.write(self.style.SUCCESS("Done."))
