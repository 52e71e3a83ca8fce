"""Management command to empty the upload staging area."""

from typing import Any

from django.core.management.base import BaseCommand

from server.apps.library.infrastructure.storage import get_staging_storage


class Command(BaseCommand):
    """Delete every file left in the upload staging area."""

    help = 'Delete leftover files from the upload staging area'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the cleanup command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        staging = get_staging_storage()

        if options['dry_run']:
            if not staging.exists(''):
                self.stdout.write(self.style.SUCCESS('Would delete 0 staged files'))
                return
            _, staged_files = staging.listdir('')
            for staged_name in staged_files:
                self.stdout.write(f'Would delete: {staged_name}')
            self.stdout.write(
                self.style.SUCCESS(f'Would delete {len(staged_files)} staged files'),
            )
            return

        deleted = staging.clear_staging_area()
        self.stdout.write(self.style.SUCCESS(f'Deleted {deleted} staged files'))
