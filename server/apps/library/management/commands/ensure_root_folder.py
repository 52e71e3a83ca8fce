"""Management command to create the root folder."""

from typing import Any

from django.core.management.base import BaseCommand

from server.apps.library.logic.folder_operations import ensure_root_folder


class Command(BaseCommand):
    """Create the root folder and the mirror base directory if missing."""

    help = 'Create the root folder and mirror base directory (idempotent)'

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments (unused).
            options: Command options (unused).
        """
        root, created = ensure_root_folder()

        if created:
            self.stdout.write(
                self.style.SUCCESS(f'Created root folder (ID: {root.pk})'),
            )
        else:
            self.stdout.write(f'Root folder already exists (ID: {root.pk})')
