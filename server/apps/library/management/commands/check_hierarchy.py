"""Management command to report folder tree inconsistencies."""

from typing import Any

from django.core.management.base import BaseCommand, CommandError

from server.apps.library.logic.integrity import find_hierarchy_problems


class Command(BaseCommand):
    """Compare folder child lists with parent references."""

    help = 'Report inconsistencies in the folder/document tree'

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the check.

        Args:
            args: Positional arguments (unused).
            options: Command options (unused).

        Raises:
            CommandError: If any problem was found.
        """
        problems = find_hierarchy_problems()

        if not problems:
            self.stdout.write(self.style.SUCCESS('Folder tree is consistent'))
            return

        for problem in problems:
            self.stderr.write(problem)
        raise CommandError(f'Found {len(problems)} hierarchy problems')
