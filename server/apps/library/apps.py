"""Django app configuration for library app."""

from django.apps import AppConfig


class LibraryConfig(AppConfig):
    """Configuration for library app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'server.apps.library'
    verbose_name = 'Library'
