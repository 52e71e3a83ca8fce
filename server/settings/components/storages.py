"""Django storage configuration for the document mirror.

Two local filesystem storages are used:
- ``mirror`` holds the physical copy of the folder/document tree
- ``staging`` holds uploads waiting to be committed into the mirror
"""

from typing import Any, Final

from server.settings.components import BASE_DIR, config

LIBRARY_MIRROR_ROOT = config(
    'LIBRARY_MIRROR_ROOT',
    default=str(BASE_DIR.joinpath('uploads', 'tree')),
)

LIBRARY_STAGING_ROOT = config(
    'LIBRARY_STAGING_ROOT',
    default=str(BASE_DIR.joinpath('uploads', 'temp')),
)

STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'mirror': {
        'BACKEND': 'server.apps.library.infrastructure.storage.MirrorStorage',
        'OPTIONS': {
            'location': LIBRARY_MIRROR_ROOT,
        },
    },
    'staging': {
        'BACKEND': 'server.apps.library.infrastructure.storage.StagingStorage',
        'OPTIONS': {
            'location': LIBRARY_STAGING_ROOT,
        },
    },
}
