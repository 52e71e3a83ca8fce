"""Settings for the folder/document library."""

from server.settings.components import config

# Name given to the single parentless folder
LIBRARY_ROOT_FOLDER_NAME = config('LIBRARY_ROOT_FOLDER_NAME', default='root')

# Ancestor walks stop here and report a corrupt hierarchy
LIBRARY_MAX_TREE_DEPTH = config('LIBRARY_MAX_TREE_DEPTH', cast=int, default=256)

# Upload staging limits
LIBRARY_MAX_UPLOAD_BYTES = config(
    'LIBRARY_MAX_UPLOAD_BYTES',
    cast=int,
    default=5 * 1000 * 1000,
)

LIBRARY_ALLOWED_UPLOAD_TYPES = (
    'application/pdf',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
)
