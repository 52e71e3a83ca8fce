"""Metadata helpers for folders, documents and uploads."""

import mimetypes
from pathlib import Path
from typing import Final

from server.apps.library.exceptions import MissingFieldsError, ValidationError

_FORBIDDEN_CHARACTERS: Final = frozenset('/\\\x00')
_RESERVED_NAMES: Final = frozenset(('.', '..'))

# Not known to every platform's mime.types
mimetypes.add_type(
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.docx',
)


def detect_mime_type(filename: str) -> str:
    """Detect MIME type from a file name.

    Uses Python's built-in mimetypes module to guess the MIME type
    from the extension.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string (e.g., 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return 'application/octet-stream'
    return mime_type


def validate_node_name(name: str | None, field: str = 'name') -> str:
    """Check that a folder/document name can be used as a path segment.

    Args:
        name: Proposed name.
        field: Field label used in error messages.

    Returns:
        The name, unchanged.

    Raises:
        MissingFieldsError: If the name is empty.
        ValidationError: If the name would break the mirror path.
    """
    if not name:
        raise MissingFieldsError(f'Missing fields: {field}')
    if name in _RESERVED_NAMES:
        raise ValidationError(f'Invalid {field}: {name!r}')
    if _FORBIDDEN_CHARACTERS.intersection(name):
        raise ValidationError(
            f'Invalid {field}: {name!r} contains a path separator',
        )
    return name


def get_file_extension(filename: str) -> str:
    """Get file extension from filename.

    Args:
        filename: Filename (e.g., 'document.pdf').

    Returns:
        Extension without dot, lowercase (e.g., 'pdf').
        Returns empty string if no extension.
    """
    extension = Path(filename).suffix
    return extension.lstrip('.').lower()


def validate_extension(extension: str | None) -> str:
    """Check that a document extension is a single file name suffix.

    The mirrored file is ``{name}.{extension}``, so a dot inside the
    extension would let two different pairs share one file name.

    Args:
        extension: Proposed extension, without the leading dot.

    Returns:
        The extension, unchanged.

    Raises:
        MissingFieldsError: If the extension is empty.
        ValidationError: If it contains a dot or a path separator.
    """
    validate_node_name(extension, 'extension')
    if '.' in extension:
        raise ValidationError(f'Invalid extension: {extension!r} contains a dot')
    return extension
