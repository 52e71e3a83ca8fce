"""Upload staging: holding uploads until they become documents."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import final

from django.conf import settings
from django.core.files.base import File as DjangoFile
from django.utils import timezone
from django.utils.text import get_valid_filename

from server.apps.library.exceptions import MissingFieldsError, ValidationError
from server.apps.library.infrastructure.metadata import (
    detect_mime_type,
    get_file_extension,
)
from server.apps.library.infrastructure.storage import get_staging_storage

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class StagedFile:
    """Upload saved in the staging area, ready to be committed."""

    name: str
    original_name: str
    mime_type: str
    size_bytes: int

    @property
    def extension(self) -> str:
        """Extension of the uploaded file name, lowercase, without dot."""
        return get_file_extension(self.original_name)


def _staged_name(original_name: str, label: str) -> str:
    """Build a staging file name.

    Example: label='Q1', original 'report.pdf' -> '1767225600000-Q1-report.pdf'
    """
    timestamp = int(timezone.now().timestamp() * 1000)
    safe_name = get_valid_filename(original_name)
    if label:
        return f'{timestamp}-{get_valid_filename(label)}-{safe_name}'
    return f'{timestamp}-{safe_name}'


def stage_upload(file_obj: DjangoFile, label: str = '') -> StagedFile:
    """Validate an upload and save it to the staging area.

    Args:
        file_obj: Uploaded file, its ``name`` is the client's file name.
        label: Optional document name mixed into the staged name.

    Returns:
        StagedFile describing the saved upload.

    Raises:
        MissingFieldsError: If there is no file or it has no name.
        ValidationError: If the type is not allowed or it is too large.
    """
    if file_obj is None or not file_obj.name:
        raise MissingFieldsError('Missing fields: file')

    original_name = Path(file_obj.name).name
    mime_type = detect_mime_type(original_name)
    if mime_type not in settings.LIBRARY_ALLOWED_UPLOAD_TYPES:
        logger.warning('Rejected upload %s of type %s', original_name, mime_type)
        raise ValidationError('Invalid file type')

    size_bytes = file_obj.size
    if size_bytes > settings.LIBRARY_MAX_UPLOAD_BYTES:
        logger.warning('Rejected upload %s of %d bytes', original_name, size_bytes)
        raise ValidationError(
            f'File too large: {size_bytes} bytes '
            f'(limit: {settings.LIBRARY_MAX_UPLOAD_BYTES})',
        )

    saved_name = get_staging_storage().save(
        _staged_name(original_name, label),
        file_obj,
    )
    logger.info('Upload staged: %s (%d bytes)', saved_name, size_bytes)

    return StagedFile(
        name=saved_name,
        original_name=original_name,
        mime_type=mime_type,
        size_bytes=size_bytes,
    )
