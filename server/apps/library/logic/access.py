"""Permission checks for an already verified subject.

Identity and session verification happen before the library is
called; this module only compares the permission level the caller
was granted with the level an operation needs.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import final

from django.utils import timezone

from server.apps.library.exceptions import (
    NotAuthenticatedError,
    NotAuthorizedError,
)

logger = logging.getLogger(__name__)


@final
class PermissionLevel(enum.Enum):
    """Access level granted to a subject."""

    USER = 'user'
    ADMIN = 'admin'


@final
@dataclass(frozen=True, slots=True)
class Subject:
    """Caller identity handed over by the session layer."""

    permission: PermissionLevel
    expires_at: datetime | None = None

    def is_expired(self) -> bool:
        """Whether the session behind this subject has expired."""
        return self.expires_at is not None and self.expires_at < timezone.now()


def require_permission(
    subject: Subject | None,
    required: PermissionLevel = PermissionLevel.USER,
) -> PermissionLevel:
    """Check that a subject may perform an operation.

    Reads need USER, structural changes need ADMIN.

    Args:
        subject: Verified subject, None when there is no session.
        required: Level the operation needs.

    Returns:
        The subject's permission level.

    Raises:
        NotAuthenticatedError: If there is no subject or it expired.
        NotAuthorizedError: If ADMIN is required and not granted.
    """
    if subject is None or subject.is_expired():
        raise NotAuthenticatedError('User not verified.')

    if required is PermissionLevel.ADMIN and subject.permission is not PermissionLevel.ADMIN:
        logger.warning('Rejected %s subject for admin operation', subject.permission.value)
        raise NotAuthorizedError('User not authorized.')

    return subject.permission
