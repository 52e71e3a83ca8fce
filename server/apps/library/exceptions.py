"""Exceptions for library app."""

from typing import Any, ClassVar


class LibraryError(Exception):
    """Base class for every error raised by the library app.

    ``status_code`` is an HTTP-style hint for whichever surface
    reports the error to a client.
    """

    status_code: ClassVar[int] = 500
    default_message: ClassVar[str] = 'Library error'

    def __init__(self, message: str | None = None) -> None:
        """Initialize LibraryError.

        Args:
            message: Human readable message, class default when omitted.
        """
        super().__init__(message or self.default_message)


class MissingFieldsError(LibraryError):
    """Raised when a required input is absent or empty."""

    status_code = 400
    default_message = 'Missing fields'


class ValidationError(LibraryError):
    """Raised when an operation would break a tree rule."""

    status_code = 400
    default_message = 'Validation error'


class RootFolderProtectedError(ValidationError):
    """Raised on any attempt to rename, move or delete the root folder."""

    status_code = 403
    default_message = 'Cannot perform root folder operations'


class NotAuthenticatedError(LibraryError):
    """Raised when no verified subject is present."""

    status_code = 401
    default_message = 'Not authenticated'


class NotAuthorizedError(LibraryError):
    """Raised when the subject lacks the required permission level."""

    status_code = 403
    default_message = 'Not authorized'


class NotFoundError(LibraryError):
    """Raised when a referenced folder or document does not exist."""

    status_code = 404
    default_message = 'Resource not found'


class ResourceExistsError(LibraryError):
    """Raised when a sibling with the same name already exists."""

    status_code = 409
    default_message = 'Resource already exists'


class MirrorError(LibraryError):
    """Raised when the physical mirror cannot apply a change."""

    default_message = 'Mirror operation failed'


class MirrorDivergenceError(MirrorError):
    """Raised when the mirror step fails after the database commit.

    The relational change is already durable, so the database and the
    mirror disagree until someone reconciles them.
    """

    def __init__(self, node: Any, cause: BaseException) -> None:
        """Initialize MirrorDivergenceError.

        Args:
            node: Committed Folder or Document record.
            cause: Error raised by the mirror step.
        """
        self.node = node
        self.cause = cause
        super().__init__(
            f'Mirror out of sync after committing {node!r}: {cause}',
        )


class CorruptHierarchyError(LibraryError):
    """Raised when an ancestor walk finds a cycle or runs too deep."""

    default_message = 'Folder hierarchy is corrupt'
