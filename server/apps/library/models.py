"""Database models for library app."""

import enum
from typing import Any, Final, final

from typing_extensions import override

from django.db import models

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_EXTENSION_MAX_LENGTH: Final = 32
_FORMAT_MAX_LENGTH: Final = 16


@final
class NodeKind(enum.Enum):
    """Kind of tree node, selects which child list of a folder to edit."""

    FOLDER = 'folder'
    DOCUMENT = 'document'

    @property
    def list_field(self) -> str:
        """Name of the Folder field holding children of this kind."""
        if self is NodeKind.FOLDER:
            return 'subfolders'
        return 'documents'


class DocumentFormat(models.TextChoices):
    """How a document's content is stored."""

    FILE = 'file', 'File'
    TABLE = 'table', 'Table'


@final
class Folder(models.Model):
    """Folder in the document tree.

    Exactly one folder has no parent: the root. Children are kept as
    ordered lists of ids, the position in the list is the display order.
    The parent reference is only used for path and ancestry lookups.
    """

    name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
    )

    parent_folder = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='child_folders',
        help_text='Empty only for the root folder',
    )

    documents = models.JSONField(
        default=list,
        blank=True,
        help_text='Ordered ids of documents in this folder',
    )

    subfolders = models.JSONField(
        default=list,
        blank=True,
        help_text='Ordered ids of folders in this folder',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'Folder'  # type: ignore[mutable-override]
        verbose_name_plural = 'Folders'  # type: ignore[mutable-override]

        constraints = [
            # Folder names are unique among siblings
            models.UniqueConstraint(
                fields=['parent_folder', 'name'],
                name='library_folder_sibling_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return self.name

    @property
    def is_root(self) -> bool:
        """Whether this is the parentless root folder."""
        return self.parent_folder_id is None

    def children_ids(self, kind: NodeKind) -> list[int]:
        """Get the ordered child id list for a node kind.

        Args:
            kind: Which children to return.

        Returns:
            The list stored on the model (not a copy).
        """
        return getattr(self, kind.list_field)

    def as_record(self) -> dict[str, Any]:
        """Serialize to the record shape exposed to callers.

        Returns:
            Dictionary with id, name, parent and child id lists.
        """
        return {
            'id': self.pk,
            'name': self.name,
            'parent_folder': self.parent_folder_id,
            'documents': list(self.documents),
            'subfolders': list(self.subfolders),
        }


@final
class Document(models.Model):
    """Document stored in a folder and mirrored as a file.

    The mirrored file is named ``{name}.{extension}``.
    """

    name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
    )

    extension = models.CharField(
        max_length=_EXTENSION_MAX_LENGTH,
    )

    format = models.CharField(  # noqa: WPS125
        max_length=_FORMAT_MAX_LENGTH,
        choices=DocumentFormat.choices,
        default=DocumentFormat.FILE,
    )

    parent_folder = models.ForeignKey(
        Folder,
        on_delete=models.PROTECT,
        related_name='child_documents',
    )

    description = models.TextField(
        blank=True,
        default='',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'Document'  # type: ignore[mutable-override]
        verbose_name_plural = 'Documents'  # type: ignore[mutable-override]

        constraints = [
            # (name, extension) pairs are unique among siblings
            models.UniqueConstraint(
                fields=['parent_folder', 'name', 'extension'],
                name='library_document_sibling_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return self.get_filename()

    def get_filename(self) -> str:
        """Get the mirrored file name.

        Example: name='Q1', extension='pdf' -> 'Q1.pdf'

        Returns:
            Name with extension.
        """
        return f'{self.name}.{self.extension}'

    def as_record(self) -> dict[str, Any]:
        """Serialize to the record shape exposed to callers.

        Returns:
            Dictionary with the document fields and parent id.
        """
        return {
            'id': self.pk,
            'name': self.name,
            'extension': self.extension,
            'format': self.format,
            'parent_folder': self.parent_folder_id,
            'description': self.description,
        }
