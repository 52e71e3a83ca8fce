"""Business logic for document operations.

Document creation takes over a file from the upload staging area.
The staging area is cleared after every creation attempt, whatever
its outcome.
"""

import logging
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import final

from django.core.exceptions import SuspiciousFileOperation

from server.apps.library.exceptions import (
    MissingFieldsError,
    ResourceExistsError,
    ValidationError,
)
from server.apps.library.infrastructure.metadata import (
    validate_extension,
    validate_node_name,
)
from server.apps.library.infrastructure.storage import (
    get_mirror_storage,
    get_staging_storage,
)
from server.apps.library.logic.contents import (
    APPEND,
    add_child,
    document_name_taken,
    get_document_record,
    get_folder,
    plan_insert_index,
    remove_child,
)
from server.apps.library.logic.paths import resolve_document_path
from server.apps.library.logic.staging import StagedFile
from server.apps.library.logic.transactions import Mutation, commit_then_mirror
from server.apps.library.models import Document, DocumentFormat, NodeKind

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class DocumentRead:
    """A document record with its mirror path and content."""

    document: Document
    path: str
    content: bytes


def create_document(  # noqa: WPS211
    parent_id: int,
    name: str,
    extension: str,
    description: str,
    staged_file: StagedFile,
) -> Document:
    """Create a document from a staged upload.

    The document is appended to its parent's document list. Once the
    database commit succeeds the staged file is moved into the mirror.

    Args:
        parent_id: Id of the parent folder.
        name: Document name.
        extension: File extension without dot.
        description: Free text description.
        staged_file: Upload waiting in the staging area.

    Returns:
        Created Document instance.

    Raises:
        MissingFieldsError: If a required input is missing.
        ValidationError: If the extension contains a dot or the staged
            file lies outside the staging area.
        NotFoundError: If the parent folder does not exist.
        ResourceExistsError: If a sibling document or folder already uses
            the file name.
        MirrorDivergenceError: If the staged file cannot be moved.
    """
    staging = get_staging_storage()
    try:
        validate_node_name(name)
        validate_extension(extension)
        if parent_id is None:
            raise MissingFieldsError('Missing fields: parent_id')
        if staged_file is None:
            raise MissingFieldsError('Missing fields: file')
        try:
            staged_path = staging.staged_path(staged_file.name)
        except SuspiciousFileOperation as error:
            logger.warning('Rejected staged file outside staging: %s', staged_file.name)
            raise ValidationError(
                f'Invalid staged file: {staged_file.name!r}',
            ) from error

        return commit_then_mirror(
            partial(
                _create_document_records,
                parent_id,
                name,
                extension,
                description or '',
                staged_path,
            ),
        )
    finally:
        staging.clear_staging_area()


def _create_document_records(  # noqa: WPS211
    parent_id: int,
    name: str,
    extension: str,
    description: str,
    staged_path: Path,
) -> Mutation[Document]:
    parent = get_folder(parent_id, for_update=True)
    if document_name_taken(parent.pk, name, extension):
        raise ResourceExistsError(
            f"Document named '{name}.{extension}' already exists here.",
        )

    document = Document.objects.create(
        name=name,
        extension=extension,
        format=DocumentFormat.FILE,
        parent_folder=parent,
        description=description,
    )
    add_child(parent, NodeKind.DOCUMENT, document.pk, APPEND)
    path = resolve_document_path(document)

    logger.info('Document created: %s (ID: %d)', path, document.pk)
    return Mutation(
        document,
        partial(get_mirror_storage().import_file, staged_path, path),
    )


def rename_document(document_id: int, new_name: str) -> Document:
    """Rename a document, keeping its extension.

    Renaming to the current name returns the document unchanged.

    Args:
        document_id: Document to rename.
        new_name: New name.

    Returns:
        Renamed Document instance.

    Raises:
        NotFoundError: If the document does not exist.
        ResourceExistsError: If a sibling document or folder already uses
            the new file name.
        MirrorDivergenceError: If the file cannot be renamed.
    """
    validate_node_name(new_name, 'new_name')

    return commit_then_mirror(
        partial(_rename_document_records, document_id, new_name),
    )


def _rename_document_records(document_id: int, new_name: str) -> Mutation[Document]:
    document = get_document_record(document_id, for_update=True)
    if document.name == new_name:
        return Mutation(document)

    if document_name_taken(document.parent_folder_id, new_name, document.extension):
        raise ResourceExistsError(
            f"Document named '{new_name}.{document.extension}' already exists here.",
        )

    old_path = resolve_document_path(document)
    document.name = new_name
    document.save(update_fields=['name'])
    new_path = resolve_document_path(document)

    logger.info('Document renamed: %s -> %s (ID: %d)', old_path, new_path, document_id)
    return Mutation(
        document,
        partial(get_mirror_storage().move_or_rename, old_path, new_path),
    )


def move_document(
    document_id: int,
    move_to: int,
    place_after: int | None = None,
) -> Document:
    """Move a document into another folder, or reorder it in its folder.

    Args:
        document_id: Document to move.
        move_to: Destination folder (may be the current folder).
        place_after: Document of the destination to place it after;
            None places it first.

    Returns:
        Moved Document instance.

    Raises:
        NotFoundError: If a referenced node does not exist.
        ResourceExistsError: If the destination already uses the file
            name.
        MirrorDivergenceError: If the file cannot be moved.
    """
    if move_to is None:
        raise MissingFieldsError('Missing fields: move_to')

    return commit_then_mirror(
        partial(_move_document_records, document_id, move_to, place_after),
    )


def _move_document_records(
    document_id: int,
    move_to: int,
    place_after: int | None,
) -> Mutation[Document]:
    document = get_document_record(document_id, for_update=True)
    current_parent = get_folder(document.parent_folder_id, for_update=True)
    same_parent = current_parent.pk == move_to
    if same_parent:
        target_parent = current_parent
    else:
        target_parent = get_folder(move_to, for_update=True)

    current_index, new_index = plan_insert_index(
        current_parent,
        target_parent,
        NodeKind.DOCUMENT,
        document.pk,
        place_after,
    )
    if same_parent and current_index == new_index:
        return Mutation(document)

    if not same_parent and document_name_taken(
        target_parent.pk,
        document.name,
        document.extension,
    ):
        raise ResourceExistsError(
            f"Document named '{document.get_filename()}' already exists "
            f'in {target_parent.name}.',
        )

    old_path = resolve_document_path(document)
    document.parent_folder = target_parent
    document.save(update_fields=['parent_folder'])
    remove_child(current_parent, NodeKind.DOCUMENT, document.pk)
    add_child(target_parent, NodeKind.DOCUMENT, document.pk, new_index)

    if same_parent:
        logger.info('Document reordered: %s (ID: %d)', old_path, document_id)
        return Mutation(document)

    new_path = resolve_document_path(document)
    logger.info('Document moved: %s -> %s (ID: %d)', old_path, new_path, document_id)
    return Mutation(
        document,
        partial(get_mirror_storage().move_or_rename, old_path, new_path),
    )


def update_document_description(document_id: int, new_description: str) -> Document:
    """Replace a document's description.

    Args:
        document_id: Document to update.
        new_description: New description, may be empty.

    Returns:
        Updated Document instance.

    Raises:
        MissingFieldsError: If new_description is None.
        NotFoundError: If the document does not exist.
    """
    if new_description is None:
        raise MissingFieldsError('Missing fields: new_description')

    return commit_then_mirror(
        partial(_update_description_records, document_id, new_description),
    )


def _update_description_records(
    document_id: int,
    new_description: str,
) -> Mutation[Document]:
    document = get_document_record(document_id, for_update=True)
    if document.description != new_description:
        document.description = new_description
        document.save(update_fields=['description'])
        logger.info('Document description updated (ID: %d)', document_id)
    return Mutation(document)


def delete_document(document_id: int) -> Document:
    """Delete a document and its mirrored file.

    Args:
        document_id: Document to delete.

    Returns:
        The deleted Document instance (no longer saved).

    Raises:
        NotFoundError: If the document does not exist.
        MirrorDivergenceError: If the file cannot be removed.
    """
    return commit_then_mirror(partial(_delete_document_records, document_id))


def _delete_document_records(document_id: int) -> Mutation[Document]:
    document = get_document_record(document_id, for_update=True)
    path = resolve_document_path(document)
    parent = get_folder(document.parent_folder_id, for_update=True)
    document.delete()
    remove_child(parent, NodeKind.DOCUMENT, document_id)

    logger.info('Document deleted: %s (ID: %d)', path, document_id)
    return Mutation(document, partial(get_mirror_storage().delete, path))


def get_document(document_id: int) -> DocumentRead:
    """Get a document with its mirror path and content.

    Args:
        document_id: Document to read.

    Returns:
        DocumentRead with record, path and bytes.

    Raises:
        NotFoundError: If the document does not exist.
        MirrorError: If the mirrored file cannot be read.
    """
    document = get_document_record(document_id)
    path = resolve_document_path(document)
    content = get_mirror_storage().read_bytes(path)
    return DocumentRead(document=document, path=path, content=content)


def get_all_documents() -> list[Document]:
    """Get every document with its parent folder loaded.

    Returns:
        Documents ordered by id.
    """
    return list(
        Document.objects.select_related('parent_folder').order_by('pk'),
    )
