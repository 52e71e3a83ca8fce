"""Tree store access: lookups, sibling checks and ordered child lists.

Folders own the ordered id lists of their children. These helpers are
the only place where those lists are edited, always through a NodeKind
so folders and documents go to their own list.
"""

import logging

from django.conf import settings

from server.apps.library.exceptions import (
    CorruptHierarchyError,
    NotFoundError,
    RootFolderProtectedError,
)
from server.apps.library.models import Document, Folder, NodeKind

logger = logging.getLogger(__name__)

# Position value meaning "after the last child"
APPEND: int = -1


def get_folder(folder_id: int, *, for_update: bool = False) -> Folder:
    """Fetch a folder by id.

    Args:
        folder_id: Folder id.
        for_update: Lock the row until the surrounding transaction ends.

    Returns:
        Folder instance.

    Raises:
        NotFoundError: If the folder does not exist.
    """
    queryset = Folder.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=folder_id)
    except Folder.DoesNotExist as error:
        raise NotFoundError(f'Folder {folder_id} not found') from error


def get_document_record(document_id: int, *, for_update: bool = False) -> Document:
    """Fetch a document by id.

    Args:
        document_id: Document id.
        for_update: Lock the row until the surrounding transaction ends.

    Returns:
        Document instance.

    Raises:
        NotFoundError: If the document does not exist.
    """
    queryset = Document.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=document_id)
    except Document.DoesNotExist as error:
        raise NotFoundError(f'Document {document_id} not found') from error


def get_root_folder() -> Folder:
    """Fetch the single parentless folder.

    Raises:
        NotFoundError: If the root folder has not been created.
        CorruptHierarchyError: If more than one folder has no parent.
    """
    try:
        return Folder.objects.get(parent_folder__isnull=True)
    except Folder.DoesNotExist as error:
        raise NotFoundError('Root folder missing') from error
    except Folder.MultipleObjectsReturned as error:
        raise CorruptHierarchyError('More than one root folder') from error


def guard_root(folder: Folder) -> None:
    """Refuse structural changes to the root folder.

    Args:
        folder: Folder about to be renamed, moved or deleted, as
            fetched (and locked) by the running unit of work.

    Raises:
        RootFolderProtectedError: If the folder is the root.
    """
    if folder.is_root:
        logger.warning('Rejected structural change to root folder %d', folder.pk)
        raise RootFolderProtectedError()


def root_folder_name() -> str:
    """Name given to the root folder on creation."""
    return settings.LIBRARY_ROOT_FOLDER_NAME


def folder_name_taken(parent_id: int, name: str) -> bool:
    """Check whether a folder name is used in a folder.

    Folders and documents share the parent's mirror directory, so a
    sibling document whose file name equals the folder name counts.
    """
    if Folder.objects.filter(parent_folder_id=parent_id, name=name).exists():
        return True

    document_name, dot, extension = name.rpartition('.')
    if not dot:
        return False
    return Document.objects.filter(
        parent_folder_id=parent_id,
        name=document_name,
        extension=extension,
    ).exists()


def document_name_taken(parent_id: int, name: str, extension: str) -> bool:
    """Check whether a document file name is used in a folder.

    Matches a sibling document with the same (name, extension) pair
    or a sibling folder named like the file.
    """
    documents = Document.objects.filter(
        parent_folder_id=parent_id,
        name=name,
        extension=extension,
    )
    if documents.exists():
        return True
    return Folder.objects.filter(
        parent_folder_id=parent_id,
        name=f'{name}.{extension}',
    ).exists()


def index_of_child(folder: Folder, kind: NodeKind, child_id: int) -> int:
    """Get a child's position in its parent's list.

    Raises:
        CorruptHierarchyError: If the parent does not list the child.
    """
    try:
        return folder.children_ids(kind).index(child_id)
    except ValueError as error:
        raise CorruptHierarchyError(
            f'Folder {folder.pk} does not list {kind.value} {child_id}',
        ) from error


def plan_insert_index(
    current_parent: Folder,
    target_parent: Folder,
    kind: NodeKind,
    child_id: int,
    place_after: int | None,
) -> tuple[int, int]:
    """Work out where a moved child lands in the target list.

    Without ``place_after`` the child goes first. Otherwise it goes
    right after ``place_after``; when the child stays in the same
    folder and currently sits before the slot after ``place_after``,
    the slot is not shifted by one, since taking the child out moves
    every later sibling one position down.

    Args:
        current_parent: Folder that lists the child now.
        target_parent: Folder the child moves into (may be the same).
        kind: Kind of the moved child.
        child_id: Id of the moved child.
        place_after: Sibling the child is placed after, or None.

    Returns:
        ``(current_index, new_index)``.

    Raises:
        NotFoundError: If place_after is not listed in the target folder.
    """
    current_index = index_of_child(current_parent, kind, child_id)
    if place_after is None:
        return current_index, 0

    try:
        anchor_index = target_parent.children_ids(kind).index(place_after)
    except ValueError as error:
        raise NotFoundError(
            f'{kind.value.capitalize()} {place_after} is not in folder '
            f'{target_parent.pk}',
        ) from error

    new_index = anchor_index + 1
    if current_parent.pk == target_parent.pk and current_index < new_index:
        new_index = anchor_index
    return current_index, new_index


def add_child(folder: Folder, kind: NodeKind, child_id: int, index: int = APPEND) -> None:
    """Insert a child id into a folder's list and save the folder.

    Args:
        folder: Parent folder.
        kind: Which list to edit.
        child_id: Id to insert.
        index: Position to insert at, APPEND for the end.
    """
    children = folder.children_ids(kind)
    if index == APPEND:
        children.append(child_id)
    else:
        children.insert(index, child_id)
    folder.save(update_fields=[kind.list_field])


def remove_child(folder: Folder, kind: NodeKind, child_id: int) -> None:
    """Drop a child id from a folder's list and save the folder.

    Args:
        folder: Parent folder.
        kind: Which list to edit.
        child_id: Id to drop.
    """
    setattr(
        folder,
        kind.list_field,
        [existing for existing in folder.children_ids(kind) if existing != child_id],
    )
    folder.save(update_fields=[kind.list_field])
