"""Business logic for folder operations.

Every mutation runs its database work in one transaction and applies
the matching filesystem change to the mirror after the commit (see
``transactions.commit_then_mirror``).
"""

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, final

from django.conf import settings
from django.db import transaction

from server.apps.library.exceptions import (
    CorruptHierarchyError,
    MissingFieldsError,
    ResourceExistsError,
    ValidationError,
)
from server.apps.library.infrastructure.metadata import validate_node_name
from server.apps.library.infrastructure.storage import get_mirror_storage
from server.apps.library.logic.contents import (
    add_child,
    folder_name_taken,
    get_folder,
    get_root_folder,
    guard_root,
    plan_insert_index,
    remove_child,
    root_folder_name,
)
from server.apps.library.logic.paths import (
    is_same_or_descendant,
    resolve_folder_path,
)
from server.apps.library.logic.transactions import Mutation, commit_then_mirror
from server.apps.library.models import Document, Folder, NodeKind

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class FolderContents:
    """Direct children of a folder, in display order."""

    folder: Folder
    documents: list[Document] = field(default_factory=list)
    subfolders: list[Folder] = field(default_factory=list)


def ensure_root_folder() -> tuple[Folder, bool]:
    """Create the root folder and the mirror base directory if missing.

    Returns:
        ``(root, created)``.
    """
    return commit_then_mirror(_ensure_root_records)


def _ensure_root_records() -> Mutation[tuple[Folder, bool]]:
    root = Folder.objects.select_for_update().filter(
        parent_folder__isnull=True,
    ).first()
    created = root is None
    if root is None:
        root = Folder.objects.create(name=root_folder_name())
        logger.info('Root folder created (ID: %d)', root.pk)
    else:
        logger.info('Root folder already exists (ID: %d)', root.pk)
    return Mutation((root, created), get_mirror_storage().ensure_base_directory)


def create_folder(name: str, parent_id: int) -> Folder:
    """Create a folder at the end of its parent's subfolder list.

    Args:
        name: Folder name, unique among the parent's subfolders.
        parent_id: Id of the parent folder.

    Returns:
        Created Folder instance.

    Raises:
        MissingFieldsError: If name or parent_id is missing.
        NotFoundError: If the parent folder does not exist.
        ResourceExistsError: If a sibling folder or document file already
            uses the name.
        MirrorDivergenceError: If the directory cannot be created.
    """
    validate_node_name(name)
    if parent_id is None:
        raise MissingFieldsError('Missing fields: parent_id')

    return commit_then_mirror(partial(_create_folder_records, name, parent_id))


def _create_folder_records(name: str, parent_id: int) -> Mutation[Folder]:
    parent = get_folder(parent_id, for_update=True)
    if folder_name_taken(parent.pk, name):
        raise ResourceExistsError(f"Folder named '{name}' already exists here.")

    folder = Folder.objects.create(name=name, parent_folder=parent)
    add_child(parent, NodeKind.FOLDER, folder.pk)
    path = resolve_folder_path(folder)

    logger.info('Folder created: %s (ID: %d)', path, folder.pk)
    return Mutation(folder, partial(get_mirror_storage().create_directory, path))


def rename_folder(folder_id: int, new_name: str) -> Folder:
    """Rename a folder.

    Renaming to the current name returns the folder unchanged.

    Args:
        folder_id: Folder to rename.
        new_name: New name, unique among the siblings.

    Returns:
        Renamed Folder instance.

    Raises:
        RootFolderProtectedError: If folder_id is the root.
        NotFoundError: If the folder does not exist.
        ResourceExistsError: If a sibling folder or document file already
            uses the new name.
        MirrorDivergenceError: If the directory cannot be renamed.
    """
    validate_node_name(new_name, 'new_name')

    return commit_then_mirror(partial(_rename_folder_records, folder_id, new_name))


def _rename_folder_records(folder_id: int, new_name: str) -> Mutation[Folder]:
    folder = get_folder(folder_id, for_update=True)
    guard_root(folder)
    if folder.name == new_name:
        return Mutation(folder)

    if folder_name_taken(folder.parent_folder_id, new_name):
        raise ResourceExistsError(
            f"Folder named '{new_name}' already exists here.",
        )

    old_path = resolve_folder_path(folder)
    folder.name = new_name
    folder.save(update_fields=['name'])
    new_path = resolve_folder_path(folder)

    logger.info('Folder renamed: %s -> %s (ID: %d)', old_path, new_path, folder_id)
    return Mutation(
        folder,
        partial(get_mirror_storage().move_or_rename, old_path, new_path),
    )


def move_folder(
    folder_id: int,
    move_to: int,
    place_after: int | None = None,
) -> Folder:
    """Move a folder into another folder, or reorder it among its siblings.

    Args:
        folder_id: Folder to move.
        move_to: Destination parent folder (may be the current parent).
        place_after: Subfolder of the destination to place the folder
            after; None places it first.

    Returns:
        Moved Folder instance.

    Raises:
        RootFolderProtectedError: If folder_id is the root.
        NotFoundError: If a referenced folder does not exist.
        ValidationError: If the destination is the folder or inside it.
        ResourceExistsError: If the destination already uses that name.
        MirrorDivergenceError: If the directory cannot be moved.
    """
    if move_to is None:
        raise MissingFieldsError('Missing fields: move_to')

    return commit_then_mirror(
        partial(_move_folder_records, folder_id, move_to, place_after),
    )


def _move_folder_records(
    folder_id: int,
    move_to: int,
    place_after: int | None,
) -> Mutation[Folder]:
    folder = get_folder(folder_id, for_update=True)
    guard_root(folder)
    current_parent = get_folder(folder.parent_folder_id, for_update=True)
    same_parent = current_parent.pk == move_to
    if same_parent:
        target_parent = current_parent
    else:
        target_parent = get_folder(move_to, for_update=True)

    current_index, new_index = plan_insert_index(
        current_parent,
        target_parent,
        NodeKind.FOLDER,
        folder.pk,
        place_after,
    )
    if same_parent and current_index == new_index:
        return Mutation(folder)

    if is_same_or_descendant(folder.pk, target_parent.pk):
        raise ValidationError('Cannot move folder inside of itself.')

    if not same_parent and folder_name_taken(target_parent.pk, folder.name):
        raise ResourceExistsError(
            f"Folder named '{folder.name}' already exists in {target_parent.name}.",
        )

    old_path = resolve_folder_path(folder)
    folder.parent_folder = target_parent
    folder.save(update_fields=['parent_folder'])
    remove_child(current_parent, NodeKind.FOLDER, folder.pk)
    add_child(target_parent, NodeKind.FOLDER, folder.pk, new_index)

    if same_parent:
        # Sibling order does not exist on disk
        logger.info('Folder reordered: %s (ID: %d)', old_path, folder_id)
        return Mutation(folder)

    new_path = resolve_folder_path(folder)
    logger.info('Folder moved: %s -> %s (ID: %d)', old_path, new_path, folder_id)
    return Mutation(
        folder,
        partial(get_mirror_storage().move_or_rename, old_path, new_path),
    )


def delete_folder(folder_id: int) -> Folder:
    """Delete an empty folder.

    Args:
        folder_id: Folder to delete.

    Returns:
        The deleted Folder instance (no longer saved).

    Raises:
        RootFolderProtectedError: If folder_id is the root.
        NotFoundError: If the folder does not exist.
        ValidationError: If the folder still has children.
        MirrorDivergenceError: If the directory cannot be removed.
    """
    return commit_then_mirror(partial(_delete_folder_records, folder_id))


def _delete_folder_records(folder_id: int) -> Mutation[Folder]:
    folder = get_folder(folder_id, for_update=True)
    guard_root(folder)
    if folder.subfolders or folder.documents:
        raise ValidationError("Can't delete non-empty folder")

    path = resolve_folder_path(folder)
    parent = get_folder(folder.parent_folder_id, for_update=True)
    folder.delete()
    remove_child(parent, NodeKind.FOLDER, folder_id)

    logger.info('Folder deleted: %s (ID: %d)', path, folder_id)
    return Mutation(folder, partial(get_mirror_storage().delete, path))


def get_folder_contents(folder_id: int) -> FolderContents:
    """Get the direct children of a folder.

    Args:
        folder_id: Folder to list.

    Returns:
        FolderContents with documents and subfolders in display order.

    Raises:
        NotFoundError: If the folder does not exist.
    """
    folder = get_folder(folder_id)
    documents = Document.objects.in_bulk(folder.documents)
    subfolders = Folder.objects.in_bulk(folder.subfolders)

    missing = (
        set(folder.documents) - documents.keys()
    ) | (
        set(folder.subfolders) - subfolders.keys()
    )
    if missing:
        logger.warning(
            'Folder %d lists children that do not exist: %s',
            folder_id,
            sorted(missing),
        )

    return FolderContents(
        folder=folder,
        documents=[documents[pk] for pk in folder.documents if pk in documents],
        subfolders=[subfolders[pk] for pk in folder.subfolders if pk in subfolders],
    )


def get_all_folders() -> dict[str, Any]:
    """Get the whole folder tree expanded from the root.

    Documents are reduced to id, name and extension.

    Returns:
        Nested dictionary: the root record with every ``subfolders``
        entry replaced by the expanded child record.

    Raises:
        NotFoundError: If the root folder is missing.
        CorruptHierarchyError: If the lists form a cycle or run too deep.
    """
    with transaction.atomic():
        root = get_root_folder()
        folders = Folder.objects.in_bulk()
        documents = {
            document['id']: document
            for document in Document.objects.values('id', 'name', 'extension')
        }

    return _expand_folder(root.pk, folders, documents, depth=0)


def _expand_folder(
    folder_id: int,
    folders: dict[int, Folder],
    documents: dict[int, dict[str, Any]],
    depth: int,
) -> dict[str, Any]:
    if depth >= settings.LIBRARY_MAX_TREE_DEPTH:
        raise CorruptHierarchyError(
            f'Folder tree is deeper than {settings.LIBRARY_MAX_TREE_DEPTH} levels',
        )

    folder = folders[folder_id]
    record = folder.as_record()
    record['documents'] = [
        documents[pk] for pk in folder.documents if pk in documents
    ]
    record['subfolders'] = [
        _expand_folder(pk, folders, documents, depth + 1)
        for pk in folder.subfolders
        if pk in folders
    ]
    return record
