"""Mirror path resolution for folders and documents.

Paths are relative to the mirror base directory. The root folder maps
to the base directory itself, so it contributes no path segment:
a document ``Q1.pdf`` in folder ``Reports`` under the root resolves
to ``Reports/Q1.pdf``.

Ancestors are looked up fresh on every call, the walk is bounded so a
cyclic or absurdly deep hierarchy fails fast instead of looping.
"""

from collections.abc import Iterator
from typing import Final

from django.conf import settings

from server.apps.library.exceptions import CorruptHierarchyError
from server.apps.library.models import Document, Folder

# Character used to join mirror path segments
_PATH_SEPARATOR: Final = '/'


def iter_ancestors(
    folder_id: int,
    origin_id: int | None = None,
) -> Iterator[tuple[int, str, int | None]]:
    """Walk from a folder up to the root.

    Args:
        folder_id: Folder to start from (included in the walk).
        origin_id: Node the walk was started for, treated as already
            visited so a chain leading back to it is reported.

    Yields:
        ``(id, name, parent_id)`` for each folder, starting folder first.

    Raises:
        CorruptHierarchyError: On a cycle, a dangling parent reference
            or a chain longer than LIBRARY_MAX_TREE_DEPTH.
    """
    max_depth = settings.LIBRARY_MAX_TREE_DEPTH
    visited: set[int] = set() if origin_id is None else {origin_id}
    current_id: int | None = folder_id
    depth = 0

    while current_id is not None:
        if current_id in visited:
            raise CorruptHierarchyError(
                f'Cycle detected at folder {current_id}',
            )
        if depth >= max_depth:
            raise CorruptHierarchyError(
                f'Folder {folder_id} is nested deeper than {max_depth} levels',
            )
        visited.add(current_id)
        depth += 1

        row = Folder.objects.filter(pk=current_id).values_list(
            'name',
            'parent_folder_id',
        ).first()
        if row is None:
            raise CorruptHierarchyError(
                f'Folder {current_id} is referenced but does not exist',
            )

        name, parent_id = row
        yield current_id, name, parent_id
        current_id = parent_id


def _ancestor_segments(parent_id: int, origin_id: int | None = None) -> list[str]:
    segments = [
        name
        for _, name, grandparent_id in iter_ancestors(parent_id, origin_id)
        if grandparent_id is not None
    ]
    segments.reverse()
    return segments


def resolve_folder_path(folder: Folder) -> str:
    """Get the mirror path of a folder.

    The folder's own name is taken from the instance, so an unsaved
    rename is reflected; ancestors are read from the database.

    Args:
        folder: Folder to resolve.

    Returns:
        Relative path, empty string for the root folder.
    """
    if folder.parent_folder_id is None:
        return ''
    segments = _ancestor_segments(folder.parent_folder_id, folder.pk)
    segments.append(folder.name)
    return _PATH_SEPARATOR.join(segments)


def resolve_document_path(document: Document) -> str:
    """Get the mirror path of a document.

    Args:
        document: Document to resolve.

    Returns:
        Relative path ending in ``{name}.{extension}``.
    """
    segments = _ancestor_segments(document.parent_folder_id)
    segments.append(document.get_filename())
    return _PATH_SEPARATOR.join(segments)


def is_same_or_descendant(folder_id: int, candidate_id: int) -> bool:
    """Check whether a candidate folder lies inside another folder.

    Args:
        folder_id: Folder whose subtree is checked.
        candidate_id: Folder to look for in that subtree.

    Returns:
        True if candidate is the folder itself or one of its descendants.
    """
    return any(
        ancestor_id == folder_id
        for ancestor_id, _, _ in iter_ancestors(candidate_id)
    )
