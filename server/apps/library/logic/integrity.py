"""Consistency report for the folder tree.

The child id lists on folders and the parent references on children
describe the same tree twice. This module lists every place where the
two disagree, plus root and cycle problems.
"""

import logging
from collections import Counter

from django.conf import settings

from server.apps.library.models import Document, Folder, NodeKind

logger = logging.getLogger(__name__)


def _list_problems(
    folder: Folder,
    kind: NodeKind,
    parent_of: dict[int, int | None],
) -> list[str]:
    problems = []
    label = kind.value
    listed = folder.children_ids(kind)

    for child_id, count in Counter(listed).items():
        if count > 1:
            problems.append(
                f'Folder {folder.pk} lists {label} {child_id} {count} times',
            )

    for child_id in listed:
        if child_id not in parent_of:
            problems.append(
                f'Folder {folder.pk} lists missing {label} {child_id}',
            )
        elif parent_of[child_id] != folder.pk:
            problems.append(
                f'Folder {folder.pk} lists {label} {child_id} '
                f'whose parent is {parent_of[child_id]}',
            )
    return problems


def _unlisted_problems(
    kind: NodeKind,
    parent_of: dict[int, int | None],
    folders: dict[int, Folder],
) -> list[str]:
    problems = []
    label = kind.value
    for child_id, parent_id in parent_of.items():
        if parent_id is None:
            continue
        parent = folders.get(parent_id)
        if parent is None:
            problems.append(f'{label.capitalize()} {child_id} has missing parent {parent_id}')
        elif child_id not in parent.children_ids(kind):
            problems.append(
                f'{label.capitalize()} {child_id} is not listed by its parent {parent_id}',
            )
    return problems


def _cycle_problems(folder_parents: dict[int, int | None]) -> list[str]:
    max_depth = settings.LIBRARY_MAX_TREE_DEPTH
    problems = []
    for folder_id in folder_parents:
        visited: set[int] = set()
        current_id: int | None = folder_id
        while current_id is not None and current_id in folder_parents:
            if current_id in visited:
                problems.append(f'Folder {folder_id} is part of a parent cycle')
                break
            if len(visited) >= max_depth:
                problems.append(
                    f'Folder {folder_id} is nested deeper than {max_depth} levels',
                )
                break
            visited.add(current_id)
            current_id = folder_parents[current_id]
    return problems


def find_hierarchy_problems() -> list[str]:
    """Compare child lists, parent references and root count.

    Returns:
        Human readable problem descriptions, empty when consistent.
    """
    folders = Folder.objects.in_bulk()
    folder_parents = {pk: folder.parent_folder_id for pk, folder in folders.items()}
    document_parents = dict(
        Document.objects.values_list('pk', 'parent_folder_id'),
    )

    problems = []
    root_count = sum(1 for parent_id in folder_parents.values() if parent_id is None)
    if root_count != 1:
        problems.append(f'Expected exactly one root folder, found {root_count}')

    for folder in folders.values():
        problems.extend(_list_problems(folder, NodeKind.FOLDER, folder_parents))
        problems.extend(_list_problems(folder, NodeKind.DOCUMENT, document_parents))

    problems.extend(_unlisted_problems(NodeKind.FOLDER, folder_parents, folders))
    problems.extend(_unlisted_problems(NodeKind.DOCUMENT, document_parents, folders))
    problems.extend(_cycle_problems(folder_parents))

    for problem in problems:
        logger.warning('Hierarchy problem: %s', problem)
    return problems
