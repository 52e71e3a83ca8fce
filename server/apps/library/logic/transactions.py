"""Database transaction wrapping for hierarchy mutations.

A mutation runs in two sequential phases:

1. The relational change runs inside ``transaction.atomic()``. Any
   error rolls every database change back and propagates unchanged.
2. After the commit the mirror action (if any) is applied to the
   filesystem. The filesystem is not transactional: when this phase
   fails the database change stays committed and the failure is raised
   as MirrorDivergenceError so callers can reconcile.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, final

from django.db import transaction

from server.apps.library.exceptions import MirrorDivergenceError

NodeT = TypeVar('NodeT')

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class Mutation(Generic[NodeT]):
    """Outcome of the relational phase.

    ``mirror`` is None when the change has no physical counterpart
    (no-ops, reorders, description edits).
    """

    node: NodeT
    mirror: Callable[[], None] | None = None


def commit_then_mirror(unit: Callable[[], Mutation[NodeT]]) -> NodeT:
    """Run a relational unit of work, then its mirror action.

    Args:
        unit: Callable doing the database work and describing the
            mirror action to run once it is committed.

    Returns:
        The node produced by the unit.

    Raises:
        MirrorDivergenceError: If the mirror action fails after commit.
    """
    with transaction.atomic():
        mutation = unit()

    if mutation.mirror is None:
        return mutation.node

    try:
        mutation.mirror()
    except Exception as error:
        logger.exception(
            'Mirror step failed after commit, database and mirror diverged: %r',
            mutation.node,
        )
        raise MirrorDivergenceError(mutation.node, error) from error

    return mutation.node
