"""Image upload lifecycle: statuses and the legal transitions between them.

    pending ──► completed ──► deleted
       │
       ├──► failed
       └──► canceled

The record store consults this table both to pre-filter candidate records and
to build the status condition on each transactional write, so the table is the
single source of truth for what may move where.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Final

from core.models.errors import InvalidStatusTransitionError


class ImageStatus(str, Enum):
    """Lifecycle status of an image record."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"
    DELETED = "deleted"


ALLOWED_TRANSITIONS: Final[Mapping[ImageStatus, frozenset[ImageStatus]]] = {
    ImageStatus.PENDING: frozenset(
        {ImageStatus.COMPLETED, ImageStatus.FAILED, ImageStatus.CANCELED}
    ),
    ImageStatus.COMPLETED: frozenset({ImageStatus.DELETED}),
    ImageStatus.FAILED: frozenset(),
    ImageStatus.CANCELED: frozenset(),
    ImageStatus.DELETED: frozenset(),
}

# Outcomes a client may report for an upload
CONFIRMABLE_STATUSES: Final[frozenset[ImageStatus]] = frozenset(
    {ImageStatus.COMPLETED, ImageStatus.FAILED}
)


def can_transition(current: ImageStatus, target: ImageStatus) -> bool:
    """Return True if `current -> target` appears in the transition table."""
    return target in ALLOWED_TRANSITIONS[ImageStatus(current)]


def ensure_transition(current: ImageStatus, target: ImageStatus) -> None:
    """Raise InvalidStatusTransitionError unless `current -> target` is legal."""
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(
            message=f"Cannot move image from '{ImageStatus(current).value}' "
            f"to '{ImageStatus(target).value}'",
            details={
                "from": ImageStatus(current).value,
                "to": ImageStatus(target).value,
            },
        )


def source_statuses(target: ImageStatus) -> frozenset[ImageStatus]:
    """Return every status from which `target` is reachable in one step.

    Raises:
        InvalidStatusTransitionError: If nothing can reach `target`
    """
    sources = frozenset(
        status for status, targets in ALLOWED_TRANSITIONS.items() if target in targets
    )
    if not sources:
        raise InvalidStatusTransitionError(
            message=f"No status can move to '{ImageStatus(target).value}'",
            details={"to": ImageStatus(target).value},
        )
    return sources
