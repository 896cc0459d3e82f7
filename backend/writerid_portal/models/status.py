"""
Processing status shared by datasets, models and tasks.

The progression is one-directional:

    Created ──▶ Processing ──▶ Completed
       │             └───────▶ Failed
       └──────────────────────▶ Completed | Failed

Completed and Failed are terminal. Re-asserting the current status is
accepted so that repeated executor callbacks are harmless.
"""

import enum
from typing import Optional

from writerid_portal.exceptions import InvalidStatusTransitionError


class ProcessingStatus(str, enum.Enum):
    CREATED = "Created"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStatus.COMPLETED, ProcessingStatus.FAILED)


_RANK = {
    ProcessingStatus.CREATED: 0,
    ProcessingStatus.PROCESSING: 1,
    ProcessingStatus.COMPLETED: 2,
    ProcessingStatus.FAILED: 2,
}


def can_transition(current: ProcessingStatus, target: ProcessingStatus) -> bool:
    """True when moving from `current` to `target` is legal."""
    if current == target:
        return True
    if current.is_terminal:
        return False
    return _RANK[target] > _RANK[current]


def ensure_transition(
    resource: str,
    resource_id: Optional[object],
    current: ProcessingStatus,
    target: ProcessingStatus,
) -> None:
    """Raises InvalidStatusTransitionError unless can_transition() allows the move."""
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(
            resource=resource,
            resource_id=str(resource_id) if resource_id is not None else None,
            current=current.value,
            target=target.value,
        )
