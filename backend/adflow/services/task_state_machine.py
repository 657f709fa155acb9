"""Task status state machine: pure logic, no DB dependency.

Defines task types and statuses, the action table used by the transition
endpoint and the completed_at side effect. A plain status update may set any
status; completion_timestamp is the only rule it follows.
"""

from datetime import datetime
from enum import StrEnum


class TaskType(StrEnum):
    FILMING = "FILMING"
    EDITING = "EDITING"
    REVIEW = "REVIEW"
    REVISION = "REVISION"
    DELIVERY = "DELIVERY"


class TaskStatus(StrEnum):
    QUEUED = "QUEUED"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    COMPLETED = "COMPLETED"


class TaskAction(StrEnum):
    START = "start"
    COMPLETE = "complete"
    BLOCK = "block"
    RESUME = "resume"
    REOPEN = "reopen"


class InvalidTransitionError(Exception):
    """Raised when a task status change is not in the transition table."""

    def __init__(self, current: str, action: str):
        self.current = current
        self.action = action
        super().__init__(f"Invalid task transition: {current} + {action}")


# (current_status, action) -> new_status
TRANSITIONS: dict[tuple[TaskStatus, TaskAction], TaskStatus] = {
    (TaskStatus.QUEUED, TaskAction.START): TaskStatus.IN_PROGRESS,
    (TaskStatus.QUEUED, TaskAction.BLOCK): TaskStatus.BLOCKED,
    (TaskStatus.IN_PROGRESS, TaskAction.COMPLETE): TaskStatus.COMPLETED,
    (TaskStatus.IN_PROGRESS, TaskAction.BLOCK): TaskStatus.BLOCKED,
    (TaskStatus.BLOCKED, TaskAction.RESUME): TaskStatus.IN_PROGRESS,
    (TaskStatus.COMPLETED, TaskAction.REOPEN): TaskStatus.IN_PROGRESS,
}

# Statuses counted towards a team member's workload
OPEN_STATUSES: frozenset[TaskStatus] = frozenset({
    TaskStatus.QUEUED,
    TaskStatus.IN_PROGRESS,
    TaskStatus.BLOCKED,
})


def validate_transition(current: str, action: str) -> TaskStatus:
    """Return the status reached by applying *action* to *current*.

    Raises InvalidTransitionError if the edge is not in TRANSITIONS.
    """
    try:
        key = (TaskStatus(current), TaskAction(action))
    except ValueError:
        raise InvalidTransitionError(current, action=action)

    if key not in TRANSITIONS:
        raise InvalidTransitionError(current, action=action)
    return TRANSITIONS[key]


def get_available_actions(current: str) -> list[str]:
    """Return the action names offered from *current*, in table order."""
    try:
        current_status = TaskStatus(current)
    except ValueError:
        return []
    return [action.value for (status, action) in TRANSITIONS if status == current_status]


def completion_timestamp(
    old_status: str, new_status: str, completed_at: datetime | None, now: datetime,
) -> datetime | None:
    """Value of completed_at after moving from *old_status* to *new_status*."""
    entering = new_status == TaskStatus.COMPLETED and old_status != TaskStatus.COMPLETED
    leaving = new_status != TaskStatus.COMPLETED and old_status == TaskStatus.COMPLETED
    if entering:
        return now
    if leaving:
        return None
    return completed_at
