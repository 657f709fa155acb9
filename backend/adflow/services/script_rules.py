"""Script status rules: pure logic, no DB dependency."""

from enum import StrEnum


class ScriptStatus(StrEnum):
    DRAFT = "DRAFT"
    IN_REVIEW = "IN_REVIEW"
    REVISION_REQUESTED = "REVISION_REQUESTED"
    APPROVED = "APPROVED"
    IN_PRODUCTION = "IN_PRODUCTION"
    COMPLETED = "COMPLETED"


class InvalidScriptTransitionError(Exception):
    """Raised when a script status change is not allowed."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Invalid script transition: {current} -> {target}")


# Review statuses may follow each other freely.
PRE_PRODUCTION_STATUSES: frozenset[ScriptStatus] = frozenset({
    ScriptStatus.DRAFT,
    ScriptStatus.IN_REVIEW,
    ScriptStatus.REVISION_REQUESTED,
    ScriptStatus.APPROVED,
})


def validate_status_change(current: str, target: str) -> ScriptStatus:
    """Check a manually requested script status change.

    IN_PRODUCTION is only ever entered by creating production tasks, and
    once there a script can only move on to COMPLETED.
    """
    try:
        current_status = ScriptStatus(current)
        target_status = ScriptStatus(target)
    except ValueError:
        raise InvalidScriptTransitionError(current, target)

    if current_status == target_status:
        return target_status
    if target_status == ScriptStatus.IN_PRODUCTION:
        raise InvalidScriptTransitionError(current, target)
    if current_status in PRE_PRODUCTION_STATUSES and target_status in PRE_PRODUCTION_STATUSES:
        return target_status
    if current_status == ScriptStatus.IN_PRODUCTION and target_status == ScriptStatus.COMPLETED:
        return target_status
    raise InvalidScriptTransitionError(current, target)


def enters_approval(current: str, target: str) -> bool:
    return target == ScriptStatus.APPROVED and current != ScriptStatus.APPROVED
