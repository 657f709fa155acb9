"""Production stage ordering and read-time stage gating.

Nothing here is persisted: every caller recomputes gating from the current
set of sibling tasks of one script.
"""

from collections.abc import Iterable

from adflow.models.task import Task
from adflow.services.task_state_machine import TaskStatus, TaskType

STAGES: tuple[TaskType, ...] = (
    TaskType.FILMING,
    TaskType.EDITING,
    TaskType.REVIEW,
    TaskType.DELIVERY,
)


def previous_stage(stage: str) -> TaskType | None:
    """Stage immediately before *stage*, or None for the first / off-sequence stage."""
    try:
        index = STAGES.index(TaskType(stage))
    except ValueError:
        return None
    if index == 0:
        return None
    return STAGES[index - 1]


def _recency(task: Task) -> tuple:
    # Transient tasks have neither created_at nor id yet; they sort oldest.
    created = task.created_at.timestamp() if task.created_at is not None else float("-inf")
    return (created, task.id if task.id is not None else -1)


def find_stage_task(script_tasks: Iterable[Task], stage: str) -> Task | None:
    """Task of type *stage*; the most recently created wins if there are several."""
    matches = [t for t in script_tasks if t.type == stage]
    if not matches:
        return None
    return max(matches, key=_recency)


def is_stage_unblocked(script_tasks: Iterable[Task], stage: str) -> bool:
    """Whether work on *stage* may start for the script owning *script_tasks*.

    The first stage is always unblocked. REVISION sits outside the sequence
    and is never gated. Any other stage needs the previous stage's task to
    exist and be COMPLETED.
    """
    if stage == TaskType.REVISION:
        return True

    prev = previous_stage(stage)
    if prev is None:
        return True

    prev_task = find_stage_task(script_tasks, prev)
    return prev_task is not None and prev_task.status == TaskStatus.COMPLETED


def get_current_stage(script_tasks: Iterable[Task]) -> TaskType | None:
    """First stage in order whose task exists and is not yet COMPLETED."""
    tasks = list(script_tasks)
    for stage in STAGES:
        task = find_stage_task(tasks, stage)
        if task is not None and task.status != TaskStatus.COMPLETED:
            return stage
    return None


def group_by_stage(tasks: Iterable[Task]) -> dict[TaskType, list[Task]]:
    """Bucket tasks by pipeline stage, in stage order. REVISION tasks are dropped."""
    grouped: dict[TaskType, list[Task]] = {stage: [] for stage in STAGES}
    for task in tasks:
        if task.type in grouped:
            grouped[TaskType(task.type)].append(task)
    return grouped
