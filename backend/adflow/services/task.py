"""Task CRUD and status changes."""

import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import case, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from adflow.api.schemas import TaskCreate, TaskUpdate
from adflow.models.script import Script
from adflow.models.task import Task
from adflow.models.team_member import TeamMember
from adflow.services.audit import log_audit
from adflow.services.stage_sequencer import is_stage_unblocked
from adflow.services.task_state_machine import (
    TaskAction,
    TaskStatus,
    completion_timestamp,
    validate_transition,
)

logger = logging.getLogger(__name__)

# Board order: active work first, finished work last
_STATUS_ORDER = case(
    {
        TaskStatus.IN_PROGRESS.value: 0,
        TaskStatus.BLOCKED.value: 1,
        TaskStatus.QUEUED.value: 2,
        TaskStatus.COMPLETED.value: 3,
    },
    value=Task.status,
    else_=4,
)


async def list_tasks(
    db: AsyncSession,
    *,
    status_filter: str | None = None,
    type_filter: str | None = None,
    assignee: str | None = None,
    script_id: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> list[Task]:
    """List tasks. ``"all"`` disables a filter; assignee ``"unassigned"`` matches NULL."""
    query = select(Task)
    if status_filter and status_filter != "all":
        query = query.where(Task.status == status_filter)
    if type_filter and type_filter != "all":
        query = query.where(Task.type == type_filter)
    if assignee and assignee != "all":
        if assignee == "unassigned":
            query = query.where(Task.assignee_id.is_(None))
        else:
            try:
                assignee_id = int(assignee)
            except ValueError:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="assignee must be a team member id, 'all' or 'unassigned'",
                )
            query = query.where(Task.assignee_id == assignee_id)
    if script_id is not None:
        query = query.where(Task.script_id == script_id)

    result = await db.execute(
        query.order_by(_STATUS_ORDER, Task.due_date.asc().nulls_last(), Task.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_task(db: AsyncSession, task_id: int) -> Task:
    result = await db.execute(select(Task).where(Task.id == task_id))
    task = result.scalar_one_or_none()
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


async def get_script_tasks(db: AsyncSession, script_id: int) -> list[Task]:
    result = await db.execute(
        select(Task).where(Task.script_id == script_id).order_by(Task.id)
    )
    return list(result.scalars().all())


async def _ensure_assignee(db: AsyncSession, assignee_id: int) -> None:
    if await db.get(TeamMember, assignee_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Team member not found"
        )


async def _commit_task(db: AsyncSession, task: Task) -> None:
    """Commit a created or retyped task; a second task for the same stage is 409."""
    task_type = task.type
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Script already has a {task_type} task",
        )
    await db.refresh(task)


async def create_task(db: AsyncSession, data: TaskCreate) -> Task:
    if await db.get(Script, data.script_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Script not found")
    if data.assignee_id is not None:
        await _ensure_assignee(db, data.assignee_id)

    task = Task(
        type=data.type.value,
        status=TaskStatus.QUEUED.value,
        script_id=data.script_id,
        assignee_id=data.assignee_id,
        estimated_time=data.estimated_time,
        due_date=data.due_date,
        scheduled_for=data.scheduled_for,
        notes=data.notes,
    )
    db.add(task)
    await _commit_task(db, task)
    return task


async def _set_status(db: AsyncSession, task: Task, new_status: TaskStatus, action: str) -> None:
    """Write *new_status*; completed_at follows it in and out of COMPLETED."""
    old_status = task.status
    task.completed_at = completion_timestamp(
        old_status, new_status, task.completed_at, datetime.now(timezone.utc)
    )
    task.status = new_status.value

    await log_audit(
        db,
        action=f"task_{action}",
        entity_type="task",
        entity_id=task.id,
        details={"from": old_status, "to": task.status},
    )
    logger.info("Task %s %s: %s -> %s", task.id, action, old_status, task.status)


async def _apply_action(db: AsyncSession, task: Task, action: TaskAction) -> None:
    """Move *task* along *action*, enforcing stage gating on start."""
    new_status = validate_transition(task.status, action)

    if action == TaskAction.START:
        siblings = await get_script_tasks(db, task.script_id)
        if not is_stage_unblocked(siblings, task.type):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Cannot start {task.type}: previous stage is not completed",
            )

    await _set_status(db, task, new_status, action.value)


async def transition_task(db: AsyncSession, task_id: int, action: str) -> Task:
    task = await get_task(db, task_id)
    await _apply_action(db, task, TaskAction(action))
    await db.commit()
    await db.refresh(task)
    return task


async def update_task(db: AsyncSession, task_id: int, data: TaskUpdate) -> Task:
    """Partial update.

    Unlike transition_task, any status may be written here; the only side
    effect is completed_at.
    """
    task = await get_task(db, task_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("assignee_id") is not None:
        await _ensure_assignee(db, changes["assignee_id"])

    # Before the retype: a duplicate-stage error must surface at commit, not in the audit flush.
    new_status = changes.pop("status", None)
    if new_status is not None and new_status != task.status:
        await _set_status(db, task, TaskStatus(new_status), "status_changed")

    for field, value in changes.items():
        if field == "type" and value is not None:
            value = value.value
        if field in ("type", "estimated_time") and value is None:
            continue
        setattr(task, field, value)

    await _commit_task(db, task)
    return task


async def delete_task(db: AsyncSession, task: Task) -> None:
    await log_audit(
        db,
        action="task_deleted",
        entity_type="task",
        entity_id=task.id,
        details={"script_id": task.script_id, "type": task.type},
    )
    await db.delete(task)
    await db.commit()
    logger.info("Deleted task %s of script %s", task.id, task.script_id)
