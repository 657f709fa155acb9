"""Production task generation for approved scripts.

Time estimates are heuristics in hours, derived from the script duration
(seconds) and the number of target aspect ratios.
"""

import json
import logging
import math

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from adflow.api.schemas import ProductionTaskConfig
from adflow.models.script import Script
from adflow.models.task import Task
from adflow.models.team_member import TeamMember
from adflow.services.audit import log_audit
from adflow.services.script_rules import ScriptStatus
from adflow.services.task_state_machine import TaskStatus, TaskType

logger = logging.getLogger(__name__)

REVIEW_HOURS = 1
REVIEW_NOTES = "Review edited video for quality, brand alignment, and script accuracy"
FILMING_FALLBACK_NOTES = "Filming task for approved script"


def estimate_filming_hours(duration: int) -> int:
    # Two hours minimum, one hour per 30 seconds of footage plus setup.
    return max(2, math.ceil(duration / 30) + 1)


def estimate_editing_hours(duration: int, aspect_ratio_count: int) -> int:
    base = max(2, math.ceil(duration / 60 * 3))
    multiplier = max(1, aspect_ratio_count * 0.5)
    return math.ceil(base * multiplier)


def estimate_delivery_hours(aspect_ratio_count: int) -> int:
    return max(1, math.ceil(aspect_ratio_count * 0.5))


def _filming_notes(script: Script) -> str:
    req = script.production_req
    if req is None:
        return FILMING_FALLBACK_NOTES

    lines = [f"Location: {req.location_type}", f"Talent: {req.talent_needed}"]
    if req.props_required:
        lines.append(f"Props: {', '.join(req.props_required)}")
    if req.product_samples:
        lines.append(f"Product samples needed: {req.sample_quantity or 'TBD'}")
    if req.equipment_notes:
        lines.append(f"Equipment: {req.equipment_notes}")
    return "\n".join(lines)


def _editing_notes(script: Script) -> str:
    lines = [f"Duration: {script.duration} seconds"]
    req = script.production_req
    if req is not None:
        if req.color_grade:
            lines.append(f"Color grade: {req.color_grade}")
        if req.transitions:
            lines.append(f"Transitions: {req.transitions}")
        if req.music_style:
            lines.append(f"Music style: {req.music_style}")
        if req.style_reference:
            lines.append(f"Style reference: {req.style_reference}")
    if script.aspect_ratios:
        lines.append(f"Aspect ratios: {', '.join(script.aspect_ratios)}")
    return "\n".join(lines)


def _delivery_notes(script: Script) -> str:
    lines = ["Export final videos for all platforms"]
    if script.aspect_ratios:
        lines.append(f"Formats: {', '.join(script.aspect_ratios)}")
    req = script.production_req
    if req is not None and req.deliverables:
        lines.append(f"Deliverables: {json.dumps(req.deliverables)}")
    return "\n".join(lines)


def build_production_tasks(script: Script) -> list[Task]:
    """Build (but do not persist) the default FILMING → DELIVERY task set."""
    ratio_count = len(script.aspect_ratios or [])
    specs = [
        (TaskType.FILMING, estimate_filming_hours(script.duration), _filming_notes(script)),
        (
            TaskType.EDITING,
            estimate_editing_hours(script.duration, ratio_count),
            _editing_notes(script),
        ),
        (TaskType.REVIEW, REVIEW_HOURS, REVIEW_NOTES),
        (TaskType.DELIVERY, estimate_delivery_hours(ratio_count), _delivery_notes(script)),
    ]
    return [
        Task(
            type=task_type.value,
            status=TaskStatus.QUEUED.value,
            script_id=script.id,
            estimated_time=hours,
            notes=notes,
        )
        for task_type, hours, notes in specs
    ]


async def _flush_batch(db: AsyncSession, script_id: int, tasks: list[Task]) -> None:
    db.add_all(tasks)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.warning("Duplicate production tasks rejected for script %d", script_id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Production tasks already exist for this script",
        )


async def generate_production_tasks(db: AsyncSession, script: Script) -> list[Task]:
    """Insert the default task set for *script* as one batch.

    Does not check for existing tasks and does not touch the script status;
    callers guard with has_existing_tasks and commit. A second set for the
    same script violates the per-stage unique index and surfaces as 409.
    """
    tasks = build_production_tasks(script)
    await _flush_batch(db, script.id, tasks)
    await log_audit(
        db,
        action="tasks_generated",
        entity_type="script",
        entity_id=script.id,
        details={"task_ids": [t.id for t in tasks]},
    )
    logger.info("Generated %d production tasks for script %d", len(tasks), script.id)
    return tasks


async def has_existing_tasks(db: AsyncSession, script_id: int) -> bool:
    count = await db.scalar(
        select(func.count()).select_from(Task).where(Task.script_id == script_id)
    )
    return (count or 0) > 0


async def ensure_assignees_exist(db: AsyncSession, assignee_ids: list[int]) -> None:
    """Raise 404 unless every id refers to an existing team member."""
    unique_ids = set(assignee_ids)
    if not unique_ids:
        return
    result = await db.execute(select(TeamMember.id).where(TeamMember.id.in_(unique_ids)))
    found = set(result.scalars().all())
    if found != unique_ids:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="One or more team members not found",
        )


async def create_custom_production_tasks(
    db: AsyncSession, script_id: int, configs: list[ProductionTaskConfig],
) -> tuple[Script, list[Task]]:
    """Create a caller-configured task set and move the script into production."""
    script = await db.get(Script, script_id)
    if script is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Script not found")

    if script.status != ScriptStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Script must be approved before creating production tasks",
        )
    if await has_existing_tasks(db, script_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Production tasks already exist for this script",
        )

    await ensure_assignees_exist(db, [c.assignee_id for c in configs if c.assignee_id])

    tasks = [
        Task(
            type=config.type.value,
            status=TaskStatus.QUEUED.value,
            script_id=script_id,
            estimated_time=config.estimated_time,
            assignee_id=config.assignee_id,
            due_date=config.due_date,
            notes=config.notes,
        )
        for config in configs
    ]
    await _flush_batch(db, script_id, tasks)

    script.status = ScriptStatus.IN_PRODUCTION.value
    await log_audit(
        db,
        action="tasks_created",
        entity_type="script",
        entity_id=script_id,
        details={"types": [t.type for t in tasks]},
    )
    await db.commit()
    for task in tasks:
        await db.refresh(task)
    logger.info("Created %d custom production tasks for script %d", len(tasks), script_id)
    return script, tasks
