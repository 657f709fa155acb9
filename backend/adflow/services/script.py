"""Scripts: versions, production requirements and the approval hand-off."""

import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from adflow.api.schemas import (
    ProductionRequirementCreate,
    ScriptCreate,
    ScriptVersionCreate,
)
from adflow.models.production_requirement import ProductionRequirement
from adflow.models.script import Script
from adflow.models.task import Task
from adflow.services.audit import log_audit
from adflow.services.production import generate_production_tasks, has_existing_tasks
from adflow.services.script_rules import (
    ScriptStatus,
    enters_approval,
    validate_status_change,
)
from adflow.services.stage_sequencer import get_current_stage, is_stage_unblocked
from adflow.services.task_state_machine import TaskAction, get_available_actions

logger = logging.getLogger(__name__)


async def list_scripts(
    db: AsyncSession,
    *,
    concept_id: int | None = None,
    status_filter: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> list[tuple[Script, int]]:
    """Scripts newest first, each paired with its task count."""
    task_count = (
        select(func.count(Task.id))
        .where(Task.script_id == Script.id)
        .correlate(Script)
        .scalar_subquery()
    )
    query = select(Script, task_count)
    if concept_id is not None:
        query = query.where(Script.concept_id == concept_id)
    if status_filter:
        query = query.where(Script.status == status_filter)

    result = await db.execute(
        query.order_by(Script.created_at.desc(), Script.version.desc())
        .offset(offset)
        .limit(limit)
    )
    return [(row[0], row[1] or 0) for row in result.all()]


async def get_script(db: AsyncSession, script_id: int) -> Script:
    result = await db.execute(select(Script).where(Script.id == script_id))
    script = result.scalar_one_or_none()
    if not script:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Script not found")
    return script


async def get_child_version_ids(db: AsyncSession, script_id: int) -> list[int]:
    result = await db.execute(
        select(Script.id).where(Script.parent_id == script_id).order_by(Script.version.desc())
    )
    return list(result.scalars().all())


async def create_script(db: AsyncSession, data: ScriptCreate) -> Script:
    script = Script(
        concept_id=data.concept_id,
        title=data.title,
        version=1,
        content={name: section.model_dump() for name, section in data.content.items()},
        duration=data.duration,
        aspect_ratios=list(data.aspect_ratios),
        text_overlays=list(data.text_overlays),
        status=ScriptStatus.DRAFT.value,
    )
    db.add(script)
    await db.commit()
    await db.refresh(script)
    return script


async def create_script_version(
    db: AsyncSession, script_id: int, data: ScriptVersionCreate,
) -> tuple[Script, Script]:
    """Create a new DRAFT version with *updated_sections* merged over the parent.

    The parent row is left untouched. Returns ``(parent, new_version)``.
    """
    parent = await get_script(db, script_id)

    content = dict(parent.content or {})
    content.update(
        {name: section.model_dump() for name, section in data.updated_sections.items()}
    )

    child = Script(
        concept_id=parent.concept_id,
        title=parent.title,
        version=parent.version + 1,
        content=content,
        duration=parent.duration,
        aspect_ratios=list(parent.aspect_ratios or []),
        text_overlays=list(parent.text_overlays or []),
        status=ScriptStatus.DRAFT.value,
        parent_id=parent.id,
    )
    db.add(child)
    await db.commit()
    await db.refresh(child)
    logger.info(
        "Script %d v%d -> new version %d (%s edit)",
        parent.id, parent.version, child.version, data.edit_source,
    )
    return parent, child


async def attach_production_requirement(
    db: AsyncSession, script_id: int, data: ProductionRequirementCreate,
) -> ProductionRequirement:
    """Attach the script's production requirement. It can be set only once."""
    script = await get_script(db, script_id)
    if script.production_req is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Production requirement already set for this script",
        )

    req = ProductionRequirement(script_id=script.id, **data.model_dump(mode="json"))
    db.add(req)
    await db.commit()
    await db.refresh(req)
    return req


async def _start_production(db: AsyncSession, script: Script) -> bool:
    """Generate default tasks and flip to IN_PRODUCTION unless tasks already exist.

    Runs inside the caller's transaction; the caller commits.
    """
    if await has_existing_tasks(db, script.id):
        logger.info("Script %d already has tasks; leaving status APPROVED", script.id)
        return False
    await generate_production_tasks(db, script)
    script.status = ScriptStatus.IN_PRODUCTION.value
    return True


async def update_script_status(db: AsyncSession, script_id: int, new_status: str) -> Script:
    """Change a script's status.

    Entering APPROVED stamps approved_at and, when the script has no tasks
    yet, generates the default production tasks and moves the script to
    IN_PRODUCTION in the same commit.
    """
    script = await get_script(db, script_id)
    old_status = script.status
    target = validate_status_change(old_status, new_status)

    script.status = target.value
    if enters_approval(old_status, target):
        script.approved_at = datetime.now(timezone.utc)
        await _start_production(db, script)

    await log_audit(
        db,
        action="script_status_changed",
        entity_type="script",
        entity_id=script.id,
        details={"from": old_status, "to": script.status},
    )
    await db.commit()
    await db.refresh(script)
    return script


async def send_to_production(db: AsyncSession, script_id: int) -> tuple[Script, list[Task]]:
    """Generate the default task set for an APPROVED script that has none."""
    script = await get_script(db, script_id)
    if script.status != ScriptStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Script must be approved before creating production tasks",
        )
    if await has_existing_tasks(db, script.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Production tasks already exist for this script",
        )

    tasks = await generate_production_tasks(db, script)
    script.status = ScriptStatus.IN_PRODUCTION.value
    await db.commit()
    for task in tasks:
        await db.refresh(task)
    return script, tasks


async def get_script_pipeline(db: AsyncSession, script_id: int) -> dict:
    """Script tasks annotated with stage gating and the actions on offer."""
    script = await get_script(db, script_id)
    tasks = list(script.tasks)

    entries = []
    for task in sorted(tasks, key=lambda t: t.id):
        unblocked = is_stage_unblocked(tasks, task.type)
        actions = get_available_actions(task.status)
        if not unblocked:
            actions = [a for a in actions if a != TaskAction.START]
        entries.append(
            {"task": task, "is_unblocked": unblocked, "available_actions": actions}
        )

    return {
        "script_id": script.id,
        "script_status": script.status,
        "current_stage": get_current_stage(tasks),
        "tasks": entries,
    }


async def delete_script(db: AsyncSession, script: Script) -> None:
    await db.delete(script)
    await db.commit()
    logger.info("Deleted script %d", script.id)
