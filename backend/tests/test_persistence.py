"""Service flows against a real in-memory SQLite database.

These cover what a mocked session cannot: the partial per-stage unique index,
bulk unassignment and status bookkeeping as it round-trips through the ORM.
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import adflow.models  # noqa: F401  ensure models are registered
from adflow.api.schemas import ProductionTaskConfig, TaskCreate, TaskUpdate
from adflow.db.base import Base
from adflow.models.script import Script
from adflow.models.task import Task
from adflow.models.team_member import TeamMember
from adflow.services.production import create_custom_production_tasks, generate_production_tasks
from adflow.services.script import send_to_production, update_script_status
from adflow.services.task import create_task, transition_task, update_task
from adflow.services.team_member import delete_team_member, get_team_member


@pytest.fixture
async def session() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as s:
        yield s
    await engine.dispose()


async def _add(db: AsyncSession, obj) -> int:
    """Persist *obj* and return its id with the identity map cleared."""
    db.add(obj)
    await db.commit()
    obj_id = obj.id
    db.expunge_all()
    return obj_id


async def _add_script(db: AsyncSession, status: str = "APPROVED") -> int:
    return await _add(
        db,
        Script(
            title="Cold brew launch",
            duration=30,
            aspect_ratios=["9:16", "1:1"],
            content={},
            text_overlays=[],
            status=status,
        ),
    )


async def _task_count(db: AsyncSession, script_id: int, type: str | None = None) -> int:
    query = select(func.count()).select_from(Task).where(Task.script_id == script_id)
    if type is not None:
        query = query.where(Task.type == type)
    return await db.scalar(query)


class TestStageUniqueness:
    @pytest.mark.asyncio
    async def test_second_generation_is_rejected(self, session):
        script_id = await _add_script(session)
        script, tasks = await send_to_production(session, script_id)
        assert len(tasks) == 4
        assert script.status == "IN_PRODUCTION"

        with pytest.raises(HTTPException) as exc_info:
            await generate_production_tasks(session, script)

        assert exc_info.value.status_code == 409
        assert await _task_count(session, script_id) == 4

    @pytest.mark.asyncio
    async def test_revision_tasks_may_repeat(self, session):
        script_id = await _add_script(session, status="IN_PRODUCTION")
        for _ in range(2):
            await create_task(
                session, TaskCreate(type="REVISION", script_id=script_id, estimated_time=1)
            )
        assert await _task_count(session, script_id, "REVISION") == 2

    @pytest.mark.asyncio
    async def test_manual_duplicate_stage_task(self, session):
        script_id = await _add_script(session, status="IN_PRODUCTION")
        await create_task(session, TaskCreate(type="FILMING", script_id=script_id, estimated_time=2))

        with pytest.raises(HTTPException) as exc_info:
            await create_task(
                session, TaskCreate(type="FILMING", script_id=script_id, estimated_time=2)
            )

        assert exc_info.value.status_code == 409
        assert await _task_count(session, script_id, "FILMING") == 1

    @pytest.mark.asyncio
    async def test_custom_set_with_repeated_stage(self, session):
        script_id = await _add_script(session)
        configs = [
            ProductionTaskConfig(type="FILMING", estimated_time=2),
            ProductionTaskConfig(type="FILMING", estimated_time=3),
        ]

        with pytest.raises(HTTPException) as exc_info:
            await create_custom_production_tasks(session, script_id, configs)

        assert exc_info.value.status_code == 409
        assert await _task_count(session, script_id) == 0
        session.expunge_all()
        script = await session.get(Script, script_id)
        assert script.status == "APPROVED"


@pytest.mark.asyncio
async def test_approval_creates_pipeline(session):
    script_id = await _add_script(session, status="IN_REVIEW")

    script = await update_script_status(session, script_id, "APPROVED")

    assert script.status == "IN_PRODUCTION"
    assert script.approved_at is not None
    assert await _task_count(session, script_id) == 4


@pytest.mark.asyncio
async def test_reverting_completed_task_clears_timestamp(session):
    script_id = await _add_script(session, status="IN_PRODUCTION")
    task = await create_task(
        session, TaskCreate(type="FILMING", script_id=script_id, estimated_time=2)
    )
    await transition_task(session, task.id, "start")
    task = await transition_task(session, task.id, "complete")
    assert task.completed_at is not None

    task = await update_task(session, task.id, TaskUpdate(status="QUEUED"))
    assert task.status == "QUEUED"
    assert task.completed_at is None

    task = await update_task(session, task.id, TaskUpdate(status="COMPLETED"))
    assert task.completed_at is not None


@pytest.mark.asyncio
async def test_deleting_member_unassigns_tasks(session):
    member_id = await _add(
        session, TeamMember(email="ana@studio.example.com", name="Ana", role="Editor")
    )
    script_id = await _add_script(session, status="IN_PRODUCTION")
    task_id = await _add(
        session,
        Task(
            type="EDITING",
            status="QUEUED",
            script_id=script_id,
            assignee_id=member_id,
            estimated_time=3,
        ),
    )

    member = await get_team_member(session, member_id)
    await delete_team_member(session, member)

    assignee = await session.scalar(select(Task.assignee_id).where(Task.id == task_id))
    assert assignee is None
    assert await session.get(TeamMember, member_id) is None
