import logging

from fastapi import HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from adflow.api.schemas import TeamMemberCreate, TeamMemberUpdate
from adflow.models.task import Task
from adflow.models.team_member import TeamMember
from adflow.services.task_state_machine import TaskStatus

logger = logging.getLogger(__name__)


async def get_assigned_hours(db: AsyncSession, member_id: int) -> float:
    """Sum of estimated_time over the member's tasks that are not COMPLETED."""
    total = await db.scalar(
        select(func.coalesce(func.sum(Task.estimated_time), 0)).where(
            Task.assignee_id == member_id,
            Task.status != TaskStatus.COMPLETED.value,
        )
    )
    return float(total or 0)


async def get_workloads(db: AsyncSession) -> dict[int, tuple[float, int]]:
    """member_id -> (assigned open hours, total assigned task count)."""
    open_hours = func.coalesce(
        func.sum(Task.estimated_time).filter(Task.status != TaskStatus.COMPLETED.value), 0
    )
    result = await db.execute(
        select(Task.assignee_id, open_hours, func.count(Task.id))
        .where(Task.assignee_id.is_not(None))
        .group_by(Task.assignee_id)
    )
    return {row[0]: (float(row[1] or 0), row[2]) for row in result.all()}


async def list_team_members(db: AsyncSession) -> list[tuple[TeamMember, float, int]]:
    """Members ordered by name, each with (assigned_hours, task_count)."""
    result = await db.execute(select(TeamMember).order_by(TeamMember.name))
    members = list(result.scalars().all())
    workloads = await get_workloads(db)
    return [(m, *workloads.get(m.id, (0.0, 0))) for m in members]


async def get_team_member(db: AsyncSession, member_id: int) -> TeamMember:
    result = await db.execute(select(TeamMember).where(TeamMember.id == member_id))
    member = result.scalar_one_or_none()
    if not member:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Team member not found"
        )
    return member


async def _ensure_email_free(db: AsyncSession, email: str, exclude_id: int | None = None) -> None:
    query = select(TeamMember.id).where(TeamMember.email == email)
    if exclude_id is not None:
        query = query.where(TeamMember.id != exclude_id)
    if (await db.execute(query)).scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A team member with this email already exists",
        )


async def create_team_member(db: AsyncSession, data: TeamMemberCreate) -> TeamMember:
    await _ensure_email_free(db, data.email)
    member = TeamMember(
        email=data.email,
        name=data.name,
        role=data.role,
        capacity_hours=data.capacity_hours,
    )
    db.add(member)
    await db.commit()
    await db.refresh(member)
    return member


async def update_team_member(
    db: AsyncSession, member: TeamMember, data: TeamMemberUpdate
) -> TeamMember:
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in changes:
        await _ensure_email_free(db, changes["email"], exclude_id=member.id)
    for field, value in changes.items():
        setattr(member, field, value)
    await db.commit()
    await db.refresh(member)
    return member


async def delete_team_member(db: AsyncSession, member: TeamMember) -> None:
    """Unassign the member's tasks, then delete the member."""
    await db.execute(
        update(Task).where(Task.assignee_id == member.id).values(assignee_id=None)
    )
    await db.delete(member)
    await db.commit()
    logger.info("Deleted team member %d", member.id)
