"""Production dashboard aggregates."""

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from adflow.models.task import Task
from adflow.services.task_state_machine import TaskStatus
from adflow.services.team_member import list_team_members


def utilization(assigned_hours: float, capacity_hours: float) -> float:
    if capacity_hours <= 0:
        return 0.0 if assigned_hours <= 0 else 1.0
    return round(assigned_hours / capacity_hours, 2)


async def get_production_stats(db: AsyncSession, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)

    rows = (
        await db.execute(select(Task.status, func.count()).group_by(Task.status))
    ).all()
    status_counts = {s.value: 0 for s in TaskStatus}
    status_counts.update({row[0]: row[1] for row in rows})

    completed_today = await db.scalar(
        select(func.count(Task.id)).where(
            Task.status == TaskStatus.COMPLETED.value,
            Task.completed_at >= start_of_day,
        )
    ) or 0

    members = [
        {
            "member": member,
            "assigned_hours": hours,
            "task_count": count,
            "utilization": utilization(hours, member.capacity_hours),
        }
        for member, hours, count in await list_team_members(db)
    ]

    recent = await db.execute(select(Task).order_by(Task.created_at.desc()).limit(5))

    return {
        "status_counts": status_counts,
        "completed_today": completed_today,
        "team_members": members,
        "recent_tasks": list(recent.scalars().all()),
    }
