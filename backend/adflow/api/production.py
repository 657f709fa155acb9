"""Production dashboard endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from adflow.api.schemas import (
    ProductionStatsResponse,
    TaskResponse,
    TeamMemberLoad,
    TeamMemberResponse,
)
from adflow.core.deps import get_db
from adflow.services.stats import get_production_stats

router = APIRouter(prefix="/production", tags=["production"])


@router.get("/stats", response_model=ProductionStatsResponse)
async def production_stats(db: AsyncSession = Depends(get_db)):
    stats = await get_production_stats(db)
    members = []
    for entry in stats["team_members"]:
        base = TeamMemberResponse.model_validate(entry["member"]).model_dump()
        base.update(assigned_hours=entry["assigned_hours"], task_count=entry["task_count"])
        members.append(TeamMemberLoad(**base, utilization=entry["utilization"]))
    return ProductionStatsResponse(
        status_counts=stats["status_counts"],
        completed_today=stats["completed_today"],
        team_members=members,
        recent_tasks=[TaskResponse.model_validate(t) for t in stats["recent_tasks"]],
    )
