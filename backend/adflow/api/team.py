from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from adflow.api.schemas import TeamMemberCreate, TeamMemberResponse, TeamMemberUpdate
from adflow.core.deps import get_db
from adflow.models.team_member import TeamMember
from adflow.services import team_member as team_svc

router = APIRouter(prefix="/team-members", tags=["team"])


async def _with_workload(db: AsyncSession, member: TeamMember) -> TeamMemberResponse:
    resp = TeamMemberResponse.model_validate(member)
    hours, count = (await team_svc.get_workloads(db)).get(member.id, (0.0, 0))
    resp.assigned_hours = hours
    resp.task_count = count
    return resp


@router.get("", response_model=list[TeamMemberResponse])
async def list_team_members(db: AsyncSession = Depends(get_db)):
    items = []
    for member, hours, count in await team_svc.list_team_members(db):
        resp = TeamMemberResponse.model_validate(member)
        resp.assigned_hours = hours
        resp.task_count = count
        items.append(resp)
    return items


@router.post("", response_model=TeamMemberResponse, status_code=201)
async def create_team_member(body: TeamMemberCreate, db: AsyncSession = Depends(get_db)):
    member = await team_svc.create_team_member(db, body)
    return TeamMemberResponse.model_validate(member)


@router.get("/{member_id}", response_model=TeamMemberResponse)
async def get_team_member(member_id: int, db: AsyncSession = Depends(get_db)):
    member = await team_svc.get_team_member(db, member_id)
    return await _with_workload(db, member)


@router.patch("/{member_id}", response_model=TeamMemberResponse)
async def update_team_member(
    member_id: int, body: TeamMemberUpdate, db: AsyncSession = Depends(get_db)
):
    member = await team_svc.get_team_member(db, member_id)
    member = await team_svc.update_team_member(db, member, body)
    return await _with_workload(db, member)


@router.delete("/{member_id}", status_code=204)
async def delete_team_member(member_id: int, db: AsyncSession = Depends(get_db)):
    member = await team_svc.get_team_member(db, member_id)
    await team_svc.delete_team_member(db, member)
