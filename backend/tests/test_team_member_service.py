from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from adflow.api.schemas import TeamMemberCreate, TeamMemberUpdate
from adflow.models.team_member import TeamMember
from adflow.services.team_member import (
    create_team_member,
    delete_team_member,
    get_assigned_hours,
    get_team_member,
    list_team_members,
    update_team_member,
)


def _make_member(id: int = 1, name: str = "Ana", capacity_hours: float = 8) -> TeamMember:
    member = TeamMember(
        email=f"{name.lower()}@studio.example.com",
        name=name,
        role="Editor",
        capacity_hours=capacity_hours,
    )
    object.__setattr__(member, "id", id)
    return member


def _scalar_result(value) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


class TestCreateTeamMember:
    @pytest.mark.asyncio
    async def test_create(self, db):
        db.execute = AsyncMock(return_value=_scalar_result(None))
        member = await create_team_member(
            db, TeamMemberCreate(email="ana@studio.example.com", name="Ana", role="Editor")
        )
        assert member.capacity_hours == 8
        db.add.assert_called_once_with(member)
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_email(self, db):
        db.execute = AsyncMock(return_value=_scalar_result(7))
        with pytest.raises(HTTPException) as exc_info:
            await create_team_member(
                db, TeamMemberCreate(email="ana@studio.example.com", name="Ana", role="Editor")
            )
        assert exc_info.value.status_code == 409
        db.add.assert_not_called()


class TestUpdateTeamMember:
    @pytest.mark.asyncio
    async def test_partial_update(self, db):
        member = _make_member()
        updated = await update_team_member(db, member, TeamMemberUpdate(capacity_hours=6))
        assert updated.capacity_hours == 6
        assert updated.name == "Ana"
        db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_email_taken_by_someone_else(self, db):
        db.execute = AsyncMock(return_value=_scalar_result(2))
        with pytest.raises(HTTPException) as exc_info:
            await update_team_member(
                db, _make_member(), TeamMemberUpdate(email="bo@studio.example.com")
            )
        assert exc_info.value.status_code == 409


class TestWorkload:
    @pytest.mark.asyncio
    async def test_assigned_hours(self, db):
        db.scalar = AsyncMock(return_value=6.5)
        assert await get_assigned_hours(db, 1) == 6.5

    @pytest.mark.asyncio
    async def test_assigned_hours_without_tasks(self, db):
        db.scalar = AsyncMock(return_value=None)
        assert await get_assigned_hours(db, 1) == 0.0

    @pytest.mark.asyncio
    async def test_list_pairs_members_with_load(self, db):
        ana, bo = _make_member(1, "Ana"), _make_member(2, "Bo")
        members_result = MagicMock()
        members_result.scalars.return_value.all.return_value = [ana, bo]
        workload_result = MagicMock()
        workload_result.all.return_value = [(1, 5.0, 3)]
        db.execute = AsyncMock(side_effect=[members_result, workload_result])

        rows = await list_team_members(db)

        assert rows == [(ana, 5.0, 3), (bo, 0.0, 0)]


@pytest.mark.asyncio
async def test_get_missing_member(db):
    db.execute = AsyncMock(return_value=_scalar_result(None))
    with pytest.raises(HTTPException) as exc_info:
        await get_team_member(db, 9)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_delete_unassigns_tasks_first(db):
    member = _make_member()
    await delete_team_member(db, member)
    db.execute.assert_awaited_once()
    db.delete.assert_awaited_once_with(member)
    db.commit.assert_awaited_once()
