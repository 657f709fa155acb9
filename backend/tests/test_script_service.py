"""Tests for script service: approval hand-off, versioning and pipeline view."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from adflow.api.schemas import ProductionRequirementCreate, ScriptCreate, ScriptVersionCreate
from adflow.models.production_requirement import ProductionRequirement
from adflow.models.script import Script
from adflow.models.task import Task
from adflow.services.script import (
    attach_production_requirement,
    create_script,
    create_script_version,
    get_script_pipeline,
    send_to_production,
    update_script_status,
)
from adflow.services.script_rules import InvalidScriptTransitionError


def _section(text: str) -> dict:
    return {
        "name": "Hook",
        "start_time": 0,
        "end_time": 3,
        "spoken_text": text,
        "visual_direction": "Close-up",
    }


def _make_script(status: str = "IN_REVIEW", id: int = 3, **kwargs) -> Script:
    fields = dict(
        title="Launch teaser",
        version=1,
        duration=30,
        aspect_ratios=["9:16", "1:1"],
        content={"hook": _section("Tired of cold coffee?")},
        text_overlays=[],
        status=status,
    )
    fields.update(kwargs)
    script = Script(**fields)
    object.__setattr__(script, "id", id)
    return script


def _serve(db, script: Script, task_count: int = 0) -> None:
    result = MagicMock()
    result.scalar_one_or_none.return_value = script
    db.execute = AsyncMock(return_value=result)
    db.scalar = AsyncMock(return_value=task_count)


class TestApproval:
    @pytest.mark.asyncio
    async def test_approval_generates_tasks_and_starts_production(self, db):
        script = _make_script("IN_REVIEW")
        _serve(db, script)

        result = await update_script_status(db, 3, "APPROVED")

        assert result.status == "IN_PRODUCTION"
        assert result.approved_at is not None
        db.add_all.assert_called_once()
        generated = db.add_all.call_args.args[0]
        assert [t.type for t in generated] == ["FILMING", "EDITING", "REVIEW", "DELIVERY"]
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_approval_with_existing_tasks_stays_approved(self, db):
        script = _make_script("REVISION_REQUESTED")
        _serve(db, script, task_count=2)

        result = await update_script_status(db, 3, "APPROVED")

        assert result.status == "APPROVED"
        assert result.approved_at is not None
        db.add_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_reapproving_does_nothing_extra(self, db):
        script = _make_script("APPROVED")
        _serve(db, script)

        result = await update_script_status(db, 3, "APPROVED")

        assert result.status == "APPROVED"
        assert result.approved_at is None
        db.add_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_plain_status_change(self, db):
        script = _make_script("DRAFT")
        _serve(db, script)

        result = await update_script_status(db, 3, "IN_REVIEW")

        assert result.status == "IN_REVIEW"
        db.add_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_production_cannot_be_set_by_hand(self, db):
        _serve(db, _make_script("APPROVED"))
        with pytest.raises(InvalidScriptTransitionError):
            await update_script_status(db, 3, "IN_PRODUCTION")
        db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_script(self, db):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        db.execute = AsyncMock(return_value=result)
        with pytest.raises(HTTPException) as exc_info:
            await update_script_status(db, 3, "APPROVED")
        assert exc_info.value.status_code == 404


class TestSendToProduction:
    @pytest.mark.asyncio
    async def test_generates_for_approved_script(self, db):
        script = _make_script("APPROVED")
        _serve(db, script)

        result, tasks = await send_to_production(db, 3)

        assert result.status == "IN_PRODUCTION"
        assert len(tasks) == 4
        assert db.refresh.await_count == 4

    @pytest.mark.asyncio
    async def test_requires_approval(self, db):
        _serve(db, _make_script("DRAFT"))
        with pytest.raises(HTTPException) as exc_info:
            await send_to_production(db, 3)
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_rejects_second_generation(self, db):
        _serve(db, _make_script("APPROVED"), task_count=4)
        with pytest.raises(HTTPException) as exc_info:
            await send_to_production(db, 3)
        assert exc_info.value.status_code == 409
        db.add_all.assert_not_called()


class TestVersioning:
    @pytest.mark.asyncio
    async def test_new_version_merges_sections(self, db):
        parent = _make_script(
            "APPROVED",
            content={"hook": _section("Old hook"), "cta": _section("Buy now")},
        )
        _serve(db, parent)
        data = ScriptVersionCreate(updated_sections={"hook": _section("New hook")})

        returned_parent, child = await create_script_version(db, 3, data)

        assert returned_parent is parent
        assert child.version == 2
        assert child.parent_id == 3
        assert child.status == "DRAFT"
        assert child.content["hook"]["spoken_text"] == "New hook"
        assert child.content["cta"]["spoken_text"] == "Buy now"
        assert parent.content["hook"]["spoken_text"] == "Old hook"
        assert parent.status == "APPROVED"
        db.add.assert_called_once_with(child)

    @pytest.mark.asyncio
    async def test_create_script_starts_as_draft(self, db):
        script = await create_script(
            db,
            ScriptCreate(title="New ad", duration=15, content={"hook": _section("Hi")}),
        )
        assert script.status == "DRAFT"
        assert script.version == 1
        assert script.content["hook"]["spoken_text"] == "Hi"


class TestProductionRequirement:
    def _data(self) -> ProductionRequirementCreate:
        return ProductionRequirementCreate(
            location_type="Studio",
            talent_needed="Host",
            deliverables=[{"aspect_ratio": "9:16"}],
        )

    @pytest.mark.asyncio
    async def test_attach(self, db):
        _serve(db, _make_script())
        req = await attach_production_requirement(db, 3, self._data())
        assert req.script_id == 3
        assert req.deliverables == [
            {"aspect_ratio": "9:16", "with_captions": True, "without_captions": False}
        ]
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_attach_twice_conflicts(self, db):
        script = _make_script()
        script.production_req = ProductionRequirement(
            script_id=3, location_type="Park", talent_needed="None"
        )
        _serve(db, script)
        with pytest.raises(HTTPException) as exc_info:
            await attach_production_requirement(db, 3, self._data())
        assert exc_info.value.status_code == 409


class TestPipeline:
    @pytest.mark.asyncio
    async def test_gating_and_actions(self, db):
        script = _make_script("IN_PRODUCTION")
        tasks = []
        for id, (type, status) in enumerate(
            [("FILMING", "COMPLETED"), ("EDITING", "QUEUED"), ("REVIEW", "QUEUED")], 1
        ):
            task = Task(type=type, status=status, script_id=3, estimated_time=1)
            object.__setattr__(task, "id", id)
            tasks.append(task)
        script.tasks = tasks
        _serve(db, script)

        pipeline = await get_script_pipeline(db, 3)

        assert pipeline["current_stage"] == "EDITING"
        entries = {e["task"].type: e for e in pipeline["tasks"]}
        assert entries["EDITING"]["is_unblocked"] is True
        assert entries["EDITING"]["available_actions"] == ["start", "block"]
        assert entries["REVIEW"]["is_unblocked"] is False
        assert entries["REVIEW"]["available_actions"] == ["block"]
        assert entries["FILMING"]["available_actions"] == ["reopen"]
