from fastapi import APIRouter

from adflow.services.stage_sequencer import STAGES
from adflow.services.task_state_machine import TaskAction, TaskStatus, TaskType

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/config/public")
async def public_config() -> dict:
    """Enumerations the dashboard needs to render the production board."""
    return {
        "stages": [s.value for s in STAGES],
        "task_types": [t.value for t in TaskType],
        "task_statuses": [s.value for s in TaskStatus],
        "task_actions": [a.value for a in TaskAction],
    }
