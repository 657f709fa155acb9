from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from adflow.api.schemas import (
    PipelineTaskResponse,
    ProductionRequirementCreate,
    ProductionRequirementResponse,
    ProductionTasksCreate,
    ProductionTasksResponse,
    ScriptCreate,
    ScriptDetailResponse,
    ScriptListItem,
    ScriptPipelineResponse,
    ScriptResponse,
    ScriptStatusUpdate,
    ScriptVersionCreate,
    ScriptVersionResponse,
    TaskResponse,
)
from adflow.core.config import settings
from adflow.core.deps import get_db, idempotency_guard
from adflow.core.rate_limit import limiter
from adflow.services import production as production_svc
from adflow.services import script as script_svc

router = APIRouter(prefix="/scripts", tags=["scripts"])


@router.get("", response_model=list[ScriptListItem])
async def list_scripts(
    concept_id: int | None = Query(default=None),
    status: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=settings.default_page_limit, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    rows = await script_svc.list_scripts(
        db, concept_id=concept_id, status_filter=status, offset=offset, limit=limit
    )
    items = []
    for script, task_count in rows:
        item = ScriptListItem.model_validate(script)
        item.task_count = task_count
        items.append(item)
    return items


@router.post("", response_model=ScriptResponse, status_code=201)
async def create_script(body: ScriptCreate, db: AsyncSession = Depends(get_db)):
    return await script_svc.create_script(db, body)


@router.get("/{script_id}", response_model=ScriptDetailResponse)
async def get_script(script_id: int, db: AsyncSession = Depends(get_db)):
    script = await script_svc.get_script(db, script_id)
    detail = ScriptDetailResponse.model_validate(script)
    detail.child_versions = await script_svc.get_child_version_ids(db, script_id)
    return detail


@router.delete("/{script_id}", status_code=204)
async def delete_script(script_id: int, db: AsyncSession = Depends(get_db)):
    script = await script_svc.get_script(db, script_id)
    await script_svc.delete_script(db, script)


@router.patch("/{script_id}/status", response_model=ScriptResponse)
async def update_script_status(
    script_id: int, body: ScriptStatusUpdate, db: AsyncSession = Depends(get_db)
):
    return await script_svc.update_script_status(db, script_id, body.status)


@router.post("/{script_id}/versions", response_model=ScriptVersionResponse, status_code=201)
async def create_version(
    script_id: int, body: ScriptVersionCreate, db: AsyncSession = Depends(get_db)
):
    parent, child = await script_svc.create_script_version(db, script_id, body)
    return ScriptVersionResponse(
        script=ScriptResponse.model_validate(child),
        edit_source=body.edit_source,
        previous_version=parent.version,
        new_version=child.version,
    )


@router.put(
    "/{script_id}/production-requirement",
    response_model=ProductionRequirementResponse,
    status_code=201,
)
async def attach_production_requirement(
    script_id: int, body: ProductionRequirementCreate, db: AsyncSession = Depends(get_db)
):
    return await script_svc.attach_production_requirement(db, script_id, body)


@router.post(
    "/{script_id}/production-tasks",
    response_model=ProductionTasksResponse,
    status_code=201,
    dependencies=[Depends(idempotency_guard)],
)
@limiter.limit(settings.rate_limit_generate)
async def create_production_tasks(
    request: Request,
    script_id: int,
    body: ProductionTasksCreate,
    db: AsyncSession = Depends(get_db),
):
    script, tasks = await production_svc.create_custom_production_tasks(
        db, script_id, body.tasks
    )
    return ProductionTasksResponse(
        tasks=[TaskResponse.model_validate(t) for t in tasks],
        script_status=script.status,
    )


@router.post(
    "/{script_id}/production-tasks/generate",
    response_model=ProductionTasksResponse,
    status_code=201,
    dependencies=[Depends(idempotency_guard)],
)
@limiter.limit(settings.rate_limit_generate)
async def generate_production_tasks(
    request: Request,
    script_id: int,
    db: AsyncSession = Depends(get_db),
):
    script, tasks = await script_svc.send_to_production(db, script_id)
    return ProductionTasksResponse(
        tasks=[TaskResponse.model_validate(t) for t in tasks],
        script_status=script.status,
    )


@router.get("/{script_id}/pipeline", response_model=ScriptPipelineResponse)
async def get_pipeline(script_id: int, db: AsyncSession = Depends(get_db)):
    pipeline = await script_svc.get_script_pipeline(db, script_id)
    tasks = []
    for entry in pipeline["tasks"]:
        item = PipelineTaskResponse(
            **TaskResponse.model_validate(entry["task"]).model_dump(),
            is_unblocked=entry["is_unblocked"],
            available_actions=entry["available_actions"],
        )
        tasks.append(item)
    return ScriptPipelineResponse(
        script_id=pipeline["script_id"],
        script_status=pipeline["script_status"],
        current_stage=pipeline["current_stage"],
        tasks=tasks,
    )
