from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from adflow.api.schemas import TaskCreate, TaskResponse, TaskTransitionRequest, TaskUpdate
from adflow.core.config import settings
from adflow.core.deps import get_db
from adflow.services import task as task_svc

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    status: str | None = Query(default=None),
    type: str | None = Query(default=None),
    assignee: str | None = Query(default=None, description="member id, 'all' or 'unassigned'"),
    script_id: int | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=settings.default_page_limit, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    return await task_svc.list_tasks(
        db,
        status_filter=status,
        type_filter=type,
        assignee=assignee,
        script_id=script_id,
        offset=offset,
        limit=limit,
    )


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(body: TaskCreate, db: AsyncSession = Depends(get_db)):
    return await task_svc.create_task(db, body)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: int, db: AsyncSession = Depends(get_db)):
    return await task_svc.get_task(db, task_id)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(task_id: int, body: TaskUpdate, db: AsyncSession = Depends(get_db)):
    return await task_svc.update_task(db, task_id, body)


@router.post("/{task_id}/transition", response_model=TaskResponse)
async def transition_task(
    task_id: int, body: TaskTransitionRequest, db: AsyncSession = Depends(get_db)
):
    return await task_svc.transition_task(db, task_id, body.action)


@router.delete("/{task_id}", status_code=204)
async def delete_task(task_id: int, db: AsyncSession = Depends(get_db)):
    task = await task_svc.get_task(db, task_id)
    await task_svc.delete_task(db, task)
