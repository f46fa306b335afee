"""
tasktracker_api.api.routers.batch

Bulk task operations (bounded by `Settings.max_batch_size`).
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session, settings_dep
from tasktracker_api.api.envelope import ApiResponse, created, ok
from tasktracker_api.api.rate_limit import rate_limit
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.schemas import (
    BatchStatusResult,
    BatchStatusUpdate,
    BatchTaskUpdateItem,
    TaskCreate,
    TaskRead,
)
from tasktracker_api.services.batch_service import BatchService
from tasktracker_api.settings import Settings

router = APIRouter(
    prefix="/batch",
    tags=["batch"],
    dependencies=[Depends(require_roles()), Depends(rate_limit(20, 60))],
)


def _svc(
    session: AsyncSession = Depends(db_session), settings: Settings = Depends(settings_dep)
) -> BatchService:
    return BatchService(session=session, settings=settings)


@router.post("/tasks", status_code=201, response_model=ApiResponse[list[TaskRead]])
async def create_tasks(
    body: list[TaskCreate],
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BatchService = Depends(_svc),
) -> ApiResponse:
    tasks = await svc.create_many(user_id, body)
    return created([TaskRead.model_validate(t) for t in tasks], f"{len(tasks)} task(s) created")


@router.get("/tasks", response_model=ApiResponse[list[TaskRead]])
async def get_tasks(
    ids: str | None = None,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BatchService = Depends(_svc),
) -> ApiResponse:
    tasks = await svc.get_many(user_id, ids)
    return ok([TaskRead.model_validate(t) for t in tasks])


@router.put("/tasks", response_model=ApiResponse[list[TaskRead]])
async def update_tasks(
    body: list[BatchTaskUpdateItem],
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BatchService = Depends(_svc),
) -> ApiResponse:
    tasks = await svc.update_many(user_id, body)
    return ok([TaskRead.model_validate(t) for t in tasks], f"{len(tasks)} task(s) updated")


@router.delete("/tasks", response_model=ApiResponse[int])
async def delete_tasks(
    ids: str | None = None,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BatchService = Depends(_svc),
) -> ApiResponse:
    deleted = await svc.delete_many(user_id, ids)
    return ok(deleted, f"{deleted} task(s) deleted")


@router.put("/tasks/status", response_model=ApiResponse[list[BatchStatusResult]])
async def update_task_statuses(
    body: BatchStatusUpdate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BatchService = Depends(_svc),
) -> ApiResponse:
    results = await svc.update_status(user_id, body.task_ids, body.status)
    succeeded = sum(1 for r in results if r.success)
    return ok(results, f"{succeeded} of {len(results)} task(s) updated")
