"""
tasktracker_api.api.routers.tasks

Task endpoints for the authenticated caller.

Responsibilities:
- CRUD, paging/sorting and date-window views.
- Status transitions (single and "complete these") and tag management.
- Per-user task statistics.

Fixed paths are declared before `/{task_id}` so they are not captured by it.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session, settings_dep
from tasktracker_api.api.envelope import ApiResponse, PagedResult, created, ok
from tasktracker_api.api.rate_limit import rate_limit
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.db.models import TaskItem, TaskPriority, TaskStatus
from tasktracker_api.schemas import (
    TagRead,
    TaskCreate,
    TaskIdsRequest,
    TaskRead,
    TaskStatistics,
    TaskStatusUpdate,
    TaskTagsUpdate,
    TaskUpdate,
)
from tasktracker_api.services.task_service import TaskService
from tasktracker_api.settings import Settings

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    dependencies=[Depends(require_roles()), Depends(rate_limit(100, 60))],
)


def _svc(
    session: AsyncSession = Depends(db_session), settings: Settings = Depends(settings_dep)
) -> TaskService:
    return TaskService(session=session, settings=settings)


def _reads(tasks: Sequence[TaskItem]) -> list[TaskRead]:
    return [TaskRead.model_validate(t) for t in tasks]


@router.get(
    "",
    response_model=ApiResponse[list[TaskRead]],
    dependencies=[Depends(rate_limit(50, 30))],
)
async def list_tasks(
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
    category_id: uuid.UUID | None = None,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    tasks = await svc.list_tasks(
        user_id, status=status, priority=priority, category_id=category_id
    )
    return ok(_reads(tasks))


@router.get("/paged", response_model=ApiResponse[PagedResult[TaskRead]])
async def paged_tasks(
    page_number: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=50),
    search_term: str | None = Query(default=None, max_length=200),
    sort_by: str = "created_at",
    ascending: bool = False,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    items, total = await svc.paged(
        user_id,
        page=page_number,
        page_size=page_size,
        search_term=search_term,
        sort_by=sort_by,
        ascending=ascending,
    )
    return ok(
        PagedResult.build(
            _reads(items), total_count=total, page_number=page_number, page_size=page_size
        )
    )


@router.post(
    "",
    status_code=201,
    response_model=ApiResponse[TaskRead],
    dependencies=[Depends(rate_limit(30, 60))],
)
async def create_task(
    body: TaskCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    task = await svc.create(user_id, body)
    return created(TaskRead.model_validate(task), "Task created")


@router.get(
    "/statistics",
    response_model=ApiResponse[TaskStatistics],
    dependencies=[Depends(rate_limit(20, 30))],
)
async def task_statistics(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.statistics(user_id))


@router.get("/status/{status}", response_model=ApiResponse[list[TaskRead]])
async def tasks_by_status(
    status: TaskStatus,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    return ok(_reads(await svc.list_tasks(user_id, status=status)))


@router.get("/category/{category_id}", response_model=ApiResponse[list[TaskRead]])
async def tasks_by_category(
    category_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    return ok(_reads(await svc.by_category(user_id, category_id)))


@router.get("/tags/{tag_id}", response_model=ApiResponse[list[TaskRead]])
async def tasks_by_tag(
    tag_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    return ok(_reads(await svc.by_tag(user_id, tag_id)))


@router.get("/due-date-range", response_model=ApiResponse[list[TaskRead]])
async def tasks_due_in_range(
    start: date,
    end: date,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    return ok(_reads(await svc.due_in_range(user_id, start, end)))


@router.get("/overdue", response_model=ApiResponse[list[TaskRead]])
async def overdue_tasks(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    return ok(_reads(await svc.overdue(user_id)))


@router.get("/due-today", response_model=ApiResponse[list[TaskRead]])
async def tasks_due_today(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    return ok(_reads(await svc.due_today(user_id)))


@router.get("/due-this-week", response_model=ApiResponse[list[TaskRead]])
async def tasks_due_this_week(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    return ok(_reads(await svc.due_this_week(user_id)))


@router.post("/complete-batch", response_model=ApiResponse[list[TaskRead]])
async def complete_batch(
    body: TaskIdsRequest,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    tasks = await svc.complete_many(user_id, body.task_ids)
    return ok(_reads(tasks), f"{len(tasks)} task(s) completed")


@router.get("/{task_id}", response_model=ApiResponse[TaskRead])
async def get_task(
    task_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    return ok(TaskRead.model_validate(await svc.get(user_id, task_id)))


@router.put("/{task_id}", response_model=ApiResponse[TaskRead])
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    task = await svc.update(user_id, task_id, body)
    return ok(TaskRead.model_validate(task), "Task updated")


@router.delete("/{task_id}", response_model=ApiResponse[None])
async def delete_task(
    task_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    await svc.delete(user_id, task_id)
    return ok(None, "Task deleted")


@router.put("/{task_id}/status", response_model=ApiResponse[TaskRead])
async def update_task_status(
    task_id: uuid.UUID,
    body: TaskStatusUpdate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    task = await svc.update_status(user_id, task_id, body.status)
    return ok(TaskRead.model_validate(task), "Status updated")


@router.get("/{task_id}/tags", response_model=ApiResponse[list[TagRead]])
async def get_task_tags(
    task_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    tags = await svc.get_tags(user_id, task_id)
    return ok([TagRead.model_validate(t) for t in tags])


@router.put("/{task_id}/tags", response_model=ApiResponse[list[TagRead]])
async def set_task_tags(
    task_id: uuid.UUID,
    body: TaskTagsUpdate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    tags = await svc.set_tags(user_id, task_id, body.tag_ids)
    return ok([TagRead.model_validate(t) for t in tags], "Tags updated")


@router.post("/{task_id}/tags/{tag_id}", response_model=ApiResponse[list[TagRead]])
async def add_task_tag(
    task_id: uuid.UUID,
    tag_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    tags = await svc.add_tag(user_id, task_id, tag_id)
    return ok([TagRead.model_validate(t) for t in tags], "Tag added")


@router.delete("/{task_id}/tags/{tag_id}", response_model=ApiResponse[list[TagRead]])
async def remove_task_tag(
    task_id: uuid.UUID,
    tag_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TaskService = Depends(_svc),
) -> ApiResponse:
    tags = await svc.remove_tag(user_id, task_id, tag_id)
    return ok([TagRead.model_validate(t) for t in tags], "Tag removed")
