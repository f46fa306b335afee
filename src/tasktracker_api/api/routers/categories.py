"""
tasktracker_api.api.routers.categories

Category endpoints scoped to the caller.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session
from tasktracker_api.api.envelope import ApiResponse, PagedResult, created, ok
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.schemas import CategoryCreate, CategoryRead, CountByName, TaskRead
from tasktracker_api.services.category_service import CategoryService

router = APIRouter(
    prefix="/categories", tags=["categories"], dependencies=[Depends(require_roles())]
)


def _svc(session: AsyncSession = Depends(db_session)) -> CategoryService:
    return CategoryService(session=session)


@router.get("", response_model=ApiResponse[list[CategoryRead]])
async def list_categories(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CategoryService = Depends(_svc),
) -> ApiResponse:
    return ok([CategoryRead.model_validate(c) for c in await svc.list_categories(user_id)])


@router.get("/paged", response_model=ApiResponse[PagedResult[CategoryRead]])
async def paged_categories(
    page_number: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=50),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CategoryService = Depends(_svc),
) -> ApiResponse:
    items, total = await svc.paged(user_id, page=page_number, page_size=page_size)
    return ok(
        PagedResult.build(
            [CategoryRead.model_validate(c) for c in items],
            total_count=total,
            page_number=page_number,
            page_size=page_size,
        )
    )


@router.get("/search", response_model=ApiResponse[list[CategoryRead]])
async def search_categories(
    term: str = Query(min_length=1, max_length=100),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CategoryService = Depends(_svc),
) -> ApiResponse:
    return ok([CategoryRead.model_validate(c) for c in await svc.search(user_id, term)])


@router.get("/statistics", response_model=ApiResponse[list[CountByName]])
async def category_statistics(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CategoryService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.statistics(user_id))


@router.get("/{category_id}", response_model=ApiResponse[CategoryRead])
async def get_category(
    category_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CategoryService = Depends(_svc),
) -> ApiResponse:
    return ok(CategoryRead.model_validate(await svc.get(user_id, category_id)))


@router.post("", status_code=201, response_model=ApiResponse[CategoryRead])
async def create_category(
    body: CategoryCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CategoryService = Depends(_svc),
) -> ApiResponse:
    return created(CategoryRead.model_validate(await svc.create(user_id, body)), "Category created")


@router.put("/{category_id}", response_model=ApiResponse[CategoryRead])
async def update_category(
    category_id: uuid.UUID,
    body: CategoryCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CategoryService = Depends(_svc),
) -> ApiResponse:
    category = await svc.update(user_id, category_id, body)
    return ok(CategoryRead.model_validate(category), "Category updated")


@router.delete("/{category_id}", response_model=ApiResponse[None])
async def delete_category(
    category_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CategoryService = Depends(_svc),
) -> ApiResponse:
    detached = await svc.delete(user_id, category_id)
    return ok(None, f"Category deleted; {detached} task(s) detached")


@router.get("/{category_id}/tasks", response_model=ApiResponse[list[TaskRead]])
async def category_tasks(
    category_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CategoryService = Depends(_svc),
) -> ApiResponse:
    return ok([TaskRead.model_validate(t) for t in await svc.tasks(user_id, category_id)])


@router.get("/{category_id}/tasks-count", response_model=ApiResponse[int])
async def category_task_count(
    category_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CategoryService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.task_count(user_id, category_id))
