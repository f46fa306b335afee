"""
tasktracker_api.api.routers.tags

Tag endpoints scoped to the caller.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session
from tasktracker_api.api.envelope import ApiResponse, created, ok
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.schemas import CountByName, TagCreate, TagRead, TaskRead
from tasktracker_api.services.tag_service import TagService

router = APIRouter(prefix="/tags", tags=["tags"], dependencies=[Depends(require_roles())])


def _svc(session: AsyncSession = Depends(db_session)) -> TagService:
    return TagService(session=session)


@router.get("", response_model=ApiResponse[list[TagRead]])
async def list_tags(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TagService = Depends(_svc),
) -> ApiResponse:
    return ok([TagRead.model_validate(t) for t in await svc.list_tags(user_id)])


@router.get("/search", response_model=ApiResponse[list[TagRead]])
async def search_tags(
    term: str = Query(min_length=1, max_length=50),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TagService = Depends(_svc),
) -> ApiResponse:
    return ok([TagRead.model_validate(t) for t in await svc.search(user_id, term)])


@router.get("/statistics", response_model=ApiResponse[list[CountByName]])
async def tag_statistics(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TagService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.statistics(user_id))


@router.get("/{tag_id}", response_model=ApiResponse[TagRead])
async def get_tag(
    tag_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TagService = Depends(_svc),
) -> ApiResponse:
    return ok(TagRead.model_validate(await svc.get(user_id, tag_id)))


@router.post("", status_code=201, response_model=ApiResponse[TagRead])
async def create_tag(
    body: TagCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TagService = Depends(_svc),
) -> ApiResponse:
    return created(TagRead.model_validate(await svc.create(user_id, body)), "Tag created")


@router.put("/{tag_id}", response_model=ApiResponse[TagRead])
async def update_tag(
    tag_id: uuid.UUID,
    body: TagCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TagService = Depends(_svc),
) -> ApiResponse:
    return ok(TagRead.model_validate(await svc.update(user_id, tag_id, body)), "Tag updated")


@router.delete("/{tag_id}", response_model=ApiResponse[None])
async def delete_tag(
    tag_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TagService = Depends(_svc),
) -> ApiResponse:
    await svc.delete(user_id, tag_id)
    return ok(None, "Tag deleted")


@router.get("/{tag_id}/tasks", response_model=ApiResponse[list[TaskRead]])
async def tag_tasks(
    tag_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: TagService = Depends(_svc),
) -> ApiResponse:
    return ok([TaskRead.model_validate(t) for t in await svc.tasks(user_id, tag_id)])
