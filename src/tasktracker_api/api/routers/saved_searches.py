"""
tasktracker_api.api.routers.saved_searches

Saved unified-search queries, optionally shared with a family.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session
from tasktracker_api.api.envelope import ApiResponse, created, ok
from tasktracker_api.api.rate_limit import rate_limit
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.schemas import SavedSearchCreate, SavedSearchRead, SearchResponse
from tasktracker_api.services.saved_search_service import SavedSearchService

router = APIRouter(
    prefix="/saved-searches",
    tags=["saved-searches"],
    dependencies=[Depends(require_roles()), Depends(rate_limit(50, 60))],
)


def _svc(session: AsyncSession = Depends(db_session)) -> SavedSearchService:
    return SavedSearchService(session=session)


@router.get("", response_model=ApiResponse[list[SavedSearchRead]])
async def list_saved_searches(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SavedSearchService = Depends(_svc),
) -> ApiResponse:
    return ok([SavedSearchRead.model_validate(s) for s in await svc.list_searches(user_id)])


@router.get("/most-used", response_model=ApiResponse[list[SavedSearchRead]])
async def most_used(
    limit: int = Query(default=5, ge=1, le=50),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SavedSearchService = Depends(_svc),
) -> ApiResponse:
    return ok([SavedSearchRead.model_validate(s) for s in await svc.most_used(user_id, limit)])


@router.get("/search", response_model=ApiResponse[list[SavedSearchRead]])
async def search_saved(
    term: str = Query(min_length=1, max_length=100),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SavedSearchService = Depends(_svc),
) -> ApiResponse:
    return ok([SavedSearchRead.model_validate(s) for s in await svc.search(user_id, term)])


@router.get("/family/{family_id}", response_model=ApiResponse[list[SavedSearchRead]])
async def family_saved_searches(
    family_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SavedSearchService = Depends(_svc),
) -> ApiResponse:
    items = await svc.family_searches(user_id, family_id)
    return ok([SavedSearchRead.model_validate(s) for s in items])


@router.get("/{search_id}", response_model=ApiResponse[SavedSearchRead])
async def get_saved_search(
    search_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SavedSearchService = Depends(_svc),
) -> ApiResponse:
    return ok(SavedSearchRead.model_validate(await svc.get(user_id, search_id)))


@router.post("", status_code=201, response_model=ApiResponse[SavedSearchRead])
async def create_saved_search(
    body: SavedSearchCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SavedSearchService = Depends(_svc),
) -> ApiResponse:
    saved = await svc.create(user_id, body)
    return created(SavedSearchRead.model_validate(saved), "Saved search created")


@router.put("/{search_id}", response_model=ApiResponse[SavedSearchRead])
async def update_saved_search(
    search_id: uuid.UUID,
    body: SavedSearchCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SavedSearchService = Depends(_svc),
) -> ApiResponse:
    saved = await svc.update(user_id, search_id, body)
    return ok(SavedSearchRead.model_validate(saved), "Saved search updated")


@router.delete("/{search_id}", response_model=ApiResponse[None])
async def delete_saved_search(
    search_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SavedSearchService = Depends(_svc),
) -> ApiResponse:
    await svc.delete(user_id, search_id)
    return ok(None, "Saved search deleted")


@router.post("/{search_id}/execute", response_model=ApiResponse[SearchResponse])
async def execute_saved_search(
    search_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SavedSearchService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.execute(user_id, search_id))


@router.post("/{search_id}/share/{family_id}", response_model=ApiResponse[SavedSearchRead])
async def share_saved_search(
    search_id: uuid.UUID,
    family_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SavedSearchService = Depends(_svc),
) -> ApiResponse:
    saved = await svc.share(user_id, search_id, family_id)
    return ok(SavedSearchRead.model_validate(saved), "Saved search shared")


@router.delete("/{search_id}/share", response_model=ApiResponse[SavedSearchRead])
async def unshare_saved_search(
    search_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SavedSearchService = Depends(_svc),
) -> ApiResponse:
    saved = await svc.unshare(user_id, search_id)
    return ok(SavedSearchRead.model_validate(saved), "Saved search is no longer shared")
