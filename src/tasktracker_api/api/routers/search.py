"""
tasktracker_api.api.routers.search

Unified search and type-ahead suggestions.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session
from tasktracker_api.api.envelope import ApiResponse, ok
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.schemas import SearchRequest, SearchResponse
from tasktracker_api.services.search_service import SearchService

router = APIRouter(prefix="/search", tags=["search"], dependencies=[Depends(require_roles())])


def _svc(session: AsyncSession = Depends(db_session)) -> SearchService:
    return SearchService(session=session)


@router.post("", response_model=ApiResponse[SearchResponse])
async def search(
    body: SearchRequest,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SearchService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.search(user_id, body))


@router.get("/suggestions", response_model=ApiResponse[list[str]])
async def suggestions(
    q: str = Query(default="", max_length=100),
    limit: int = Query(default=10, ge=1, le=50),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: SearchService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.suggestions(user_id, q, limit))
