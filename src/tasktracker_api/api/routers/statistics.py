"""
tasktracker_api.api.routers.statistics

Productivity statistics (`/statistics`), analytics (`/analytics`) and the
dashboard summary (`/dashboard`). Three prefixes share one service, so the
module exposes a prefix-less router.
"""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session
from tasktracker_api.api.envelope import ApiResponse, ok
from tasktracker_api.api.rate_limit import rate_limit
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.schemas import (
    CategoryActivity,
    Dashboard,
    ProductivityAnalytics,
    ProductivitySummary,
)
from tasktracker_api.services.statistics_service import StatisticsService

router = APIRouter(
    tags=["statistics"], dependencies=[Depends(require_roles()), Depends(rate_limit(20, 30))]
)


def _svc(session: AsyncSession = Depends(db_session)) -> StatisticsService:
    return StatisticsService(session=session)


@router.get("/statistics", response_model=ApiResponse[ProductivitySummary])
async def productivity_summary(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: StatisticsService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.summary(user_id))


@router.get("/statistics/completion-rate", response_model=ApiResponse[float])
async def completion_rate(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: StatisticsService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.completion_rate(user_id))


@router.get("/statistics/status-distribution", response_model=ApiResponse[dict[str, int]])
async def status_distribution(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: StatisticsService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.status_distribution(user_id))


@router.get("/statistics/priority-distribution", response_model=ApiResponse[dict[str, int]])
async def priority_distribution(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: StatisticsService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.priority_distribution(user_id))


@router.get("/statistics/completion-time", response_model=ApiResponse[float | None])
async def completion_time(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: StatisticsService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.average_completion_hours(user_id))


@router.get(
    "/statistics/most-active-categories", response_model=ApiResponse[list[CategoryActivity]]
)
async def most_active_categories(
    limit: int = Query(default=5, ge=1, le=50),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: StatisticsService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.most_active_categories(user_id, limit))


@router.get("/analytics/productivity", response_model=ApiResponse[ProductivityAnalytics])
async def productivity_analytics(
    start: date,
    end: date,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: StatisticsService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.productivity(user_id, start, end))


@router.get("/dashboard", response_model=ApiResponse[Dashboard])
async def dashboard(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: StatisticsService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.dashboard(user_id))
