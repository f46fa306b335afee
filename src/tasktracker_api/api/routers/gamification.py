"""
tasktracker_api.api.routers.gamification

Progress, achievements, daily login rewards and leaderboards.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session
from tasktracker_api.api.envelope import ApiResponse, ok
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.schemas import (
    AchievementRead,
    DailyLoginResult,
    DailyLoginStatus,
    GamificationStats,
    LeaderboardEntry,
    PointTransactionRead,
    ProgressRead,
    UserAchievementRead,
)
from tasktracker_api.services.gamification_service import GamificationService

router = APIRouter(
    prefix="/gamification", tags=["gamification"], dependencies=[Depends(require_roles())]
)


def _svc(session: AsyncSession = Depends(db_session)) -> GamificationService:
    return GamificationService(session=session)


@router.get("/progress", response_model=ApiResponse[ProgressRead])
async def progress(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: GamificationService = Depends(_svc),
) -> ApiResponse:
    return ok(ProgressRead.model_validate(await svc.get_progress(user_id)))


@router.get("/transactions", response_model=ApiResponse[list[PointTransactionRead]])
async def transactions(
    limit: int = Query(default=50, ge=1, le=200),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: GamificationService = Depends(_svc),
) -> ApiResponse:
    items = await svc.list_transactions(user_id, limit)
    return ok([PointTransactionRead.model_validate(t) for t in items])


@router.get("/achievements", response_model=ApiResponse[list[AchievementRead]])
async def achievements(svc: GamificationService = Depends(_svc)) -> ApiResponse:
    return ok([AchievementRead.model_validate(a) for a in await svc.list_achievements()])


@router.get("/achievements/unlocked", response_model=ApiResponse[list[UserAchievementRead]])
async def unlocked_achievements(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: GamificationService = Depends(_svc),
) -> ApiResponse:
    return ok([UserAchievementRead.model_validate(ua) for ua in await svc.list_unlocked(user_id)])


@router.get("/achievements/available", response_model=ApiResponse[list[AchievementRead]])
async def available_achievements(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: GamificationService = Depends(_svc),
) -> ApiResponse:
    return ok([AchievementRead.model_validate(a) for a in await svc.list_available(user_id)])


@router.post("/daily-login", response_model=ApiResponse[DailyLoginResult])
async def claim_daily_login(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: GamificationService = Depends(_svc),
) -> ApiResponse:
    result = await svc.claim_daily_login(user_id)
    return ok(result, f"Daily login reward: {result.points_awarded} points")


@router.get("/daily-login/status", response_model=ApiResponse[DailyLoginStatus])
async def daily_login_status(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: GamificationService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.daily_login_status(user_id))


@router.get("/leaderboard", response_model=ApiResponse[list[LeaderboardEntry]])
async def leaderboard(
    category: str = "points",
    limit: int = Query(default=10, ge=1, le=100),
    svc: GamificationService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.leaderboard(category, limit))


@router.get("/stats", response_model=ApiResponse[GamificationStats])
async def stats(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: GamificationService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.stats(user_id))


@router.get("/multipliers", response_model=ApiResponse[dict[str, float]])
async def multipliers() -> ApiResponse:
    return ok(GamificationService.multipliers())
