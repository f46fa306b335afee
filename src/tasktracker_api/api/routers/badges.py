"""
tasktracker_api.api.routers.badges

Badge catalog (managed by `Admin` and above) and the caller's awarded badges.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session
from tasktracker_api.api.envelope import ApiResponse, created, ok
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.db.models import BadgeRarity, UserRole
from tasktracker_api.schemas import AwardBadgeRequest, BadgeCreate, BadgeRead, UserBadgeRead
from tasktracker_api.services.badge_service import BadgeService

router = APIRouter(prefix="/badges", tags=["badges"], dependencies=[Depends(require_roles())])

_ADMIN_ONLY = [Depends(require_roles(UserRole.admin))]


def _svc(session: AsyncSession = Depends(db_session)) -> BadgeService:
    return BadgeService(session=session)


@router.get("", response_model=ApiResponse[list[BadgeRead]])
async def list_badges(svc: BadgeService = Depends(_svc)) -> ApiResponse:
    return ok([BadgeRead.model_validate(b) for b in await svc.list_badges()])


@router.post(
    "", status_code=201, response_model=ApiResponse[BadgeRead], dependencies=_ADMIN_ONLY
)
async def create_badge(body: BadgeCreate, svc: BadgeService = Depends(_svc)) -> ApiResponse:
    return created(BadgeRead.model_validate(await svc.create(body)), "Badge created")


# --- the caller's badges and awards (declared before /{badge_id}) ---------------


@router.get("/my", response_model=ApiResponse[list[UserBadgeRead]])
async def my_badges(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BadgeService = Depends(_svc),
) -> ApiResponse:
    return ok([UserBadgeRead.model_validate(ub) for ub in await svc.user_badges(user_id)])


@router.get(
    "/user/{target_user_id}",
    response_model=ApiResponse[list[UserBadgeRead]],
    dependencies=_ADMIN_ONLY,
)
async def user_badges(target_user_id: uuid.UUID, svc: BadgeService = Depends(_svc)) -> ApiResponse:
    return ok([UserBadgeRead.model_validate(ub) for ub in await svc.user_badges(target_user_id)])


@router.post(
    "/award",
    status_code=201,
    response_model=ApiResponse[UserBadgeRead],
    dependencies=_ADMIN_ONLY,
)
async def award_badge(
    body: AwardBadgeRequest,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BadgeService = Depends(_svc),
) -> ApiResponse:
    user_badge = await svc.award(user_id, body)
    return created(UserBadgeRead.model_validate(user_badge), "Badge awarded")


@router.put("/display/{user_badge_id}", response_model=ApiResponse[UserBadgeRead])
async def set_badge_displayed(
    user_badge_id: uuid.UUID,
    is_displayed: bool = Query(),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BadgeService = Depends(_svc),
) -> ApiResponse:
    user_badge = await svc.set_displayed(user_id, user_badge_id, is_displayed)
    return ok(UserBadgeRead.model_validate(user_badge), "Badge display updated")


@router.put("/featured/{user_badge_id}", response_model=ApiResponse[UserBadgeRead])
async def set_badge_featured(
    user_badge_id: uuid.UUID,
    is_featured: bool = Query(),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BadgeService = Depends(_svc),
) -> ApiResponse:
    user_badge = await svc.set_featured(user_id, user_badge_id, is_featured)
    return ok(UserBadgeRead.model_validate(user_badge), "Featured badge updated")


@router.get("/category/{category}", response_model=ApiResponse[list[BadgeRead]])
async def badges_by_category(category: str, svc: BadgeService = Depends(_svc)) -> ApiResponse:
    return ok([BadgeRead.model_validate(b) for b in await svc.list_badges(category=category)])


@router.get("/rarity/{rarity}", response_model=ApiResponse[list[BadgeRead]])
async def badges_by_rarity(rarity: BadgeRarity, svc: BadgeService = Depends(_svc)) -> ApiResponse:
    return ok([BadgeRead.model_validate(b) for b in await svc.list_badges(rarity=rarity)])


# --- a single badge ---------------------------------------------------------------


@router.get("/{badge_id}", response_model=ApiResponse[BadgeRead])
async def get_badge(badge_id: uuid.UUID, svc: BadgeService = Depends(_svc)) -> ApiResponse:
    return ok(BadgeRead.model_validate(await svc.get(badge_id)))


@router.put("/{badge_id}", response_model=ApiResponse[BadgeRead], dependencies=_ADMIN_ONLY)
async def update_badge(
    badge_id: uuid.UUID, body: BadgeCreate, svc: BadgeService = Depends(_svc)
) -> ApiResponse:
    return ok(BadgeRead.model_validate(await svc.update(badge_id, body)), "Badge updated")


@router.delete("/{badge_id}", response_model=ApiResponse[None], dependencies=_ADMIN_ONLY)
async def delete_badge(badge_id: uuid.UUID, svc: BadgeService = Depends(_svc)) -> ApiResponse:
    await svc.delete(badge_id)
    return ok(None, "Badge deleted")
