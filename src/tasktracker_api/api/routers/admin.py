"""
tasktracker_api.api.routers.admin

User administration (`Admin` and above).
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session
from tasktracker_api.api.envelope import ApiResponse, PagedResult, ok
from tasktracker_api.auth.deps import get_principal, require_roles
from tasktracker_api.auth.models import Principal
from tasktracker_api.db.models import UserRole
from tasktracker_api.schemas import RoleUpdateRequest, UserRead
from tasktracker_api.services.admin_service import AdminService

router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(require_roles(UserRole.admin))]
)


def _svc(session: AsyncSession = Depends(db_session)) -> AdminService:
    return AdminService(session=session)


@router.get("/users", response_model=ApiResponse[PagedResult[UserRead]])
async def list_users(
    page_number: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    svc: AdminService = Depends(_svc),
) -> ApiResponse:
    users, total = await svc.list_users(page=page_number, page_size=page_size)
    return ok(
        PagedResult.build(
            [UserRead.model_validate(u) for u in users],
            total_count=total,
            page_number=page_number,
            page_size=page_size,
        )
    )


@router.get("/users/{user_id}", response_model=ApiResponse[UserRead])
async def get_user(user_id: uuid.UUID, svc: AdminService = Depends(_svc)) -> ApiResponse:
    return ok(UserRead.model_validate(await svc.get_user(user_id)))


@router.put("/users/{user_id}/role", response_model=ApiResponse[UserRead])
async def set_role(
    user_id: uuid.UUID,
    body: RoleUpdateRequest,
    principal: Principal = Depends(get_principal),
    svc: AdminService = Depends(_svc),
) -> ApiResponse:
    user = await svc.set_role(principal, user_id, body.role)
    return ok(UserRead.model_validate(user), "Role updated")


@router.put("/users/{user_id}/activate", response_model=ApiResponse[UserRead])
async def activate_user(
    user_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    svc: AdminService = Depends(_svc),
) -> ApiResponse:
    user = await svc.set_active(principal, user_id, True)
    return ok(UserRead.model_validate(user), "User activated")


@router.put("/users/{user_id}/deactivate", response_model=ApiResponse[UserRead])
async def deactivate_user(
    user_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    svc: AdminService = Depends(_svc),
) -> ApiResponse:
    user = await svc.set_active(principal, user_id, False)
    return ok(UserRead.model_validate(user), "User deactivated")
