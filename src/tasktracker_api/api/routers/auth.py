"""
tasktracker_api.api.routers.auth

Registration, login and the caller's own profile.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session, settings_dep
from tasktracker_api.api.envelope import ApiResponse, created, ok
from tasktracker_api.api.rate_limit import rate_limit
from tasktracker_api.auth.deps import current_user_id
from tasktracker_api.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UpdateProfileRequest,
    UserRead,
)
from tasktracker_api.services.auth_service import AuthService
from tasktracker_api.settings import Settings

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=ApiResponse[TokenResponse],
    dependencies=[Depends(rate_limit(10, 60))],
)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> ApiResponse:
    token = await AuthService(session=session, settings=settings).register(body)
    return created(token, "Registration successful")


@router.post(
    "/login",
    response_model=ApiResponse[TokenResponse],
    dependencies=[Depends(rate_limit(10, 60))],
)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> ApiResponse:
    token = await AuthService(session=session, settings=settings).login(body)
    return ok(token, "Login successful")


@router.get("/me", response_model=ApiResponse[UserRead])
async def me(
    user_id: uuid.UUID = Depends(current_user_id),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> ApiResponse:
    user = await AuthService(session=session, settings=settings).get_user(user_id)
    return ok(UserRead.model_validate(user))


@router.put("/me", response_model=ApiResponse[UserRead])
async def update_me(
    body: UpdateProfileRequest,
    user_id: uuid.UUID = Depends(current_user_id),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> ApiResponse:
    user = await AuthService(session=session, settings=settings).update_profile(user_id, body)
    return ok(UserRead.model_validate(user), "Profile updated")


@router.post("/change-password", response_model=ApiResponse[None])
async def change_password(
    body: ChangePasswordRequest,
    user_id: uuid.UUID = Depends(current_user_id),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> ApiResponse:
    await AuthService(session=session, settings=settings).change_password(user_id, body)
    return ok(None, "Password changed")
