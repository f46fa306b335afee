"""
tasktracker_api.services.auth_service

Account registration, login and profile management.

Responsibilities:
- Register users (unique username/e-mail, bcrypt hash) and issue tokens.
- Verify credentials for login; refuse inactive accounts.
- Profile updates and password changes.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.auth.jwt import JwtConfig, issue_token
from tasktracker_api.auth.passwords import hash_password, verify_password
from tasktracker_api.clock import utcnow
from tasktracker_api.db.models import User
from tasktracker_api.db.repositories.users import UserRepo
from tasktracker_api.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UpdateProfileRequest,
    UserRead,
)
from tasktracker_api.settings import Settings

log = get_logger(__name__)


class AuthService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._users = UserRepo(session)

    def _token_for(self, user: User) -> TokenResponse:
        issued = issue_token(
            cfg=JwtConfig.from_settings(self._settings),
            subject=str(user.id),
            roles=[user.role.value],
            ttl=timedelta(minutes=self._settings.access_token_ttl_minutes),
            extra_claims={"username": user.username},
        )
        return TokenResponse(
            access_token=issued.token,
            expires_at=issued.expires_at,
            user=UserRead.model_validate(user),
        )

    async def register(self, body: RegisterRequest) -> TokenResponse:
        if await self._users.get_by_username(body.username) is not None:
            raise ConflictError("Username is already taken")
        if await self._users.get_by_email(body.email) is not None:
            raise ConflictError("Email is already registered")

        user = await self._users.create(
            username=body.username,
            email=body.email,
            password_hash=hash_password(body.password, rounds=self._settings.bcrypt_rounds),
            first_name=body.first_name,
            last_name=body.last_name,
        )
        await self._session.commit()
        log.info("user_registered", user_id=str(user.id))
        return self._token_for(user)

    async def login(self, body: LoginRequest) -> TokenResponse:
        user = await self._users.get_by_login(body.username_or_email)
        if user is None or not verify_password(body.password, user.password_hash):
            log.info("login_failed")
            raise AuthenticationError("Invalid username or password")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        log.info("login_succeeded", user_id=str(user.id))
        return self._token_for(user)

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user_id: uuid.UUID, body: UpdateProfileRequest) -> User:
        user = await self.get_user(user_id)
        if body.email is not None and body.email.lower() != user.email:
            if await self._users.get_by_email(body.email) is not None:
                raise ConflictError("Email is already registered")
            user.email = body.email.lower()
        if body.first_name is not None:
            user.first_name = body.first_name
        if body.last_name is not None:
            user.last_name = body.last_name
        user.updated_at = utcnow()
        await self._session.commit()
        return user

    async def change_password(self, user_id: uuid.UUID, body: ChangePasswordRequest) -> None:
        user = await self.get_user(user_id)
        if not verify_password(body.current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")
        user.password_hash = hash_password(body.new_password, rounds=self._settings.bcrypt_rounds)
        user.updated_at = utcnow()
        await self._session.commit()
        log.info("password_changed", user_id=str(user.id))
