"""
tasktracker_api.services.admin_service

User administration for Admin and GlobalAdmin callers.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.auth.models import Principal
from tasktracker_api.clock import utcnow
from tasktracker_api.db.models import User, UserRole
from tasktracker_api.db.repositories.users import UserRepo
from tasktracker_api.errors import ForbiddenError, NotFoundError, ValidationError
from tasktracker_api.observability.logging import get_logger

log = get_logger(__name__)

_PRIVILEGED = (UserRole.admin, UserRole.global_admin)


class AdminService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._users = UserRepo(session)

    async def list_users(self, *, page: int, page_size: int) -> tuple[list[User], int]:
        return await self._users.list_paged(page=page, page_size=page_size)

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user

    async def set_role(self, caller: Principal, user_id: uuid.UUID, role: UserRole) -> User:
        user = await self.get_user(user_id)
        touches_privileged = role in _PRIVILEGED or user.role in _PRIVILEGED
        if touches_privileged and not caller.has_at_least(UserRole.global_admin):
            raise ForbiddenError("Only a GlobalAdmin can grant or revoke administrator roles")
        user.role = role
        user.updated_at = utcnow()
        await self._session.commit()
        log.info("user_role_changed", user_id=str(user.id), role=role.value, by=caller.subject)
        return user

    async def set_active(self, caller: Principal, user_id: uuid.UUID, active: bool) -> User:
        if not active and user_id == caller.user_id:
            raise ValidationError("You cannot deactivate your own account")
        user = await self.get_user(user_id)
        if user.role in _PRIVILEGED and not caller.has_at_least(UserRole.global_admin):
            raise ForbiddenError("Only a GlobalAdmin can change an administrator's status")
        user.is_active = active
        user.updated_at = utcnow()
        await self._session.commit()
        log.info("user_active_changed", user_id=str(user.id), active=active, by=caller.subject)
        return user
