"""
tasktracker_api.db.repositories.users

Repository for `User` entities.
"""

from __future__ import annotations

import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import User, UserRole


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        first_name: str | None = None,
        last_name: str | None = None,
        role: UserRole = UserRole.regular_user,
    ) -> User:
        user = User(
            username=username,
            email=email.lower(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=True,
        )
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        stmt = select(User).where(func.lower(User.username) == username.lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_login(self, identifier: str) -> User | None:
        # Login accepts either the username or the e-mail address.
        stmt = select(User).where(
            or_(func.lower(User.username) == identifier.lower(), User.email == identifier.lower())
        )
        return (await self._session.execute(stmt)).scalars().first()

    async def get_many(self, user_ids: list[uuid.UUID]) -> dict[uuid.UUID, User]:
        if not user_ids:
            return {}
        stmt = select(User).where(User.id.in_(user_ids))
        return {u.id: u for u in (await self._session.execute(stmt)).scalars()}

    async def list_paged(self, *, page: int, page_size: int) -> tuple[list[User], int]:
        total = (await self._session.execute(select(func.count()).select_from(User))).scalar_one()
        stmt = (
            select(User)
            .order_by(User.created_at, User.username)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list((await self._session.execute(stmt)).scalars()), total
