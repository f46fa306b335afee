"""
tasktracker_api.db.repositories.badges

Repository for the badge catalog and awarded badges.
"""

from __future__ import annotations

import uuid

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import Badge, BadgeRarity, UserBadge


class BadgeRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- catalog ------------------------------------------------------------

    async def add(self, badge: Badge) -> Badge:
        self._session.add(badge)
        await self._session.flush()
        return badge

    async def get(self, badge_id: uuid.UUID) -> Badge | None:
        return await self._session.get(Badge, badge_id)

    async def get_by_name(self, name: str) -> Badge | None:
        stmt = select(Badge).where(func.lower(Badge.name) == name.lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_catalog(
        self,
        *,
        category: str | None = None,
        rarity: BadgeRarity | None = None,
        include_inactive: bool = False,
    ) -> list[Badge]:
        stmt = select(Badge)
        if not include_inactive:
            stmt = stmt.where(Badge.is_active.is_(True))
        if category is not None:
            stmt = stmt.where(func.lower(Badge.category) == category.lower())
        if rarity is not None:
            stmt = stmt.where(Badge.rarity == rarity)
        stmt = stmt.order_by(Badge.category, Badge.point_value, Badge.name)
        return list((await self._session.execute(stmt)).scalars())

    async def delete(self, badge: Badge) -> None:
        await self._session.delete(badge)
        await self._session.flush()

    # --- awarded badges -----------------------------------------------------

    async def award(
        self,
        *,
        user_id: uuid.UUID,
        badge: Badge,
        awarded_by_id: uuid.UUID | None,
        note: str | None,
    ) -> UserBadge:
        user_badge = UserBadge(
            user_id=user_id,
            badge_id=badge.id,
            badge=badge,
            awarded_by_id=awarded_by_id,
            award_note=note,
        )
        self._session.add(user_badge)
        await self._session.flush()
        return user_badge

    async def get_user_badge(self, user_badge_id: uuid.UUID) -> UserBadge | None:
        return await self._session.get(UserBadge, user_badge_id)

    async def find_user_badge(self, user_id: uuid.UUID, badge_id: uuid.UUID) -> UserBadge | None:
        stmt = select(UserBadge).where(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_user(self, user_id: uuid.UUID) -> list[UserBadge]:
        stmt = (
            select(UserBadge)
            .where(UserBadge.user_id == user_id)
            .order_by(desc(UserBadge.is_featured), desc(UserBadge.awarded_at))
        )
        return list((await self._session.execute(stmt)).scalars())

    async def clear_featured(self, user_id: uuid.UUID) -> None:
        stmt = (
            update(UserBadge)
            .where(UserBadge.user_id == user_id, UserBadge.is_featured.is_(True))
            .values(is_featured=False)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.execute(stmt)
