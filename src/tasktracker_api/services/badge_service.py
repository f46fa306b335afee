"""
tasktracker_api.services.badge_service

Badge catalog and awarded badges.

Badges sit next to achievements: achievements unlock automatically from
counters, badges are handed out by an administrator. Awarding a badge credits
its point value to the recipient's progress and notifies them.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.clock import utcnow
from tasktracker_api.db.models import Badge, BadgeRarity, NotificationType, UserBadge
from tasktracker_api.db.repositories.badges import BadgeRepo
from tasktracker_api.db.repositories.users import UserRepo
from tasktracker_api.errors import ConflictError, NotFoundError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import AwardBadgeRequest, BadgeCreate
from tasktracker_api.services.gamification_service import GamificationService
from tasktracker_api.services.notification_service import NotificationService

log = get_logger(__name__)


class BadgeService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._badges = BadgeRepo(session)
        self._users = UserRepo(session)
        self._gamification = GamificationService(session=session)
        self._notifications = NotificationService(session=session)

    # --- catalog ------------------------------------------------------------

    async def list_badges(
        self, *, category: str | None = None, rarity: BadgeRarity | None = None
    ) -> list[Badge]:
        return await self._badges.list_catalog(category=category, rarity=rarity)

    async def get(self, badge_id: uuid.UUID) -> Badge:
        badge = await self._badges.get(badge_id)
        if badge is None:
            raise NotFoundError(f"Badge with ID {badge_id} not found")
        return badge

    async def _ensure_unique_name(self, name: str, *, exclude: uuid.UUID | None = None) -> None:
        existing = await self._badges.get_by_name(name)
        if existing is not None and existing.id != exclude:
            raise ConflictError(f"A badge named '{name}' already exists")

    async def create(self, body: BadgeCreate) -> Badge:
        await self._ensure_unique_name(body.name)
        badge = await self._badges.add(Badge(**body.model_dump()))
        await self._session.commit()
        log.info("badge_created", badge_id=str(badge.id), name=badge.name)
        return badge

    async def update(self, badge_id: uuid.UUID, body: BadgeCreate) -> Badge:
        badge = await self.get(badge_id)
        await self._ensure_unique_name(body.name, exclude=badge.id)
        for field, value in body.model_dump().items():
            setattr(badge, field, value)
        badge.updated_at = utcnow()
        await self._session.commit()
        return badge

    async def delete(self, badge_id: uuid.UUID) -> None:
        badge = await self.get(badge_id)
        await self._badges.delete(badge)
        await self._session.commit()
        log.info("badge_deleted", badge_id=str(badge_id))

    # --- awarded badges -----------------------------------------------------

    async def user_badges(self, user_id: uuid.UUID) -> list[UserBadge]:
        return await self._badges.list_for_user(user_id)

    async def award(self, awarded_by_id: uuid.UUID, body: AwardBadgeRequest) -> UserBadge:
        if await self._users.get(body.user_id) is None:
            raise NotFoundError("User not found")
        badge = await self.get(body.badge_id)
        if not badge.is_active:
            raise NotFoundError(f"Badge with ID {badge.id} not found")
        if await self._badges.find_user_badge(body.user_id, badge.id) is not None:
            raise ConflictError("The user already has this badge")

        user_badge = await self._badges.award(
            user_id=body.user_id, badge=badge, awarded_by_id=awarded_by_id, note=body.note
        )
        if badge.point_value > 0:
            await self._gamification.award_points(
                body.user_id,
                badge.point_value,
                transaction_type="badge",
                description=f"Earned badge: {badge.name}",
            )
        await self._notifications.notify(
            user_id=body.user_id,
            title="Badge earned",
            message=f"You earned the '{badge.name}' badge",
            notification_type=NotificationType.badge,
            related_entity_type="Badge",
            related_entity_id=str(badge.id),
            created_by_user_id=awarded_by_id,
        )
        await self._session.commit()
        log.info("badge_awarded", badge_id=str(badge.id), user_id=str(body.user_id))
        return user_badge

    async def _own_badge(self, user_id: uuid.UUID, user_badge_id: uuid.UUID) -> UserBadge:
        user_badge = await self._badges.get_user_badge(user_badge_id)
        if user_badge is None or user_badge.user_id != user_id:
            raise NotFoundError(f"Badge award with ID {user_badge_id} not found")
        return user_badge

    async def set_displayed(
        self, user_id: uuid.UUID, user_badge_id: uuid.UUID, displayed: bool
    ) -> UserBadge:
        user_badge = await self._own_badge(user_id, user_badge_id)
        user_badge.is_displayed = displayed
        if not displayed:
            # A hidden badge cannot stay featured.
            user_badge.is_featured = False
        await self._session.commit()
        return user_badge

    async def set_featured(
        self, user_id: uuid.UUID, user_badge_id: uuid.UUID, featured: bool
    ) -> UserBadge:
        user_badge = await self._own_badge(user_id, user_badge_id)
        if featured:
            # At most one featured badge per user.
            await self._badges.clear_featured(user_id)
            user_badge.is_displayed = True
        user_badge.is_featured = featured
        await self._session.commit()
        return user_badge
