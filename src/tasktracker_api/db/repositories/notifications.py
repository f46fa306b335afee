"""
tasktracker_api.db.repositories.notifications

Repositories for `Notification` and `NotificationPreference` entities.

Responsibilities:
- Recipient-scoped notification queries (filters, counts, bulk read/delete).
- Preference lookups by (user, type, family) scope.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import delete, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import Notification, NotificationPreference, NotificationType
from tasktracker_api.db.repositories._text import LIKE_ESCAPE, contains_pattern


class NotificationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, notification: Notification) -> Notification:
        self._session.add(notification)
        await self._session.flush()
        return notification

    async def get_owned(
        self, notification_id: uuid.UUID, user_id: uuid.UUID
    ) -> Notification | None:
        stmt = select(Notification).where(
            Notification.id == notification_id, Notification.user_id == user_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        *,
        is_read: bool | None = None,
        notification_type: NotificationType | None = None,
        is_important: bool | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        search: str | None = None,
    ) -> list[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if is_read is not None:
            stmt = stmt.where(Notification.is_read == is_read)
        if notification_type is not None:
            stmt = stmt.where(Notification.notification_type == notification_type)
        if is_important is not None:
            stmt = stmt.where(Notification.is_important == is_important)
        if since is not None:
            stmt = stmt.where(Notification.created_at >= since)
        if until is not None:
            stmt = stmt.where(Notification.created_at <= until)
        if search:
            pattern = contains_pattern(search)
            stmt = stmt.where(
                or_(
                    Notification.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Notification.message.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        stmt = stmt.order_by(desc(Notification.created_at), desc(Notification.id))
        return list((await self._session.execute(stmt)).scalars())

    async def count(
        self,
        user_id: uuid.UUID,
        *,
        is_read: bool | None = None,
        is_important: bool | None = None,
        since: datetime | None = None,
    ) -> int:
        stmt = select(func.count(Notification.id)).where(Notification.user_id == user_id)
        if is_read is not None:
            stmt = stmt.where(Notification.is_read == is_read)
        if is_important is not None:
            stmt = stmt.where(Notification.is_important == is_important)
        if since is not None:
            stmt = stmt.where(Notification.created_at >= since)
        return (await self._session.execute(stmt)).scalar_one()

    async def count_by_type(self, user_id: uuid.UUID) -> dict[NotificationType, int]:
        stmt = (
            select(Notification.notification_type, func.count(Notification.id))
            .where(Notification.user_id == user_id)
            .group_by(Notification.notification_type)
        )
        return {t: n for t, n in (await self._session.execute(stmt)).all()}

    async def mark_all_read(self, user_id: uuid.UUID, read_at: datetime) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=read_at)
        )
        return (await self._session.execute(stmt)).rowcount or 0

    async def delete(self, notification: Notification) -> None:
        await self._session.delete(notification)
        await self._session.flush()

    async def delete_all(self, user_id: uuid.UUID) -> int:
        stmt = (
            delete(Notification)
            .where(Notification.user_id == user_id)
        )
        return (await self._session.execute(stmt)).rowcount or 0


class NotificationPreferenceRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, pref: NotificationPreference) -> NotificationPreference:
        self._session.add(pref)
        await self._session.flush()
        return pref

    async def get_owned(
        self, pref_id: uuid.UUID, user_id: uuid.UUID
    ) -> NotificationPreference | None:
        stmt = select(NotificationPreference).where(
            NotificationPreference.id == pref_id, NotificationPreference.user_id == user_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def find(
        self,
        user_id: uuid.UUID,
        notification_type: NotificationType,
        family_id: uuid.UUID | None = None,
    ) -> NotificationPreference | None:
        stmt = select(NotificationPreference).where(
            NotificationPreference.user_id == user_id,
            NotificationPreference.notification_type == notification_type,
        )
        if family_id is None:
            stmt = stmt.where(NotificationPreference.family_id.is_(None))
        else:
            stmt = stmt.where(NotificationPreference.family_id == family_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_user(
        self, user_id: uuid.UUID, *, family_id: uuid.UUID | None = None
    ) -> list[NotificationPreference]:
        stmt = select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        if family_id is not None:
            stmt = stmt.where(NotificationPreference.family_id == family_id)
        stmt = stmt.order_by(NotificationPreference.notification_type)
        return list((await self._session.execute(stmt)).scalars())

    async def set_channel(self, user_id: uuid.UUID, *, email: bool | None, push: bool | None) -> int:
        values: dict[str, bool] = {}
        if email is not None:
            values["email_enabled"] = email
        if push is not None:
            values["push_enabled"] = push
        stmt = (
            update(NotificationPreference)
            .where(NotificationPreference.user_id == user_id)
            .values(**values)
        )
        return (await self._session.execute(stmt)).rowcount or 0

    async def delete(self, pref: NotificationPreference) -> None:
        await self._session.delete(pref)
        await self._session.flush()
