"""
tasktracker_api.db.repositories.reminders

Repository for `Reminder` entities.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import Reminder, ReminderStatus

_OPEN_STATUSES = (ReminderStatus.pending, ReminderStatus.snoozed)


class ReminderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, reminder: Reminder) -> Reminder:
        self._session.add(reminder)
        await self._session.flush()
        return reminder

    async def get_owned(self, reminder_id: uuid.UUID, user_id: uuid.UUID) -> Reminder | None:
        stmt = select(Reminder).where(Reminder.id == reminder_id, Reminder.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_user(
        self, user_id: uuid.UUID, *, status: ReminderStatus | None = None
    ) -> list[Reminder]:
        stmt = select(Reminder).where(Reminder.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Reminder.status == status)
        return list((await self._session.execute(stmt.order_by(Reminder.reminder_time))).scalars())

    async def list_for_task(self, user_id: uuid.UUID, task_id: uuid.UUID) -> list[Reminder]:
        stmt = (
            select(Reminder)
            .where(Reminder.user_id == user_id, Reminder.task_id == task_id)
            .order_by(Reminder.reminder_time)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def list_open_between(
        self, user_id: uuid.UUID, start: datetime, end: datetime, *, limit: int | None = None
    ) -> list[Reminder]:
        stmt = (
            select(Reminder)
            .where(
                Reminder.user_id == user_id,
                Reminder.status.in_(_OPEN_STATUSES),
                Reminder.reminder_time >= start,
                Reminder.reminder_time <= end,
            )
            .order_by(Reminder.reminder_time)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list((await self._session.execute(stmt)).scalars())

    async def list_due(self, user_id: uuid.UUID, now: datetime) -> list[Reminder]:
        stmt = (
            select(Reminder)
            .where(
                Reminder.user_id == user_id,
                Reminder.status.in_(_OPEN_STATUSES),
                Reminder.reminder_time <= now,
            )
            .order_by(Reminder.reminder_time)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def list_next(self, user_id: uuid.UUID, now: datetime, limit: int) -> list[Reminder]:
        stmt = (
            select(Reminder)
            .where(
                Reminder.user_id == user_id,
                Reminder.status.in_(_OPEN_STATUSES),
                Reminder.reminder_time >= now,
            )
            .order_by(Reminder.reminder_time)
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def recent(self, user_id: uuid.UUID, limit: int) -> list[Reminder]:
        stmt = (
            select(Reminder)
            .where(Reminder.user_id == user_id)
            .order_by(desc(Reminder.created_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def delete(self, reminder: Reminder) -> None:
        await self._session.delete(reminder)
        await self._session.flush()


# --- Module Notes -----------------------------------------------------------
# Snoozed reminders count as open: snoozing only moves reminder_time forward.
