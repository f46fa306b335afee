"""
tasktracker_api.db.repositories.calendar

Repository for family calendar events and their attendees.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import FamilyCalendarEvent


class CalendarRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, event: FamilyCalendarEvent) -> FamilyCalendarEvent:
        self._session.add(event)
        await self._session.flush()
        return event

    async def get(self, event_id: uuid.UUID) -> FamilyCalendarEvent | None:
        return await self._session.get(FamilyCalendarEvent, event_id)

    async def list_for_family(self, family_id: uuid.UUID) -> list[FamilyCalendarEvent]:
        stmt = (
            select(FamilyCalendarEvent)
            .where(FamilyCalendarEvent.family_id == family_id)
            .order_by(FamilyCalendarEvent.start_time, FamilyCalendarEvent.title)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def list_overlapping(
        self, family_id: uuid.UUID, start: datetime, end: datetime
    ) -> list[FamilyCalendarEvent]:
        # An event belongs to the window when any part of it falls inside.
        stmt = (
            select(FamilyCalendarEvent)
            .where(
                FamilyCalendarEvent.family_id == family_id,
                FamilyCalendarEvent.start_time <= end,
                FamilyCalendarEvent.end_time >= start,
            )
            .order_by(FamilyCalendarEvent.start_time, FamilyCalendarEvent.title)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def delete(self, event: FamilyCalendarEvent) -> None:
        await self._session.delete(event)
        await self._session.flush()
