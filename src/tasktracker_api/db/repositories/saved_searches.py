"""
tasktracker_api.db.repositories.saved_searches

Repository for `SavedSearch` entities.
"""

from __future__ import annotations

import uuid

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import SavedSearch
from tasktracker_api.db.repositories._text import LIKE_ESCAPE, contains_pattern


class SavedSearchRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, saved: SavedSearch) -> SavedSearch:
        self._session.add(saved)
        await self._session.flush()
        return saved

    async def get(self, search_id: uuid.UUID) -> SavedSearch | None:
        return await self._session.get(SavedSearch, search_id)

    async def list_for_user(self, user_id: uuid.UUID) -> list[SavedSearch]:
        stmt = (
            select(SavedSearch)
            .where(SavedSearch.user_id == user_id)
            .order_by(desc(SavedSearch.updated_at))
        )
        return list((await self._session.execute(stmt)).scalars())

    async def list_public_for_family(self, family_id: uuid.UUID) -> list[SavedSearch]:
        stmt = (
            select(SavedSearch)
            .where(SavedSearch.family_id == family_id, SavedSearch.is_public.is_(True))
            .order_by(SavedSearch.name)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def most_used(self, user_id: uuid.UUID, limit: int) -> list[SavedSearch]:
        stmt = (
            select(SavedSearch)
            .where(SavedSearch.user_id == user_id)
            .order_by(desc(SavedSearch.usage_count), desc(SavedSearch.last_used_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def search(self, user_id: uuid.UUID, term: str) -> list[SavedSearch]:
        pattern = contains_pattern(term)
        stmt = (
            select(SavedSearch)
            .where(
                SavedSearch.user_id == user_id,
                SavedSearch.name.ilike(pattern, escape=LIKE_ESCAPE)
                | SavedSearch.query.ilike(pattern, escape=LIKE_ESCAPE),
            )
            .order_by(SavedSearch.name)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def delete(self, saved: SavedSearch) -> None:
        await self._session.delete(saved)
        await self._session.flush()
