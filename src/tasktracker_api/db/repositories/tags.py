"""
tasktracker_api.db.repositories.tags

Repository for `Tag` entities.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import Tag
from tasktracker_api.db.repositories._text import LIKE_ESCAPE, contains_pattern


class TagRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, user_id: uuid.UUID, name: str) -> Tag:
        tag = Tag(user_id=user_id, name=name)
        self._session.add(tag)
        await self._session.flush()
        return tag

    async def get(self, tag_id: uuid.UUID) -> Tag | None:
        return await self._session.get(Tag, tag_id)

    async def get_many(self, tag_ids: Sequence[uuid.UUID]) -> list[Tag]:
        if not tag_ids:
            return []
        stmt = select(Tag).where(Tag.id.in_(list(tag_ids)))
        return list((await self._session.execute(stmt)).scalars())

    async def get_by_name(self, user_id: uuid.UUID, name: str) -> Tag | None:
        stmt = select(Tag).where(Tag.user_id == user_id, func.lower(Tag.name) == name.lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_user(self, user_id: uuid.UUID) -> list[Tag]:
        stmt = select(Tag).where(Tag.user_id == user_id).order_by(Tag.name)
        return list((await self._session.execute(stmt)).scalars())

    async def search(self, user_id: uuid.UUID, term: str) -> list[Tag]:
        stmt = (
            select(Tag)
            .where(
                Tag.user_id == user_id,
                Tag.name.ilike(contains_pattern(term), escape=LIKE_ESCAPE),
            )
            .order_by(Tag.name)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def delete(self, tag: Tag) -> None:
        await self._session.delete(tag)
        await self._session.flush()
