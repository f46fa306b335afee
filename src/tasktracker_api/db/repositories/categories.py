"""
tasktracker_api.db.repositories.categories

Repository for `Category` entities.
"""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import Category
from tasktracker_api.db.repositories._text import LIKE_ESCAPE, contains_pattern


class CategoryRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: uuid.UUID,
        name: str,
        description: str | None = None,
        color: str | None = None,
    ) -> Category:
        category = Category(user_id=user_id, name=name, description=description, color=color)
        self._session.add(category)
        await self._session.flush()
        return category

    async def get(self, category_id: uuid.UUID) -> Category | None:
        return await self._session.get(Category, category_id)

    async def get_by_name(self, user_id: uuid.UUID, name: str) -> Category | None:
        stmt = select(Category).where(
            Category.user_id == user_id, func.lower(Category.name) == name.lower()
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_user(self, user_id: uuid.UUID) -> list[Category]:
        stmt = select(Category).where(Category.user_id == user_id).order_by(Category.name)
        return list((await self._session.execute(stmt)).scalars())

    async def search(self, user_id: uuid.UUID, term: str) -> list[Category]:
        pattern = contains_pattern(term)
        stmt = (
            select(Category)
            .where(
                Category.user_id == user_id,
                Category.name.ilike(pattern, escape=LIKE_ESCAPE)
                | Category.description.ilike(pattern, escape=LIKE_ESCAPE),
            )
            .order_by(Category.name)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def paged(
        self, user_id: uuid.UUID, *, page: int, page_size: int
    ) -> tuple[list[Category], int]:
        total = (
            await self._session.execute(
                select(func.count(Category.id)).where(Category.user_id == user_id)
            )
        ).scalar_one()
        stmt = (
            select(Category)
            .where(Category.user_id == user_id)
            .order_by(Category.name)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list((await self._session.execute(stmt)).scalars()), total

    async def count(self, user_id: uuid.UUID) -> int:
        stmt = select(func.count(Category.id)).where(Category.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one()

    async def delete(self, category: Category) -> None:
        await self._session.delete(category)
        await self._session.flush()
