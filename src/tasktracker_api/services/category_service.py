"""
tasktracker_api.services.category_service

Category management.

Responsibilities:
- Per-user CRUD with unique names (case-insensitive).
- Detach tasks when a category is deleted.
- Category search, paging and task counts.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.clock import utcnow
from tasktracker_api.db.models import Category, TaskItem
from tasktracker_api.db.repositories.categories import CategoryRepo
from tasktracker_api.db.repositories.tasks import TaskRepo
from tasktracker_api.errors import ConflictError, NotFoundError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import CategoryCreate, CountByName
from tasktracker_api.services.gamification_service import GamificationService

log = get_logger(__name__)


class CategoryService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._categories = CategoryRepo(session)
        self._tasks = TaskRepo(session)
        self._gamification = GamificationService(session=session)

    async def get(self, user_id: uuid.UUID, category_id: uuid.UUID) -> Category:
        category = await self._categories.get(category_id)
        if category is None or category.user_id != user_id:
            raise NotFoundError(f"Category with ID {category_id} not found")
        return category

    async def list_categories(self, user_id: uuid.UUID) -> list[Category]:
        return await self._categories.list_for_user(user_id)

    async def paged(
        self, user_id: uuid.UUID, *, page: int, page_size: int
    ) -> tuple[list[Category], int]:
        return await self._categories.paged(user_id, page=page, page_size=page_size)

    async def search(self, user_id: uuid.UUID, term: str) -> list[Category]:
        term = term.strip()
        if not term:
            return await self._categories.list_for_user(user_id)
        return await self._categories.search(user_id, term)

    async def create(self, user_id: uuid.UUID, body: CategoryCreate) -> Category:
        name = body.name.strip()
        if await self._categories.get_by_name(user_id, name) is not None:
            raise ConflictError(f"A category named '{name}' already exists")
        category = await self._categories.create(
            user_id=user_id, name=name, description=body.description, color=body.color
        )
        await self._gamification.on_category_created(user_id)
        await self._session.commit()
        log.info("category_created", category_id=str(category.id))
        return category

    async def update(
        self, user_id: uuid.UUID, category_id: uuid.UUID, body: CategoryCreate
    ) -> Category:
        category = await self.get(user_id, category_id)
        name = body.name.strip()
        existing = await self._categories.get_by_name(user_id, name)
        if existing is not None and existing.id != category.id:
            raise ConflictError(f"A category named '{name}' already exists")
        category.name = name
        category.description = body.description
        category.color = body.color
        category.updated_at = utcnow()
        await self._session.commit()
        return category

    async def delete(self, user_id: uuid.UUID, category_id: uuid.UUID) -> int:
        category = await self.get(user_id, category_id)
        detached = await self._tasks.detach_category(category.id)
        await self._categories.delete(category)
        await self._session.commit()
        log.info("category_deleted", category_id=str(category_id), detached_tasks=detached)
        return detached

    async def tasks(self, user_id: uuid.UUID, category_id: uuid.UUID) -> list[TaskItem]:
        await self.get(user_id, category_id)
        return await self._tasks.list_for_user(user_id, category_id=category_id)

    async def task_count(self, user_id: uuid.UUID, category_id: uuid.UUID) -> int:
        await self.get(user_id, category_id)
        return await self._tasks.count_in_category(category_id)

    async def statistics(self, user_id: uuid.UUID) -> list[CountByName]:
        return [
            CountByName(id=cid, name=name, count=total)
            for cid, name, total, _ in await self._tasks.count_by_category(user_id)
        ]

