"""
tasktracker_api.services.tag_service

Tag management.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import Tag, TaskItem
from tasktracker_api.db.repositories.tags import TagRepo
from tasktracker_api.db.repositories.tasks import TaskRepo
from tasktracker_api.errors import ConflictError, NotFoundError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import CountByName, TagCreate

log = get_logger(__name__)


class TagService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._tags = TagRepo(session)
        self._tasks = TaskRepo(session)

    async def get(self, user_id: uuid.UUID, tag_id: uuid.UUID) -> Tag:
        tag = await self._tags.get(tag_id)
        if tag is None or tag.user_id != user_id:
            raise NotFoundError(f"Tag with ID {tag_id} not found")
        return tag

    async def list_tags(self, user_id: uuid.UUID) -> list[Tag]:
        return await self._tags.list_for_user(user_id)

    async def search(self, user_id: uuid.UUID, term: str) -> list[Tag]:
        term = term.strip()
        if not term:
            return await self._tags.list_for_user(user_id)
        return await self._tags.search(user_id, term)

    async def create(self, user_id: uuid.UUID, body: TagCreate) -> Tag:
        name = body.name.strip()
        if await self._tags.get_by_name(user_id, name) is not None:
            raise ConflictError(f"A tag named '{name}' already exists")
        tag = await self._tags.create(user_id=user_id, name=name)
        await self._session.commit()
        log.info("tag_created", tag_id=str(tag.id))
        return tag

    async def update(self, user_id: uuid.UUID, tag_id: uuid.UUID, body: TagCreate) -> Tag:
        tag = await self.get(user_id, tag_id)
        name = body.name.strip()
        existing = await self._tags.get_by_name(user_id, name)
        if existing is not None and existing.id != tag.id:
            raise ConflictError(f"A tag named '{name}' already exists")
        tag.name = name
        await self._session.commit()
        return tag

    async def delete(self, user_id: uuid.UUID, tag_id: uuid.UUID) -> None:
        tag = await self.get(user_id, tag_id)
        await self._tags.delete(tag)
        await self._session.commit()
        log.info("tag_deleted", tag_id=str(tag_id))

    async def tasks(self, user_id: uuid.UUID, tag_id: uuid.UUID) -> list[TaskItem]:
        await self.get(user_id, tag_id)
        return await self._tasks.list_for_tag(user_id, tag_id)

    async def statistics(self, user_id: uuid.UUID) -> list[CountByName]:
        return [
            CountByName(id=tid, name=name, count=n)
            for tid, name, n in await self._tasks.count_by_tag(user_id)
        ]
