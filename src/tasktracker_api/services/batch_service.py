"""
tasktracker_api.services.batch_service

Multi-task operations in a single transaction.

Responsibilities:
- Enforce batch size limits (empty or oversize batches are rejected).
- Parse comma-separated id lists, ignoring entries that are not UUIDs.
- Apply create/update/delete/status changes to the caller's tasks only; ids the
  caller does not own are skipped.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import TaskItem, TaskStatus
from tasktracker_api.db.repositories.tasks import TaskRepo
from tasktracker_api.errors import NotFoundError, ValidationError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import BatchStatusResult, BatchTaskUpdateItem, TaskCreate
from tasktracker_api.services.task_service import TaskService
from tasktracker_api.settings import Settings

log = get_logger(__name__)


def parse_id_list(raw: str | None) -> list[uuid.UUID]:
    ids: list[uuid.UUID] = []
    for part in (raw or "").split(","):
        try:
            ids.append(uuid.UUID(part.strip()))
        except ValueError:
            continue
    return list(dict.fromkeys(ids))


class BatchService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._tasks = TaskRepo(session)
        self._task_service = TaskService(session=session, settings=settings)

    def _check_size(self, count: int, *, empty_message: str = "No tasks provided") -> None:
        if count == 0:
            raise ValidationError(empty_message)
        if count > self._settings.max_batch_size:
            raise ValidationError(
                f"Batch size exceeds maximum allowed ({self._settings.max_batch_size})"
            )

    def _parse_ids(self, raw: str | None) -> list[uuid.UUID]:
        if not raw or not raw.strip():
            raise ValidationError("No task IDs provided")
        ids = parse_id_list(raw)
        if not ids:
            raise ValidationError("Invalid task IDs")
        self._check_size(len(ids))
        return ids

    async def create_many(self, user_id: uuid.UUID, items: Sequence[TaskCreate]) -> list[TaskItem]:
        self._check_size(len(items))
        created = [await self._task_service.create_uncommitted(user_id, item) for item in items]
        await self._session.commit()
        log.info("tasks_created_batch", user_id=str(user_id), count=len(created))
        return created

    async def get_many(self, user_id: uuid.UUID, raw_ids: str | None) -> list[TaskItem]:
        return await self._tasks.get_owned_many(self._parse_ids(raw_ids), user_id)

    async def update_many(
        self, user_id: uuid.UUID, items: Sequence[BatchTaskUpdateItem]
    ) -> list[TaskItem]:
        self._check_size(len(items))
        owned = {
            t.id: t for t in await self._tasks.get_owned_many([i.id for i in items], user_id)
        }
        updated: list[TaskItem] = []
        for item in items:
            task = owned.get(item.id)
            if task is None:
                continue
            updated.append(await self._task_service.patch(user_id, task, item))
        if not updated:
            raise NotFoundError("No tasks were updated")
        await self._session.commit()
        log.info("tasks_updated_batch", user_id=str(user_id), count=len(updated))
        return updated

    async def delete_many(self, user_id: uuid.UUID, raw_ids: str | None) -> int:
        deleted = await self._tasks.delete_many(self._parse_ids(raw_ids), user_id)
        await self._session.commit()
        log.info("tasks_deleted_batch", user_id=str(user_id), count=deleted)
        return deleted

    async def update_status(
        self, user_id: uuid.UUID, task_ids: Sequence[uuid.UUID], status: TaskStatus
    ) -> list[BatchStatusResult]:
        self._check_size(len(task_ids), empty_message="No updates provided")
        unique_ids = list(dict.fromkeys(task_ids))
        owned = {t.id: t for t in await self._tasks.get_owned_many(unique_ids, user_id)}
        results: list[BatchStatusResult] = []
        for task_id in unique_ids:
            task = owned.get(task_id)
            if task is None:
                results.append(
                    BatchStatusResult(task_id=task_id, success=False, error="Task not found")
                )
                continue
            previous = task.status
            await self._task_service.apply_status(user_id, task, status)
            results.append(
                BatchStatusResult(
                    task_id=task_id, success=True, previous_status=previous, new_status=status
                )
            )
        await self._session.commit()
        return results
