"""
tasktracker_api.services.task_service

Task lifecycle service (transaction + persistence owner).

Responsibilities:
- Create/read/update/delete tasks with ownership checks.
- Resolve category and tag references (must belong to the caller).
- Apply status transitions: entering Completed stamps `completed_at` and feeds
  gamification; leaving it clears the stamp.
- Date-window views (overdue, today, this week) and per-user statistics.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.clock import (
    end_of_day,
    end_of_week,
    start_of_day,
    to_naive_utc,
    today,
    utcnow,
)
from tasktracker_api.db.models import Category, Tag, TaskItem, TaskStatus
from tasktracker_api.db.repositories.categories import CategoryRepo
from tasktracker_api.db.repositories.tags import TagRepo
from tasktracker_api.db.repositories.tasks import TaskRepo
from tasktracker_api.errors import ForbiddenError, NotFoundError, ValidationError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import (
    CountByName,
    TaskCreate,
    TaskPatch,
    TaskRead,
    TaskStatistics,
    TaskUpdate,
)
from tasktracker_api.services.gamification_service import GamificationService
from tasktracker_api.settings import Settings

log = get_logger(__name__)

SORTABLE_FIELDS = ("created_at", "due_date", "priority", "title", "status")


class TaskService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._tasks = TaskRepo(session)
        self._categories = CategoryRepo(session)
        self._tags = TagRepo(session)
        self._gamification = GamificationService(session=session)

    # --- reference resolution --------------------------------------------

    async def _owned_category(
        self, user_id: uuid.UUID, category_id: uuid.UUID | None
    ) -> Category | None:
        if category_id is None:
            return None
        category = await self._categories.get(category_id)
        if category is None:
            raise NotFoundError(f"Category with ID {category_id} not found")
        if category.user_id != user_id:
            raise ForbiddenError("You do not have access to this category")
        return category

    async def _owned_tags(self, user_id: uuid.UUID, tag_ids: Sequence[uuid.UUID]) -> list[Tag]:
        unique_ids = list(dict.fromkeys(tag_ids))
        tags = await self._tags.get_many(unique_ids)
        found = {t.id for t in tags}
        missing = [str(i) for i in unique_ids if i not in found]
        if missing:
            raise NotFoundError(f"Tag(s) not found: {', '.join(missing)}")
        if any(t.user_id != user_id for t in tags):
            raise ForbiddenError("You do not have access to one or more tags")
        by_id = {t.id: t for t in tags}
        return [by_id[i] for i in unique_ids]

    async def get_owned(self, user_id: uuid.UUID, task_id: uuid.UUID) -> TaskItem:
        task = await self._tasks.get_owned(task_id, user_id)
        if task is None:
            raise NotFoundError(f"Task with ID {task_id} not found")
        return task

    # --- status transitions (flush only) ----------------------------------

    async def apply_status(self, actor_id: uuid.UUID, task: TaskItem, status: TaskStatus) -> bool:
        """
        Move `task` to `status`; returns True when the task entered Completed.
        """

        previous = task.status
        task.status = status
        task.updated_at = utcnow()
        if status == TaskStatus.completed and previous != TaskStatus.completed:
            task.completed_at = utcnow()
            await self._gamification.on_task_completed(actor_id, task)
            log.info("task_completed", task_id=str(task.id), user_id=str(actor_id))
            return True
        if status != TaskStatus.completed and previous == TaskStatus.completed:
            task.completed_at = None
        return False

    # --- queries ----------------------------------------------------------

    async def list_tasks(self, user_id: uuid.UUID, **filters) -> list[TaskItem]:
        return await self._tasks.list_for_user(user_id, **filters)

    async def paged(
        self,
        user_id: uuid.UUID,
        *,
        page: int,
        page_size: int,
        search_term: str | None = None,
        sort_by: str = "created_at",
        ascending: bool = False,
    ) -> tuple[list[TaskItem], int]:
        if sort_by not in SORTABLE_FIELDS:
            raise ValidationError(
                f"Invalid sort field '{sort_by}'. Expected one of: {', '.join(SORTABLE_FIELDS)}"
            )
        page_size = min(page_size, self._settings.max_page_size)
        return await self._tasks.paged(
            user_id,
            page=page,
            page_size=page_size,
            search_term=search_term.strip() if search_term else None,
            sort_by=sort_by,
            ascending=ascending,
        )

    async def get(self, user_id: uuid.UUID, task_id: uuid.UUID) -> TaskItem:
        task = await self._tasks.get_visible(task_id, user_id)
        if task is None:
            raise NotFoundError(f"Task with ID {task_id} not found")
        return task

    async def by_category(self, user_id: uuid.UUID, category_id: uuid.UUID) -> list[TaskItem]:
        await self._owned_category(user_id, category_id)
        return await self._tasks.list_for_user(user_id, category_id=category_id)

    async def by_tag(self, user_id: uuid.UUID, tag_id: uuid.UUID) -> list[TaskItem]:
        await self._owned_tags(user_id, [tag_id])
        return await self._tasks.list_for_tag(user_id, tag_id)

    async def due_in_range(self, user_id: uuid.UUID, start: date, end: date) -> list[TaskItem]:
        if start > end:
            raise ValidationError("Start date must be before or equal to end date")
        return await self._tasks.list_due_between(user_id, start_of_day(start), end_of_day(end))

    async def overdue(self, user_id: uuid.UUID) -> list[TaskItem]:
        return await self._tasks.list_overdue(user_id, start_of_day(today()))

    async def due_today(self, user_id: uuid.UUID) -> list[TaskItem]:
        day = today()
        return await self._tasks.list_due_between(user_id, start_of_day(day), end_of_day(day))

    async def due_this_week(self, user_id: uuid.UUID) -> list[TaskItem]:
        day = today()
        return await self._tasks.list_due_between(
            user_id, start_of_day(day), end_of_day(end_of_week(day))
        )

    # --- commands ---------------------------------------------------------

    async def create(self, user_id: uuid.UUID, body: TaskCreate) -> TaskItem:
        task = await self.create_uncommitted(user_id, body)
        await self._session.commit()
        log.info("task_created", task_id=str(task.id), user_id=str(user_id))
        return task

    async def create_uncommitted(self, user_id: uuid.UUID, body: TaskCreate) -> TaskItem:
        category = await self._owned_category(user_id, body.category_id)
        tags = await self._owned_tags(user_id, body.tag_ids)
        task = await self._tasks.add(
            TaskItem(
                user_id=user_id,
                title=body.title.strip(),
                description=body.description,
                status=TaskStatus.not_started,
                priority=body.priority,
                due_date=to_naive_utc(body.due_date),
                estimated_minutes=body.estimated_minutes,
                category=category,
                tags=tags,
            )
        )
        await self._gamification.on_task_created(user_id)
        if body.status != TaskStatus.not_started:
            await self.apply_status(user_id, task, body.status)
        return task

    async def update(self, user_id: uuid.UUID, task_id: uuid.UUID, body: TaskUpdate) -> TaskItem:
        task = await self.get_owned(user_id, task_id)
        task.title = body.title.strip()
        task.description = body.description
        task.priority = body.priority
        task.due_date = to_naive_utc(body.due_date)
        task.estimated_minutes = body.estimated_minutes
        task.category = await self._owned_category(user_id, body.category_id)
        if body.tag_ids is not None:
            task.tags = await self._owned_tags(user_id, body.tag_ids)
        task.updated_at = utcnow()
        await self.apply_status(user_id, task, body.status)
        await self._session.commit()
        log.info("task_updated", task_id=str(task.id))
        return task

    async def patch(self, user_id: uuid.UUID, task: TaskItem, body: TaskPatch) -> TaskItem:
        """
        Partial update of an already-owned task; flush only (used by batch updates).
        """

        fields = body.model_fields_set
        if "title" in fields and body.title is not None:
            task.title = body.title.strip()
        if "description" in fields:
            task.description = body.description
        if "priority" in fields and body.priority is not None:
            task.priority = body.priority
        if "due_date" in fields:
            task.due_date = to_naive_utc(body.due_date)
        if "estimated_minutes" in fields:
            task.estimated_minutes = body.estimated_minutes
        if "category_id" in fields:
            task.category = await self._owned_category(user_id, body.category_id)
        if "tag_ids" in fields and body.tag_ids is not None:
            task.tags = await self._owned_tags(user_id, body.tag_ids)
        task.updated_at = utcnow()
        if "status" in fields and body.status is not None:
            await self.apply_status(user_id, task, body.status)
        return task

    async def delete(self, user_id: uuid.UUID, task_id: uuid.UUID) -> None:
        task = await self.get_owned(user_id, task_id)
        await self._tasks.delete(task)
        await self._session.commit()
        log.info("task_deleted", task_id=str(task_id))

    async def update_status(
        self, user_id: uuid.UUID, task_id: uuid.UUID, status: TaskStatus
    ) -> TaskItem:
        # Assignees may move a task through its workflow; only owners edit it.
        task = await self.get(user_id, task_id)
        await self.apply_status(user_id, task, status)
        await self._session.commit()
        return task

    async def complete_many(
        self, user_id: uuid.UUID, task_ids: Sequence[uuid.UUID]
    ) -> list[TaskItem]:
        tasks = await self._tasks.get_owned_many(list(dict.fromkeys(task_ids)), user_id)
        for task in tasks:
            await self.apply_status(user_id, task, TaskStatus.completed)
        await self._session.commit()
        log.info("tasks_completed_batch", requested=len(task_ids), completed=len(tasks))
        return tasks

    # --- tags -------------------------------------------------------------

    async def get_tags(self, user_id: uuid.UUID, task_id: uuid.UUID) -> list[Tag]:
        return list((await self.get(user_id, task_id)).tags)

    async def set_tags(
        self, user_id: uuid.UUID, task_id: uuid.UUID, tag_ids: Sequence[uuid.UUID]
    ) -> list[Tag]:
        task = await self.get_owned(user_id, task_id)
        task.tags = await self._owned_tags(user_id, tag_ids)
        task.updated_at = utcnow()
        await self._session.commit()
        return list(task.tags)

    async def add_tag(self, user_id: uuid.UUID, task_id: uuid.UUID, tag_id: uuid.UUID) -> list[Tag]:
        task = await self.get_owned(user_id, task_id)
        (tag,) = await self._owned_tags(user_id, [tag_id])
        if tag not in task.tags:
            task.tags.append(tag)
            task.updated_at = utcnow()
            await self._session.commit()
        return list(task.tags)

    async def remove_tag(
        self, user_id: uuid.UUID, task_id: uuid.UUID, tag_id: uuid.UUID
    ) -> list[Tag]:
        task = await self.get_owned(user_id, task_id)
        remaining = [t for t in task.tags if t.id != tag_id]
        if len(remaining) == len(task.tags):
            raise NotFoundError("Tag is not attached to this task")
        task.tags = remaining
        task.updated_at = utcnow()
        await self._session.commit()
        return remaining

    # --- statistics -------------------------------------------------------

    async def statistics(self, user_id: uuid.UUID) -> TaskStatistics:
        by_status = await self._tasks.count_by_status(user_id)
        total = sum(by_status.values())
        completed = by_status.get(TaskStatus.completed, 0)
        in_progress = by_status.get(TaskStatus.in_progress, 0)
        not_started = by_status.get(TaskStatus.not_started, 0)

        day = today()
        week_end = end_of_week(day)
        next_week_start = week_end + timedelta(days=1)

        return TaskStatistics(
            total=total,
            completed=completed,
            in_progress=in_progress,
            not_started=not_started,
            other=total - completed - in_progress - not_started,
            overdue=await self._tasks.count_overdue(user_id, start_of_day(day)),
            due_today=await self._tasks.count_due_between(
                user_id, start_of_day(day), end_of_day(day)
            ),
            due_this_week=await self._tasks.count_due_between(
                user_id, start_of_day(day), end_of_day(week_end)
            ),
            due_next_week=await self._tasks.count_due_between(
                user_id,
                start_of_day(next_week_start),
                end_of_day(next_week_start + timedelta(days=6)),
            ),
            completion_rate=round(completed / total * 100, 2) if total else 0.0,
            by_category=[
                CountByName(id=cid, name=name, count=n)
                for cid, name, n, _ in await self._tasks.count_by_category(user_id)
            ],
            by_tag=[
                CountByName(id=tid, name=name, count=n)
                for tid, name, n in await self._tasks.count_by_tag(user_id)
            ],
            recently_modified=[
                TaskRead.model_validate(t) for t in await self._tasks.recently_modified(user_id)
            ],
            recently_completed=[
                TaskRead.model_validate(t) for t in await self._tasks.recently_completed(user_id)
            ],
        )


# --- Module Notes -----------------------------------------------------------
# Relationship attributes (category, tags) are always assigned as objects, never
# via raw ids, so the in-memory task stays consistent after commit and routers can
# serialize it without another round-trip.
