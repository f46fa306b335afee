"""
tasktracker_api.db.repositories.tasks

Repository for `TaskItem` entities.

Responsibilities:
- Owner/assignee scoped lookups and list queries (status, category, tag, dates).
- Paging, sorting and free-text search.
- Aggregates used by statistics, boards and families.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import and_, case, delete, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement, Select

from tasktracker_api.db.models import Category, Tag, TaskItem, TaskPriority, TaskStatus, task_tags
from tasktracker_api.db.repositories._text import LIKE_ESCAPE, contains_pattern, prefix_pattern

PRIORITY_RANK = case(
    (TaskItem.priority == TaskPriority.low, 0),
    (TaskItem.priority == TaskPriority.medium, 1),
    (TaskItem.priority == TaskPriority.high, 2),
    else_=3,
)

_SORT_COLUMNS: dict[str, Any] = {
    "created_at": TaskItem.created_at,
    "due_date": TaskItem.due_date,
    "priority": PRIORITY_RANK,
    "title": TaskItem.title,
    "status": TaskItem.status,
}


def _visible_to(user_id: uuid.UUID) -> ColumnElement[bool]:
    return or_(TaskItem.user_id == user_id, TaskItem.assigned_to_user_id == user_id)


def _text_match(term: str) -> ColumnElement[bool]:
    pattern = contains_pattern(term)
    return or_(
        TaskItem.title.ilike(pattern, escape=LIKE_ESCAPE),
        TaskItem.description.ilike(pattern, escape=LIKE_ESCAPE),
    )


class TaskRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, task: TaskItem) -> TaskItem:
        self._session.add(task)
        await self._session.flush()
        return task

    async def delete(self, task: TaskItem) -> None:
        await self._session.delete(task)
        await self._session.flush()

    async def get(self, task_id: uuid.UUID) -> TaskItem | None:
        return await self._session.get(TaskItem, task_id)

    async def get_visible(self, task_id: uuid.UUID, user_id: uuid.UUID) -> TaskItem | None:
        stmt = select(TaskItem).where(TaskItem.id == task_id, _visible_to(user_id))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_owned(self, task_id: uuid.UUID, user_id: uuid.UUID) -> TaskItem | None:
        stmt = select(TaskItem).where(TaskItem.id == task_id, TaskItem.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_owned_many(
        self, task_ids: Sequence[uuid.UUID], user_id: uuid.UUID
    ) -> list[TaskItem]:
        if not task_ids:
            return []
        stmt = (
            select(TaskItem)
            .where(TaskItem.id.in_(list(task_ids)), TaskItem.user_id == user_id)
            .order_by(TaskItem.created_at)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def _all(self, stmt: Select[Any]) -> list[TaskItem]:
        return list((await self._session.execute(stmt)).scalars())

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        *,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        category_id: uuid.UUID | None = None,
    ) -> list[TaskItem]:
        stmt = select(TaskItem).where(TaskItem.user_id == user_id)
        if status is not None:
            stmt = stmt.where(TaskItem.status == status)
        if priority is not None:
            stmt = stmt.where(TaskItem.priority == priority)
        if category_id is not None:
            stmt = stmt.where(TaskItem.category_id == category_id)
        return await self._all(stmt.order_by(desc(TaskItem.created_at)))

    async def list_for_tag(self, user_id: uuid.UUID, tag_id: uuid.UUID) -> list[TaskItem]:
        stmt = (
            select(TaskItem)
            .join(task_tags, task_tags.c.task_id == TaskItem.id)
            .where(TaskItem.user_id == user_id, task_tags.c.tag_id == tag_id)
            .order_by(desc(TaskItem.created_at))
        )
        return await self._all(stmt)

    async def list_due_between(
        self,
        user_id: uuid.UUID,
        start: datetime,
        end: datetime,
        *,
        open_only: bool = False,
    ) -> list[TaskItem]:
        stmt = select(TaskItem).where(
            TaskItem.user_id == user_id,
            TaskItem.due_date.is_not(None),
            TaskItem.due_date >= start,
            TaskItem.due_date <= end,
        )
        if open_only:
            stmt = stmt.where(TaskItem.status != TaskStatus.completed)
        return await self._all(stmt.order_by(TaskItem.due_date))

    async def list_overdue(self, user_id: uuid.UUID, before: datetime) -> list[TaskItem]:
        stmt = select(TaskItem).where(
            TaskItem.user_id == user_id,
            TaskItem.due_date.is_not(None),
            TaskItem.due_date < before,
            TaskItem.status != TaskStatus.completed,
        )
        return await self._all(stmt.order_by(TaskItem.due_date))

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
        where: list[ColumnElement[bool]] = [TaskItem.user_id == user_id]
        if search_term:
            where.append(_text_match(search_term))
        total = (
            await self._session.execute(select(func.count(TaskItem.id)).where(*where))
        ).scalar_one()
        sort_col = _SORT_COLUMNS.get(sort_by, TaskItem.created_at)
        order = sort_col.asc() if ascending else sort_col.desc()
        stmt = (
            select(TaskItem)
            .where(*where)
            .order_by(order, TaskItem.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return await self._all(stmt), total

    async def search(
        self,
        user_id: uuid.UUID,
        term: str,
        *,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        category_id: uuid.UUID | None = None,
    ) -> list[TaskItem]:
        stmt = select(TaskItem).where(_visible_to(user_id), _text_match(term))
        if status is not None:
            stmt = stmt.where(TaskItem.status == status)
        if priority is not None:
            stmt = stmt.where(TaskItem.priority == priority)
        if category_id is not None:
            stmt = stmt.where(TaskItem.category_id == category_id)
        return await self._all(stmt.order_by(desc(TaskItem.updated_at)))

    async def titles_starting_with(self, user_id: uuid.UUID, prefix: str, limit: int) -> list[str]:
        stmt = (
            select(TaskItem.title)
            .where(
                TaskItem.user_id == user_id,
                TaskItem.title.ilike(prefix_pattern(prefix), escape=LIKE_ESCAPE),
            )
            .distinct()
            .order_by(TaskItem.title)
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def detach_category(self, category_id: uuid.UUID) -> int:
        stmt = (
            update(TaskItem)
            .where(TaskItem.category_id == category_id)
            .values(category_id=None)
        )
        return (await self._session.execute(stmt)).rowcount or 0

    async def delete_many(self, task_ids: Sequence[uuid.UUID], user_id: uuid.UUID) -> int:
        if not task_ids:
            return 0
        stmt = (
            delete(TaskItem)
            .where(TaskItem.id.in_(list(task_ids)), TaskItem.user_id == user_id)
        )
        return (await self._session.execute(stmt)).rowcount or 0

    # --- aggregates -------------------------------------------------------

    async def count(self, user_id: uuid.UUID, *, status: TaskStatus | None = None) -> int:
        stmt = select(func.count(TaskItem.id)).where(TaskItem.user_id == user_id)
        if status is not None:
            stmt = stmt.where(TaskItem.status == status)
        return (await self._session.execute(stmt)).scalar_one()

    async def count_by_status(self, user_id: uuid.UUID) -> dict[TaskStatus, int]:
        stmt = (
            select(TaskItem.status, func.count(TaskItem.id))
            .where(TaskItem.user_id == user_id)
            .group_by(TaskItem.status)
        )
        return {status: n for status, n in (await self._session.execute(stmt)).all()}

    async def count_by_priority(self, user_id: uuid.UUID) -> dict[TaskPriority, int]:
        stmt = (
            select(TaskItem.priority, func.count(TaskItem.id))
            .where(TaskItem.user_id == user_id)
            .group_by(TaskItem.priority)
        )
        return {priority: n for priority, n in (await self._session.execute(stmt)).all()}

    async def count_by_category(self, user_id: uuid.UUID) -> list[tuple[uuid.UUID, str, int, int]]:
        """
        Per-category (id, name, total, completed) for a user's categories, including
        categories without tasks.
        """

        completed = func.sum(case((TaskItem.status == TaskStatus.completed, 1), else_=0))
        stmt = (
            select(Category.id, Category.name, func.count(TaskItem.id), completed)
            .outerjoin(
                TaskItem,
                and_(TaskItem.category_id == Category.id, TaskItem.user_id == user_id),
            )
            .where(Category.user_id == user_id)
            .group_by(Category.id, Category.name)
            .order_by(desc(func.count(TaskItem.id)), Category.name)
        )
        return [(cid, name, total, int(done or 0)) for cid, name, total, done in (
            await self._session.execute(stmt)
        ).all()]

    async def count_by_tag(self, user_id: uuid.UUID) -> list[tuple[uuid.UUID, str, int]]:
        stmt = (
            select(Tag.id, Tag.name, func.count(task_tags.c.task_id))
            .outerjoin(task_tags, task_tags.c.tag_id == Tag.id)
            .where(Tag.user_id == user_id)
            .group_by(Tag.id, Tag.name)
            .order_by(desc(func.count(task_tags.c.task_id)), Tag.name)
        )
        return [(tid, name, n) for tid, name, n in (await self._session.execute(stmt)).all()]

    async def count_in_category(self, category_id: uuid.UUID) -> int:
        stmt = select(func.count(TaskItem.id)).where(TaskItem.category_id == category_id)
        return (await self._session.execute(stmt)).scalar_one()

    async def count_due_between(self, user_id: uuid.UUID, start: datetime, end: datetime) -> int:
        stmt = select(func.count(TaskItem.id)).where(
            TaskItem.user_id == user_id,
            TaskItem.due_date >= start,
            TaskItem.due_date <= end,
            TaskItem.status != TaskStatus.completed,
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def count_overdue(self, user_id: uuid.UUID, before: datetime) -> int:
        stmt = select(func.count(TaskItem.id)).where(
            TaskItem.user_id == user_id,
            TaskItem.due_date < before,
            TaskItem.status != TaskStatus.completed,
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def recently_modified(self, user_id: uuid.UUID, limit: int = 5) -> list[TaskItem]:
        stmt = (
            select(TaskItem)
            .where(TaskItem.user_id == user_id)
            .order_by(desc(TaskItem.updated_at), desc(TaskItem.created_at))
            .limit(limit)
        )
        return await self._all(stmt)

    async def recently_completed(self, user_id: uuid.UUID, limit: int = 5) -> list[TaskItem]:
        stmt = (
            select(TaskItem)
            .where(TaskItem.user_id == user_id, TaskItem.status == TaskStatus.completed)
            .order_by(desc(TaskItem.completed_at))
            .limit(limit)
        )
        return await self._all(stmt)

    async def created_between(
        self, user_id: uuid.UUID, start: datetime, end: datetime
    ) -> list[datetime]:
        stmt = select(TaskItem.created_at).where(
            TaskItem.user_id == user_id,
            TaskItem.created_at >= start,
            TaskItem.created_at <= end,
        )
        return list((await self._session.execute(stmt)).scalars())

    async def completed_between(
        self, user_id: uuid.UUID, start: datetime, end: datetime
    ) -> list[datetime]:
        stmt = select(TaskItem.completed_at).where(
            TaskItem.user_id == user_id,
            TaskItem.completed_at.is_not(None),
            TaskItem.completed_at >= start,
            TaskItem.completed_at <= end,
        )
        return list((await self._session.execute(stmt)).scalars())

    async def completion_durations(self, user_id: uuid.UUID) -> list[tuple[datetime, datetime]]:
        stmt = select(TaskItem.created_at, TaskItem.completed_at).where(
            TaskItem.user_id == user_id,
            TaskItem.status == TaskStatus.completed,
            TaskItem.completed_at.is_not(None),
        )
        return [(c, d) for c, d in (await self._session.execute(stmt)).all()]

    # --- boards / families ------------------------------------------------

    async def list_for_board(self, board_id: uuid.UUID) -> list[TaskItem]:
        stmt = (
            select(TaskItem)
            .where(TaskItem.board_id == board_id)
            .order_by(TaskItem.board_order, TaskItem.created_at)
        )
        return await self._all(stmt)

    async def list_for_column(self, column_id: uuid.UUID) -> list[TaskItem]:
        stmt = (
            select(TaskItem)
            .where(TaskItem.board_column_id == column_id)
            .order_by(TaskItem.board_order, TaskItem.created_at)
        )
        return await self._all(stmt)

    async def count_in_column(self, column_id: uuid.UUID) -> int:
        stmt = select(func.count(TaskItem.id)).where(TaskItem.board_column_id == column_id)
        return (await self._session.execute(stmt)).scalar_one()

    async def list_for_family(self, family_id: uuid.UUID) -> list[TaskItem]:
        stmt = (
            select(TaskItem)
            .where(TaskItem.family_id == family_id)
            .order_by(desc(TaskItem.updated_at))
        )
        return await self._all(stmt)

    async def count_completed_by_users(
        self, user_ids: Sequence[uuid.UUID]
    ) -> dict[uuid.UUID, int]:
        if not user_ids:
            return {}
        stmt = (
            select(TaskItem.user_id, func.count(TaskItem.id))
            .where(TaskItem.user_id.in_(list(user_ids)), TaskItem.status == TaskStatus.completed)
            .group_by(TaskItem.user_id)
        )
        return {uid: n for uid, n in (await self._session.execute(stmt)).all()}


# --- Module Notes -----------------------------------------------------------
# "Visible" means owned or assigned; list endpoints return owned tasks only and
# assigned tasks surface through the family endpoints.
