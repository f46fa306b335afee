"""
tasktracker_api.services.board_service

Kanban boards, their columns and task placement.

Responsibilities:
- Board CRUD (new boards get the default three columns unless asked not to).
- Column CRUD, ordering, duplication, visibility and WIP-limit reporting.
- Move tasks between columns, keeping task status in step with the column.
"""

from __future__ import annotations

import uuid
from collections import Counter
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.clock import utcnow
from tasktracker_api.db.models import Board, BoardColumn, TaskItem, TaskStatus
from tasktracker_api.db.repositories.boards import BoardColumnRepo, BoardRepo
from tasktracker_api.db.repositories.tasks import TaskRepo
from tasktracker_api.errors import ConflictError, NotFoundError, ValidationError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import (
    BoardColumnWithTasks,
    BoardCreate,
    BoardDetail,
    BoardRead,
    BoardUpdate,
    ColumnCreate,
    ColumnRead,
    ColumnStatistics,
    ColumnUpdate,
    MoveTaskRequest,
    TaskRead,
    WipStatus,
)
from tasktracker_api.services.task_service import TaskService
from tasktracker_api.settings import Settings

log = get_logger(__name__)

# name, mapped status, color, icon, done column
DEFAULT_COLUMNS: tuple[tuple[str, TaskStatus, str, str, bool], ...] = (
    ("To Do", TaskStatus.not_started, "#EF4444", "folder", False),
    ("In Progress", TaskStatus.in_progress, "#F59E0B", "clock", False),
    ("Completed", TaskStatus.completed, "#10B981", "check-circle", True),
)


def wip_state(count: int, limit: int | None) -> str:
    if limit is None:
        return "none"
    if count < limit:
        return "under"
    if count == limit:
        return "at"
    return "over"


def _wip_message(state: str, count: int, limit: int | None) -> str:
    if state == "none":
        return "No WIP limit set"
    if state == "under":
        return f"Column is under WIP limit ({count}/{limit})"
    if state == "at":
        return f"Column is at WIP limit ({count}/{limit})"
    return f"Column exceeds WIP limit ({count}/{limit})"


COLUMN_NAME_MAX = 50


def copy_name(name: str, taken: set[str]) -> str:
    # `taken` holds lower-cased names; the base is cut so the suffix always fits.
    n = 1
    while True:
        suffix = " (Copy)" if n == 1 else f" (Copy {n})"
        candidate = name[: COLUMN_NAME_MAX - len(suffix)].rstrip() + suffix
        if candidate.lower() not in taken:
            return candidate
        n += 1


class BoardService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._boards = BoardRepo(session)
        self._columns = BoardColumnRepo(session)
        self._tasks = TaskRepo(session)
        self._task_service = TaskService(session=session, settings=settings)

    # --- helpers ----------------------------------------------------------

    async def _board(self, user_id: uuid.UUID, board_id: uuid.UUID) -> Board:
        board = await self._boards.get_owned(board_id, user_id)
        if board is None:
            raise NotFoundError(f"Board with ID {board_id} not found")
        return board

    async def _column(
        self, user_id: uuid.UUID, board_id: uuid.UUID, column_id: uuid.UUID
    ) -> BoardColumn:
        await self._board(user_id, board_id)
        column = await self._columns.get_for_board(column_id, board_id)
        if column is None:
            raise NotFoundError(f"Column with ID {column_id} not found on this board")
        return column

    async def _column_read(self, column: BoardColumn) -> ColumnRead:
        count = await self._tasks.count_in_column(column.id)
        return ColumnRead.model_validate(column).model_copy(update={"task_count": count})

    async def _board_read(self, board: Board) -> BoardRead:
        columns = await self._columns.list_for_board(board.id)
        return BoardRead(
            id=board.id,
            name=board.name,
            description=board.description,
            created_at=board.created_at,
            updated_at=board.updated_at,
            columns=[await self._column_read(c) for c in columns],
        )

    async def _add_default_columns(self, board: Board) -> list[BoardColumn]:
        added = []
        for order, (name, status, color, icon, done) in enumerate(DEFAULT_COLUMNS):
            added.append(
                await self._columns.add(
                    BoardColumn(
                        board_id=board.id,
                        board=board,
                        name=name,
                        order=order,
                        color=color,
                        icon=icon,
                        mapped_status=status,
                        is_done_column=done,
                    )
                )
            )
        return added

    async def _renumber(self, columns: Sequence[BoardColumn]) -> None:
        for order, column in enumerate(columns):
            column.order = order
        await self._session.flush()

    # --- boards -----------------------------------------------------------

    async def list_boards(self, user_id: uuid.UUID) -> list[BoardRead]:
        return [await self._board_read(b) for b in await self._boards.list_for_user(user_id)]

    async def get(self, user_id: uuid.UUID, board_id: uuid.UUID) -> BoardDetail:
        board = await self._board(user_id, board_id)
        columns = await self._columns.list_for_board(board.id)
        tasks = await self._tasks.list_for_board(board.id)
        by_column: dict[uuid.UUID | None, list[TaskItem]] = {}
        for task in tasks:
            by_column.setdefault(task.board_column_id, []).append(task)

        grouped = []
        for column in columns:
            in_column = by_column.pop(column.id, [])
            grouped.append(
                BoardColumnWithTasks.model_validate(column).model_copy(
                    update={
                        "task_count": len(in_column),
                        "tasks": [TaskRead.model_validate(t) for t in in_column],
                    }
                )
            )
        unassigned = [t for rest in by_column.values() for t in rest]
        return BoardDetail(
            id=board.id,
            name=board.name,
            description=board.description,
            created_at=board.created_at,
            updated_at=board.updated_at,
            columns=grouped,
            unassigned_tasks=[TaskRead.model_validate(t) for t in unassigned],
        )

    async def create(self, user_id: uuid.UUID, body: BoardCreate) -> BoardRead:
        board = await self._boards.create(
            user_id=user_id, name=body.name.strip(), description=body.description
        )
        if body.create_default_columns:
            await self._add_default_columns(board)
        await self._session.commit()
        log.info("board_created", board_id=str(board.id), user_id=str(user_id))
        return await self._board_read(board)

    async def update(self, user_id: uuid.UUID, board_id: uuid.UUID, body: BoardUpdate) -> BoardRead:
        board = await self._board(user_id, board_id)
        board.name = body.name.strip()
        board.description = body.description
        board.updated_at = utcnow()
        await self._session.commit()
        return await self._board_read(board)

    async def delete(self, user_id: uuid.UUID, board_id: uuid.UUID) -> None:
        board = await self._board(user_id, board_id)
        await self._boards.delete(board)
        await self._session.commit()
        log.info("board_deleted", board_id=str(board_id))

    # --- columns ----------------------------------------------------------

    async def list_columns(
        self, user_id: uuid.UUID, board_id: uuid.UUID, *, include_hidden: bool = True
    ) -> list[ColumnRead]:
        await self._board(user_id, board_id)
        columns = await self._columns.list_for_board(board_id, include_hidden=include_hidden)
        return [await self._column_read(c) for c in columns]

    async def get_column(
        self, user_id: uuid.UUID, board_id: uuid.UUID, column_id: uuid.UUID
    ) -> ColumnRead:
        return await self._column_read(await self._column(user_id, board_id, column_id))

    async def create_column(
        self, user_id: uuid.UUID, board_id: uuid.UUID, body: ColumnCreate
    ) -> ColumnRead:
        board = await self._board(user_id, board_id)
        existing = await self._columns.list_for_board(board_id)
        name = body.name.strip()
        if any(c.name.lower() == name.lower() for c in existing):
            raise ConflictError(f"A column named '{name}' already exists on this board")

        position = len(existing) if body.order is None else min(body.order, len(existing))
        column = await self._columns.add(
            BoardColumn(
                board_id=board_id,
                board=board,
                name=name,
                order=position,
                color=body.color,
                icon=body.icon,
                task_limit=body.task_limit,
                mapped_status=body.mapped_status,
                is_done_column=body.is_done_column,
            )
        )
        ordered = list(existing)
        ordered.insert(position, column)
        await self._renumber(ordered)
        await self._session.commit()
        log.info("board_column_created", board_id=str(board_id), column_id=str(column.id))
        return await self._column_read(column)

    async def update_column(
        self, user_id: uuid.UUID, board_id: uuid.UUID, column_id: uuid.UUID, body: ColumnUpdate
    ) -> ColumnRead:
        column = await self._column(user_id, board_id, column_id)
        if body.name is not None:
            name = body.name.strip()
            siblings = await self._columns.list_for_board(board_id)
            if any(c.id != column.id and c.name.lower() == name.lower() for c in siblings):
                raise ConflictError(f"A column named '{name}' already exists on this board")
            column.name = name
        if body.color is not None:
            column.color = body.color
        if body.icon is not None:
            column.icon = body.icon
        if body.clear_task_limit:
            column.task_limit = None
        elif body.task_limit is not None:
            column.task_limit = body.task_limit
        if body.mapped_status is not None:
            column.mapped_status = body.mapped_status
        if body.is_done_column is not None:
            column.is_done_column = body.is_done_column
        column.updated_at = utcnow()
        await self._session.commit()
        return await self._column_read(column)

    async def delete_column(
        self, user_id: uuid.UUID, board_id: uuid.UUID, column_id: uuid.UUID
    ) -> None:
        column = await self._column(user_id, board_id, column_id)
        count = await self._tasks.count_in_column(column.id)
        if count > 0:
            raise ValidationError(
                f"Cannot delete column because it contains {count} tasks. "
                "Move or delete tasks first."
            )
        await self._columns.delete(column)
        await self._renumber(await self._columns.list_for_board(board_id))
        await self._session.commit()
        log.info("board_column_deleted", board_id=str(board_id), column_id=str(column_id))

    async def reorder_columns(
        self, user_id: uuid.UUID, board_id: uuid.UUID, column_ids: Sequence[uuid.UUID]
    ) -> list[ColumnRead]:
        await self._board(user_id, board_id)
        if len(set(column_ids)) != len(column_ids):
            raise ValidationError("Column ids must not repeat")
        columns = await self._columns.list_for_board(board_id)
        by_id = {c.id: c for c in columns}
        foreign = [str(i) for i in column_ids if i not in by_id]
        if foreign:
            raise ValidationError(f"Columns do not belong to this board: {', '.join(foreign)}")

        listed = [by_id[i] for i in column_ids]
        rest = [c for c in columns if c.id not in set(column_ids)]
        ordered = listed + rest
        await self._renumber(ordered)
        await self._session.commit()
        return [await self._column_read(c) for c in ordered]

    async def duplicate_column(
        self, user_id: uuid.UUID, board_id: uuid.UUID, column_id: uuid.UUID
    ) -> ColumnRead:
        board = await self._board(user_id, board_id)
        source = await self._columns.get_for_board(column_id, board_id)
        if source is None:
            raise NotFoundError(f"Column with ID {column_id} not found on this board")
        siblings = await self._columns.list_for_board(board_id)
        copy = await self._columns.add(
            BoardColumn(
                board_id=board_id,
                board=board,
                name=copy_name(source.name, {c.name.lower() for c in siblings}),
                order=await self._columns.next_order(board_id),
                color=source.color,
                icon=source.icon,
                task_limit=source.task_limit,
                is_hidden=source.is_hidden,
                mapped_status=source.mapped_status,
                is_done_column=source.is_done_column,
            )
        )
        await self._session.commit()
        return await self._column_read(copy)

    async def toggle_visibility(
        self, user_id: uuid.UUID, board_id: uuid.UUID, column_id: uuid.UUID
    ) -> ColumnRead:
        column = await self._column(user_id, board_id, column_id)
        column.is_hidden = not column.is_hidden
        column.updated_at = utcnow()
        await self._session.commit()
        return await self._column_read(column)

    async def wip_status(
        self, user_id: uuid.UUID, board_id: uuid.UUID, column_id: uuid.UUID
    ) -> WipStatus:
        column = await self._column(user_id, board_id, column_id)
        count = await self._tasks.count_in_column(column.id)
        state = wip_state(count, column.task_limit)
        return WipStatus(
            column_id=column.id,
            task_count=count,
            task_limit=column.task_limit,
            status=state,
            message=_wip_message(state, count, column.task_limit),
        )

    async def column_statistics(
        self, user_id: uuid.UUID, board_id: uuid.UUID, column_id: uuid.UUID
    ) -> ColumnStatistics:
        column = await self._column(user_id, board_id, column_id)
        tasks = await self._tasks.list_for_column(column.id)
        now = utcnow()
        oldest = min((t.created_at for t in tasks), default=None)
        return ColumnStatistics(
            column_id=column.id,
            task_count=len(tasks),
            by_priority=dict(Counter(t.priority.value for t in tasks)),
            overdue=sum(
                1
                for t in tasks
                if t.due_date is not None and t.due_date < now and t.status != TaskStatus.completed
            ),
            oldest_task_age_days=(
                round((now - oldest).total_seconds() / 86400, 2) if oldest else None
            ),
            wip_status=wip_state(len(tasks), column.task_limit),
        )

    async def create_default_columns(self, user_id: uuid.UUID, board_id: uuid.UUID) -> list[ColumnRead]:
        board = await self._board(user_id, board_id)
        if await self._columns.count_for_board(board_id) > 0:
            raise ValidationError("Board already has columns")
        columns = await self._add_default_columns(board)
        await self._session.commit()
        return [await self._column_read(c) for c in columns]

    # --- task placement ---------------------------------------------------

    async def move_task(
        self, user_id: uuid.UUID, board_id: uuid.UUID, task_id: uuid.UUID, body: MoveTaskRequest
    ) -> TaskItem:
        await self._board(user_id, board_id)
        task = await self._task_service.get_owned(user_id, task_id)
        column = await self._columns.get_for_board(body.column_id, board_id)
        if column is None:
            raise ValidationError("The target column does not belong to this board")

        siblings = [t for t in await self._tasks.list_for_column(column.id) if t.id != task.id]
        entering = task.board_column_id != column.id
        if entering and column.task_limit is not None and len(siblings) >= column.task_limit:
            raise ValidationError(
                f"Column is at WIP limit ({len(siblings)}/{column.task_limit})"
            )

        position = len(siblings) if body.position is None else min(body.position, len(siblings))
        siblings.insert(position, task)
        for order, t in enumerate(siblings):
            t.board_order = order
        task.board_id = board_id
        task.board_column_id = column.id

        target = TaskStatus.completed if column.is_done_column else column.mapped_status
        if task.status != target:
            await self._task_service.apply_status(user_id, task, target)
        task.updated_at = utcnow()
        await self._session.commit()
        log.info(
            "task_moved",
            task_id=str(task.id),
            board_id=str(board_id),
            column_id=str(column.id),
        )
        return task
