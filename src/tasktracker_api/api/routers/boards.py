"""
tasktracker_api.api.routers.boards

Kanban boards, board columns and task moves.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session, settings_dep
from tasktracker_api.api.envelope import ApiResponse, created, ok
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.schemas import (
    BoardCreate,
    BoardDetail,
    BoardRead,
    BoardUpdate,
    ColumnCreate,
    ColumnRead,
    ColumnReorder,
    ColumnStatistics,
    ColumnUpdate,
    MoveTaskRequest,
    TaskRead,
    WipStatus,
)
from tasktracker_api.services.board_service import BoardService
from tasktracker_api.settings import Settings

router = APIRouter(prefix="/boards", tags=["boards"], dependencies=[Depends(require_roles())])


def _svc(
    session: AsyncSession = Depends(db_session), settings: Settings = Depends(settings_dep)
) -> BoardService:
    return BoardService(session=session, settings=settings)


# --- boards -------------------------------------------------------------------


@router.get("", response_model=ApiResponse[list[BoardRead]])
async def list_boards(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.list_boards(user_id))


@router.get("/{board_id}", response_model=ApiResponse[BoardDetail])
async def get_board(
    board_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.get(user_id, board_id))


@router.post("", status_code=201, response_model=ApiResponse[BoardRead])
async def create_board(
    body: BoardCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return created(await svc.create(user_id, body), "Board created")


@router.put("/{board_id}", response_model=ApiResponse[BoardRead])
async def update_board(
    board_id: uuid.UUID,
    body: BoardUpdate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.update(user_id, board_id, body), "Board updated")


@router.delete("/{board_id}", response_model=ApiResponse[None])
async def delete_board(
    board_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    await svc.delete(user_id, board_id)
    return ok(None, "Board deleted")


@router.put("/{board_id}/tasks/{task_id}/move", response_model=ApiResponse[TaskRead])
async def move_task(
    board_id: uuid.UUID,
    task_id: uuid.UUID,
    body: MoveTaskRequest,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    task = await svc.move_task(user_id, board_id, task_id, body)
    return ok(TaskRead.model_validate(task), "Task moved")


# --- columns ------------------------------------------------------------------


@router.get("/{board_id}/columns", response_model=ApiResponse[list[ColumnRead]])
async def list_columns(
    board_id: uuid.UUID,
    include_hidden: bool = True,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.list_columns(user_id, board_id, include_hidden=include_hidden))


@router.post("/{board_id}/columns", status_code=201, response_model=ApiResponse[ColumnRead])
async def create_column(
    board_id: uuid.UUID,
    body: ColumnCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return created(await svc.create_column(user_id, board_id, body), "Column created")


@router.put("/{board_id}/columns/reorder", response_model=ApiResponse[list[ColumnRead]])
async def reorder_columns(
    board_id: uuid.UUID,
    body: ColumnReorder,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.reorder_columns(user_id, board_id, body.column_ids), "Columns reordered")


@router.post(
    "/{board_id}/columns/default", status_code=201, response_model=ApiResponse[list[ColumnRead]]
)
async def create_default_columns(
    board_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return created(await svc.create_default_columns(user_id, board_id), "Default columns created")


@router.get("/{board_id}/columns/{column_id}", response_model=ApiResponse[ColumnRead])
async def get_column(
    board_id: uuid.UUID,
    column_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.get_column(user_id, board_id, column_id))


@router.put("/{board_id}/columns/{column_id}", response_model=ApiResponse[ColumnRead])
async def update_column(
    board_id: uuid.UUID,
    column_id: uuid.UUID,
    body: ColumnUpdate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.update_column(user_id, board_id, column_id, body), "Column updated")


@router.delete("/{board_id}/columns/{column_id}", response_model=ApiResponse[None])
async def delete_column(
    board_id: uuid.UUID,
    column_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    await svc.delete_column(user_id, board_id, column_id)
    return ok(None, "Column deleted")


@router.post(
    "/{board_id}/columns/{column_id}/duplicate",
    status_code=201,
    response_model=ApiResponse[ColumnRead],
)
async def duplicate_column(
    board_id: uuid.UUID,
    column_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return created(await svc.duplicate_column(user_id, board_id, column_id), "Column duplicated")


@router.patch(
    "/{board_id}/columns/{column_id}/toggle-visibility", response_model=ApiResponse[ColumnRead]
)
async def toggle_column_visibility(
    board_id: uuid.UUID,
    column_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.toggle_visibility(user_id, board_id, column_id))


@router.get("/{board_id}/columns/{column_id}/wip-status", response_model=ApiResponse[WipStatus])
async def column_wip_status(
    board_id: uuid.UUID,
    column_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.wip_status(user_id, board_id, column_id))


@router.get(
    "/{board_id}/columns/{column_id}/statistics", response_model=ApiResponse[ColumnStatistics]
)
async def column_statistics(
    board_id: uuid.UUID,
    column_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: BoardService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.column_statistics(user_id, board_id, column_id))
