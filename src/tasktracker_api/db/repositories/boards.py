"""
tasktracker_api.db.repositories.boards

Repositories for `Board` and `BoardColumn` entities.
"""

from __future__ import annotations

import uuid

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import Board, BoardColumn
from tasktracker_api.db.repositories._text import LIKE_ESCAPE, contains_pattern


class BoardRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, user_id: uuid.UUID, name: str, description: str | None) -> Board:
        board = Board(user_id=user_id, name=name, description=description, columns=[])
        self._session.add(board)
        await self._session.flush()
        return board

    async def get_owned(self, board_id: uuid.UUID, user_id: uuid.UUID) -> Board | None:
        stmt = select(Board).where(Board.id == board_id, Board.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_user(self, user_id: uuid.UUID) -> list[Board]:
        stmt = select(Board).where(Board.user_id == user_id).order_by(desc(Board.created_at))
        return list((await self._session.execute(stmt)).scalars())

    async def search(self, user_id: uuid.UUID, term: str) -> list[Board]:
        pattern = contains_pattern(term)
        stmt = (
            select(Board)
            .where(
                Board.user_id == user_id,
                Board.name.ilike(pattern, escape=LIKE_ESCAPE)
                | Board.description.ilike(pattern, escape=LIKE_ESCAPE),
            )
            .order_by(Board.name)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def delete(self, board: Board) -> None:
        await self._session.delete(board)
        await self._session.flush()


class BoardColumnRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, column: BoardColumn) -> BoardColumn:
        self._session.add(column)
        await self._session.flush()
        return column

    async def get_for_board(self, column_id: uuid.UUID, board_id: uuid.UUID) -> BoardColumn | None:
        stmt = select(BoardColumn).where(
            BoardColumn.id == column_id, BoardColumn.board_id == board_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_board(
        self, board_id: uuid.UUID, *, include_hidden: bool = True
    ) -> list[BoardColumn]:
        stmt = select(BoardColumn).where(BoardColumn.board_id == board_id)
        if not include_hidden:
            stmt = stmt.where(BoardColumn.is_hidden.is_(False))
        stmt = stmt.order_by(BoardColumn.order, BoardColumn.created_at)
        return list((await self._session.execute(stmt)).scalars())

    async def count_for_board(self, board_id: uuid.UUID) -> int:
        stmt = select(func.count(BoardColumn.id)).where(BoardColumn.board_id == board_id)
        return (await self._session.execute(stmt)).scalar_one()

    async def next_order(self, board_id: uuid.UUID) -> int:
        stmt = select(func.max(BoardColumn.order)).where(BoardColumn.board_id == board_id)
        current = (await self._session.execute(stmt)).scalar_one()
        return 0 if current is None else current + 1

    async def delete(self, column: BoardColumn) -> None:
        await self._session.delete(column)
        await self._session.flush()
