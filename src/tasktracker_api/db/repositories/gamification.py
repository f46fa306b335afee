"""
tasktracker_api.db.repositories.gamification

Repository for progress, point ledger and achievements.

Responsibilities:
- Lazily create per-user progress rows.
- Append point transactions and query the ledger.
- Catalog / unlocked achievement lookups and leaderboard queries.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import (
    Achievement,
    PointTransaction,
    TaskItem,
    TaskStatus,
    User,
    UserAchievement,
    UserProgress,
)
from tasktracker_api.db.repositories._text import LIKE_ESCAPE, contains_pattern


class GamificationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- progress -----------------------------------------------------------

    async def get_progress(self, user_id: uuid.UUID) -> UserProgress | None:
        stmt = select(UserProgress).where(UserProgress.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_or_create_progress(self, user_id: uuid.UUID) -> UserProgress:
        progress = await self.get_progress(user_id)
        if progress is not None:
            return progress
        progress = UserProgress(
            user_id=user_id,
            level=1,
            current_points=0,
            total_points_earned=0,
            next_level_threshold=100,
            current_streak=0,
            longest_streak=0,
        )
        self._session.add(progress)
        await self._session.flush()
        return progress

    async def list_progress_for_users(
        self, user_ids: Sequence[uuid.UUID]
    ) -> dict[uuid.UUID, UserProgress]:
        if not user_ids:
            return {}
        stmt = select(UserProgress).where(UserProgress.user_id.in_(list(user_ids)))
        return {p.user_id: p for p in (await self._session.execute(stmt)).scalars()}

    # --- ledger -------------------------------------------------------------

    async def add_transaction(
        self,
        *,
        user_id: uuid.UUID,
        points: int,
        transaction_type: str,
        description: str,
        task_id: uuid.UUID | None = None,
    ) -> PointTransaction:
        tx = PointTransaction(
            user_id=user_id,
            points=points,
            transaction_type=transaction_type,
            description=description,
            task_id=task_id,
        )
        self._session.add(tx)
        await self._session.flush()
        return tx

    async def list_transactions(self, user_id: uuid.UUID, limit: int) -> list[PointTransaction]:
        stmt = (
            select(PointTransaction)
            .where(PointTransaction.user_id == user_id)
            .order_by(desc(PointTransaction.created_at), desc(PointTransaction.id))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def last_transaction_of_type(
        self, user_id: uuid.UUID, transaction_type: str
    ) -> PointTransaction | None:
        stmt = (
            select(PointTransaction)
            .where(
                PointTransaction.user_id == user_id,
                PointTransaction.transaction_type == transaction_type,
            )
            .order_by(desc(PointTransaction.created_at))
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def active_days_since(self, user_id: uuid.UUID, since: datetime) -> int:
        stmt = select(func.count(func.distinct(func.date(PointTransaction.created_at)))).where(
            PointTransaction.user_id == user_id, PointTransaction.created_at >= since
        )
        return (await self._session.execute(stmt)).scalar_one()

    # --- achievements -------------------------------------------------------

    async def list_achievements(self) -> list[Achievement]:
        stmt = select(Achievement).order_by(Achievement.category, Achievement.target_value)
        return list((await self._session.execute(stmt)).scalars())

    async def search_achievements(self, term: str) -> list[Achievement]:
        pattern = contains_pattern(term)
        stmt = (
            select(Achievement)
            .where(
                Achievement.name.ilike(pattern, escape=LIKE_ESCAPE)
                | Achievement.description.ilike(pattern, escape=LIKE_ESCAPE)
            )
            .order_by(Achievement.name)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def list_unlocked(self, user_id: uuid.UUID) -> list[UserAchievement]:
        stmt = (
            select(UserAchievement)
            .where(UserAchievement.user_id == user_id)
            .order_by(desc(UserAchievement.unlocked_at))
        )
        return list((await self._session.execute(stmt)).scalars())

    async def unlock(self, *, user_id: uuid.UUID, achievement: Achievement) -> UserAchievement:
        ua = UserAchievement(user_id=user_id, achievement_id=achievement.id, achievement=achievement)
        self._session.add(ua)
        await self._session.flush()
        return ua

    # --- leaderboards -------------------------------------------------------

    async def leaderboard_by_points(self, limit: int) -> list[tuple[User, int]]:
        stmt = (
            select(User, UserProgress.total_points_earned)
            .join(UserProgress, UserProgress.user_id == User.id)
            .where(User.is_active.is_(True))
            .order_by(desc(UserProgress.total_points_earned), User.username)
            .limit(limit)
        )
        return [(u, v) for u, v in (await self._session.execute(stmt)).all()]

    async def leaderboard_by_streak(self, limit: int) -> list[tuple[User, int]]:
        stmt = (
            select(User, UserProgress.current_streak)
            .join(UserProgress, UserProgress.user_id == User.id)
            .where(User.is_active.is_(True))
            .order_by(desc(UserProgress.current_streak), User.username)
            .limit(limit)
        )
        return [(u, v) for u, v in (await self._session.execute(stmt)).all()]

    async def leaderboard_by_tasks(self, limit: int) -> list[tuple[User, int]]:
        completed = func.count(TaskItem.id)
        stmt = (
            select(User, completed)
            .join(TaskItem, TaskItem.user_id == User.id)
            .where(User.is_active.is_(True), TaskItem.status == TaskStatus.completed)
            .group_by(User.id)
            .order_by(desc(completed), User.username)
            .limit(limit)
        )
        return [(u, v) for u, v in (await self._session.execute(stmt)).all()]
