"""
tasktracker_api.services.gamification_service

Points, levels, streaks and achievements.

Responsibilities:
- Maintain per-user progress (lazily created) and the point ledger.
- Level users up as points accumulate; track daily activity streaks.
- Evaluate the achievement catalog against per-user counters and unlock
  achievements (awarding their points and notifying the user).
- Daily login rewards, leaderboards and summary statistics.

Methods prefixed `award_`/`on_`/`record_` are called from other services inside
their transaction and only flush; the remaining public methods commit.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.clock import start_of_day, today, utcnow
from tasktracker_api.db.models import (
    Achievement,
    NotificationType,
    PointTransaction,
    TaskItem,
    TaskPriority,
    TaskStatus,
    UserAchievement,
    UserProgress,
)
from tasktracker_api.db.repositories.categories import CategoryRepo
from tasktracker_api.db.repositories.gamification import GamificationRepo
from tasktracker_api.db.repositories.tasks import TaskRepo
from tasktracker_api.errors import ValidationError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import (
    CategoryProgress,
    DailyLoginResult,
    DailyLoginStatus,
    GamificationStats,
    LeaderboardEntry,
    ProgressRead,
)
from tasktracker_api.services.notification_service import NotificationService

log = get_logger(__name__)

BASE_TASK_POINTS = 10
PRIORITY_MULTIPLIERS: dict[TaskPriority, float] = {
    TaskPriority.low: 0.5,
    TaskPriority.medium: 1.0,
    TaskPriority.high: 1.5,
    TaskPriority.critical: 2.0,
}
DAILY_LOGIN_BASE = 10
DAILY_LOGIN_STREAK_BONUS = 2
DAILY_LOGIN_STREAK_CAP = 30
LEADERBOARD_CATEGORIES = ("points", "streak", "tasks")


def level_threshold(level: int) -> int:
    return int(100 * level**1.5)


def task_completion_points(priority: TaskPriority) -> int:
    return round(BASE_TASK_POINTS * PRIORITY_MULTIPLIERS[priority])


def daily_login_points(streak: int) -> int:
    return DAILY_LOGIN_BASE + DAILY_LOGIN_STREAK_BONUS * min(streak, DAILY_LOGIN_STREAK_CAP)


class GamificationService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._repo = GamificationRepo(session)
        self._tasks = TaskRepo(session)
        self._categories = CategoryRepo(session)
        self._notifications = NotificationService(session=session)

    # --- progress ---------------------------------------------------------

    async def get_progress(self, user_id: uuid.UUID) -> UserProgress:
        progress = await self._repo.get_progress(user_id)
        if progress is None:
            progress = await self._repo.get_or_create_progress(user_id)
            await self._session.commit()
        return progress

    async def award_points(
        self,
        user_id: uuid.UUID,
        points: int,
        *,
        transaction_type: str,
        description: str,
        task_id: uuid.UUID | None = None,
    ) -> PointTransaction:
        if points < 0:
            raise ValidationError("Points cannot be negative")

        progress = await self._repo.get_or_create_progress(user_id)
        tx = await self._repo.add_transaction(
            user_id=user_id,
            points=points,
            transaction_type=transaction_type,
            description=description,
            task_id=task_id,
        )
        progress.current_points += points
        progress.total_points_earned += points
        progress.updated_at = utcnow()

        leveled_up = False
        while progress.current_points >= progress.next_level_threshold:
            progress.current_points -= progress.next_level_threshold
            progress.level += 1
            progress.next_level_threshold = level_threshold(progress.level)
            leveled_up = True
        if leveled_up:
            log.info("level_up", user_id=str(user_id), level=progress.level)
            await self.evaluate_achievements(user_id)
        return tx

    async def add_points(
        self,
        user_id: uuid.UUID,
        points: int,
        *,
        transaction_type: str,
        description: str,
        task_id: uuid.UUID | None = None,
    ) -> PointTransaction:
        tx = await self.award_points(
            user_id,
            points,
            transaction_type=transaction_type,
            description=description,
            task_id=task_id,
        )
        await self._session.commit()
        return tx

    async def record_activity(self, user_id: uuid.UUID) -> UserProgress:
        progress = await self._repo.get_or_create_progress(user_id)
        current_day = today()
        last = progress.last_activity_date.date() if progress.last_activity_date else None

        if last == current_day:
            return progress
        if last is not None and last == current_day - timedelta(days=1):
            progress.current_streak += 1
        else:
            progress.current_streak = 1
        progress.longest_streak = max(progress.longest_streak, progress.current_streak)
        progress.last_activity_date = start_of_day(current_day)
        progress.updated_at = utcnow()
        return progress

    # --- hooks used by other services -------------------------------------

    async def on_task_completed(self, user_id: uuid.UUID, task: TaskItem) -> int:
        points = task_completion_points(task.priority)
        await self.award_points(
            user_id,
            points,
            transaction_type="task_completion",
            description=f"Completed task: {task.title}",
            task_id=task.id,
        )
        await self.record_activity(user_id)
        await self.evaluate_achievements(user_id)
        return points

    async def on_task_created(self, user_id: uuid.UUID) -> None:
        await self.evaluate_achievements(user_id)

    async def on_category_created(self, user_id: uuid.UUID) -> None:
        await self.evaluate_achievements(user_id)

    # --- achievements -----------------------------------------------------

    async def _counters(self, user_id: uuid.UUID) -> dict[str, int]:
        progress = await self._repo.get_or_create_progress(user_id)
        return {
            "tasks_completed": await self._tasks.count(user_id, status=TaskStatus.completed),
            "tasks_created": await self._tasks.count(user_id),
            "categories_created": await self._categories.count(user_id),
            "streak": progress.current_streak,
            "level": progress.level,
        }

    async def evaluate_achievements(self, user_id: uuid.UUID) -> list[UserAchievement]:
        unlocked_ids = {ua.achievement_id for ua in await self._repo.list_unlocked(user_id)}
        unlocked: list[UserAchievement] = []
        # Flush so counters see rows added earlier in this transaction.
        await self._session.flush()
        counters = await self._counters(user_id)
        for achievement in await self._repo.list_achievements():
            if achievement.id in unlocked_ids:
                continue
            if counters.get(achievement.criterion, 0) >= achievement.target_value:
                unlocked.append(await self._unlock(user_id, achievement))
                # Unlock points may level the user up and unlock more in a nested pass.
                unlocked_ids = {ua.achievement_id for ua in await self._repo.list_unlocked(user_id)}
        return unlocked

    async def _unlock(self, user_id: uuid.UUID, achievement: Achievement) -> UserAchievement:
        ua = await self._repo.unlock(user_id=user_id, achievement=achievement)
        log.info("achievement_unlocked", user_id=str(user_id), achievement=achievement.key)
        await self._notifications.notify(
            user_id=user_id,
            title="Achievement unlocked",
            message=f"You unlocked '{achievement.name}': {achievement.description}",
            notification_type=NotificationType.achievement,
            related_entity_type="Achievement",
            related_entity_id=str(achievement.id),
        )
        if achievement.point_value > 0:
            await self.award_points(
                user_id,
                achievement.point_value,
                transaction_type="achievement",
                description=f"Unlocked achievement: {achievement.name}",
            )
        return ua

    async def list_achievements(self) -> list[Achievement]:
        return await self._repo.list_achievements()

    async def list_unlocked(self, user_id: uuid.UUID) -> list[UserAchievement]:
        return await self._repo.list_unlocked(user_id)

    async def list_available(self, user_id: uuid.UUID) -> list[Achievement]:
        unlocked_ids = {ua.achievement_id for ua in await self._repo.list_unlocked(user_id)}
        return [a for a in await self._repo.list_achievements() if a.id not in unlocked_ids]

    async def list_transactions(
        self, user_id: uuid.UUID, limit: int = 50
    ) -> list[PointTransaction]:
        return await self._repo.list_transactions(user_id, limit)

    # --- daily login ------------------------------------------------------

    async def _claimed_today(self, user_id: uuid.UUID) -> bool:
        last = await self._repo.last_transaction_of_type(user_id, "daily_login")
        return last is not None and last.created_at.date() == today()

    async def claim_daily_login(self, user_id: uuid.UUID) -> DailyLoginResult:
        if await self._claimed_today(user_id):
            raise ValidationError("Daily login reward already claimed today")
        progress = await self.record_activity(user_id)
        points = daily_login_points(progress.current_streak)
        await self.award_points(
            user_id,
            points,
            transaction_type="daily_login",
            description=f"Daily login (streak {progress.current_streak})",
        )
        await self.evaluate_achievements(user_id)
        await self._session.commit()
        log.info("daily_login_claimed", user_id=str(user_id), points=points)
        return DailyLoginResult(
            points_awarded=points,
            current_streak=progress.current_streak,
            progress=ProgressRead.model_validate(progress),
        )

    async def daily_login_status(self, user_id: uuid.UUID) -> DailyLoginStatus:
        progress = await self.get_progress(user_id)
        claimed = await self._claimed_today(user_id)
        streak = progress.current_streak
        last = progress.last_activity_date.date() if progress.last_activity_date else None
        # Streak the next claim would be rewarded at (tomorrow's if already claimed).
        if claimed or last == today() - timedelta(days=1):
            next_streak = streak + 1
        elif last == today():
            next_streak = streak
        else:
            next_streak = 1
        return DailyLoginStatus(
            claimed_today=claimed,
            current_streak=streak,
            next_reward=daily_login_points(next_streak),
        )

    # --- leaderboards / stats --------------------------------------------

    async def leaderboard(self, category: str, limit: int = 10) -> list[LeaderboardEntry]:
        if category == "points":
            rows = await self._repo.leaderboard_by_points(limit)
        elif category == "streak":
            rows = await self._repo.leaderboard_by_streak(limit)
        elif category == "tasks":
            rows = await self._repo.leaderboard_by_tasks(limit)
        else:
            raise ValidationError(
                f"Unknown leaderboard category '{category}'. "
                f"Expected one of: {', '.join(LEADERBOARD_CATEGORIES)}"
            )
        return [
            LeaderboardEntry(rank=i, user_id=user.id, username=user.username, value=value)
            for i, (user, value) in enumerate(rows, start=1)
        ]

    async def stats(self, user_id: uuid.UUID) -> GamificationStats:
        progress = await self.get_progress(user_id)
        achievements = await self._repo.list_achievements()
        unlocked_ids = {ua.achievement_id for ua in await self._repo.list_unlocked(user_id)}
        active_days = await self._repo.active_days_since(
            user_id, start_of_day(today() - timedelta(days=29))
        )

        per_category: dict[str, CategoryProgress] = {}
        for a in achievements:
            entry = per_category.setdefault(
                a.category, CategoryProgress(category=a.category, unlocked=0, total=0)
            )
            entry.total += 1
            if a.id in unlocked_ids:
                entry.unlocked += 1

        return GamificationStats(
            progress=ProgressRead.model_validate(progress),
            tasks_completed=await self._tasks.count(user_id, status=TaskStatus.completed),
            achievements_unlocked=len(unlocked_ids),
            achievements_total=len(achievements),
            consistency_score=round(min(active_days, 30) / 30 * 100, 2),
            category_stats=sorted(per_category.values(), key=lambda c: c.category),
        )

    @staticmethod
    def multipliers() -> dict[str, float]:
        return {p.value: m for p, m in PRIORITY_MULTIPLIERS.items()}


# --- Module Notes -----------------------------------------------------------
# Level thresholds follow int(100 * level ** 1.5): 100 for level 1, 282 for
# level 2, 519 for level 3. Points left over after a level-up carry forward.
