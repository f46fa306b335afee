"""
tasktracker_api.services.statistics_service

Read-only productivity statistics, analytics and the dashboard summary.

Responsibilities:
- Completion rate, status/priority/category distributions, completion time.
- Day-by-day created vs completed analytics over a bounded date range.
- Dashboard aggregation across tasks, notifications, gamification and reminders.
"""

from __future__ import annotations

import uuid
from collections import Counter
from datetime import date, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.clock import end_of_day, start_of_day, today, utcnow
from tasktracker_api.db.models import TaskPriority, TaskStatus
from tasktracker_api.db.repositories.notifications import NotificationRepo
from tasktracker_api.db.repositories.reminders import ReminderRepo
from tasktracker_api.db.repositories.tasks import TaskRepo
from tasktracker_api.errors import ValidationError
from tasktracker_api.schemas import (
    CategoryActivity,
    Dashboard,
    DashboardTaskCounts,
    DailyCount,
    OverdueSummary,
    ProductivityAnalytics,
    ProductivitySummary,
    ProgressRead,
    ReminderRead,
    TaskRead,
)
from tasktracker_api.services.gamification_service import GamificationService

MAX_ANALYTICS_DAYS = 366
TREND_DAYS = 7


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def _daily(start: date, end: date, created: list[datetime], completed: list[datetime]) -> list[DailyCount]:
    created_by_day = Counter(c.date() for c in created)
    completed_by_day = Counter(c.date() for c in completed)
    days = (end - start).days + 1
    return [
        DailyCount(
            day=start + timedelta(days=i),
            created=created_by_day.get(start + timedelta(days=i), 0),
            completed=completed_by_day.get(start + timedelta(days=i), 0),
        )
        for i in range(days)
    ]


class StatisticsService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._tasks = TaskRepo(session)
        self._notifications = NotificationRepo(session)
        self._reminders = ReminderRepo(session)
        self._gamification = GamificationService(session=session)

    async def completion_rate(self, user_id: uuid.UUID) -> float:
        total = await self._tasks.count(user_id)
        done = await self._tasks.count(user_id, status=TaskStatus.completed)
        return _rate(done, total)

    async def status_distribution(self, user_id: uuid.UUID) -> dict[str, int]:
        counts = await self._tasks.count_by_status(user_id)
        return {s.value: counts.get(s, 0) for s in TaskStatus}

    async def priority_distribution(self, user_id: uuid.UUID) -> dict[str, int]:
        counts = await self._tasks.count_by_priority(user_id)
        return {p.value: counts.get(p, 0) for p in TaskPriority}

    async def average_completion_hours(self, user_id: uuid.UUID) -> float | None:
        durations = await self._tasks.completion_durations(user_id)
        if not durations:
            return None
        seconds = sum((done - created).total_seconds() for created, done in durations)
        return round(seconds / len(durations) / 3600, 2)

    async def most_active_categories(
        self, user_id: uuid.UUID, limit: int | None = None
    ) -> list[CategoryActivity]:
        rows = await self._tasks.count_by_category(user_id)
        activity = [
            CategoryActivity(
                category_id=cid,
                name=name,
                total=total,
                completed=completed,
                completion_rate=_rate(completed, total),
            )
            for cid, name, total, completed in rows
        ]
        return activity[:limit] if limit is not None else activity

    async def overdue_summary(self, user_id: uuid.UUID) -> OverdueSummary:
        overdue = await self._tasks.list_overdue(user_id, start_of_day(today()))
        return OverdueSummary(
            count=len(overdue),
            oldest_due_date=min((t.due_date for t in overdue if t.due_date), default=None),
        )

    async def productivity_trend(self, user_id: uuid.UUID, days: int = TREND_DAYS) -> list[DailyCount]:
        end = today()
        start = end - timedelta(days=days - 1)
        lo, hi = start_of_day(start), end_of_day(end)
        return _daily(
            start,
            end,
            await self._tasks.created_between(user_id, lo, hi),
            await self._tasks.completed_between(user_id, lo, hi),
        )

    async def summary(self, user_id: uuid.UUID) -> ProductivitySummary:
        return ProductivitySummary(
            completion_rate=await self.completion_rate(user_id),
            status_distribution=await self.status_distribution(user_id),
            priority_distribution=await self.priority_distribution(user_id),
            by_category=await self.most_active_categories(user_id),
            average_completion_hours=await self.average_completion_hours(user_id),
            productivity_trend=await self.productivity_trend(user_id),
            overdue=await self.overdue_summary(user_id),
        )

    async def productivity(self, user_id: uuid.UUID, start: date, end: date) -> ProductivityAnalytics:
        if start > end:
            raise ValidationError("Start date must be on or before end date")
        if (end - start).days + 1 > MAX_ANALYTICS_DAYS:
            raise ValidationError(f"Date range cannot exceed {MAX_ANALYTICS_DAYS} days")
        lo, hi = start_of_day(start), end_of_day(end)
        created = await self._tasks.created_between(user_id, lo, hi)
        completed = await self._tasks.completed_between(user_id, lo, hi)
        return ProductivityAnalytics(
            start=start,
            end=end,
            daily=_daily(start, end, created, completed),
            total_created=len(created),
            total_completed=len(completed),
            completion_ratio=round(len(completed) / len(created), 2) if created else 0.0,
        )

    async def dashboard(self, user_id: uuid.UUID) -> Dashboard:
        current_day = today()
        counts = DashboardTaskCounts(
            total=await self._tasks.count(user_id),
            completed=await self._tasks.count(user_id, status=TaskStatus.completed),
            in_progress=await self._tasks.count(user_id, status=TaskStatus.in_progress),
            overdue=await self._tasks.count_overdue(user_id, start_of_day(current_day)),
            due_today=await self._tasks.count_due_between(
                user_id, start_of_day(current_day), end_of_day(current_day)
            ),
        )
        progress = await self._gamification.get_progress(user_id)
        return Dashboard(
            tasks=counts,
            unread_notifications=await self._notifications.count(user_id, is_read=False),
            progress=ProgressRead.model_validate(progress),
            upcoming_reminders=[
                ReminderRead.model_validate(r)
                for r in await self._reminders.list_next(user_id, utcnow(), 5)
            ],
            recent_tasks=[
                TaskRead.model_validate(t) for t in await self._tasks.recently_modified(user_id, 5)
            ],
        )
