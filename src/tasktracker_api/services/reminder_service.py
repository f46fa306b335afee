"""
tasktracker_api.services.reminder_service

Reminder scheduling.

Responsibilities:
- Per-user reminder CRUD, optionally linked to an owned task.
- Upcoming/due windows; snoozing.
- Completing a repeating reminder rolls it to its next occurrence.
- Processing due reminders into `Reminder` notifications.
"""

from __future__ import annotations

import calendar
import uuid
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.clock import to_naive_utc, utcnow
from tasktracker_api.db.models import NotificationType, Reminder, ReminderStatus, RepeatFrequency
from tasktracker_api.db.repositories.reminders import ReminderRepo
from tasktracker_api.db.repositories.tasks import TaskRepo
from tasktracker_api.errors import ForbiddenError, NotFoundError, ValidationError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import ReminderCreate, ReminderUpdate
from tasktracker_api.services.notification_service import NotificationService

log = get_logger(__name__)


def add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_occurrence(value: datetime, frequency: RepeatFrequency) -> datetime:
    if frequency == RepeatFrequency.daily:
        return value + timedelta(days=1)
    if frequency == RepeatFrequency.weekly:
        return value + timedelta(weeks=1)
    if frequency == RepeatFrequency.monthly:
        return add_months(value, 1)
    raise ValueError(f"{frequency} does not repeat")


class ReminderService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._reminders = ReminderRepo(session)
        self._tasks = TaskRepo(session)
        self._notifications = NotificationService(session=session)

    async def _check_task(self, user_id: uuid.UUID, task_id: uuid.UUID | None) -> None:
        if task_id is None:
            return
        task = await self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(f"Task with ID {task_id} not found")
        if task.user_id != user_id:
            raise ForbiddenError("You do not have access to this task")

    async def get(self, user_id: uuid.UUID, reminder_id: uuid.UUID) -> Reminder:
        reminder = await self._reminders.get_owned(reminder_id, user_id)
        if reminder is None:
            raise NotFoundError(f"Reminder with ID {reminder_id} not found")
        return reminder

    async def list_reminders(
        self, user_id: uuid.UUID, *, status: ReminderStatus | None = None
    ) -> list[Reminder]:
        return await self._reminders.list_for_user(user_id, status=status)

    async def for_task(self, user_id: uuid.UUID, task_id: uuid.UUID) -> list[Reminder]:
        await self._check_task(user_id, task_id)
        return await self._reminders.list_for_task(user_id, task_id)

    async def upcoming(self, user_id: uuid.UUID, days: int = 7) -> list[Reminder]:
        if days < 1 or days > 365:
            raise ValidationError("Days must be between 1 and 365")
        now = utcnow()
        return await self._reminders.list_open_between(user_id, now, now + timedelta(days=days))

    async def due(self, user_id: uuid.UUID) -> list[Reminder]:
        return await self._reminders.list_due(user_id, utcnow())

    async def create(self, user_id: uuid.UUID, body: ReminderCreate) -> Reminder:
        await self._check_task(user_id, body.task_id)
        reminder = await self._reminders.add(
            Reminder(
                user_id=user_id,
                task_id=body.task_id,
                title=body.title.strip(),
                description=body.description,
                reminder_time=to_naive_utc(body.reminder_time),
                repeat_frequency=body.repeat_frequency,
                priority=body.priority,
                status=ReminderStatus.pending,
            )
        )
        await self._session.commit()
        log.info("reminder_created", reminder_id=str(reminder.id))
        return reminder

    async def update(
        self, user_id: uuid.UUID, reminder_id: uuid.UUID, body: ReminderUpdate
    ) -> Reminder:
        reminder = await self.get(user_id, reminder_id)
        await self._check_task(user_id, body.task_id)
        reminder.title = body.title.strip()
        reminder.description = body.description
        reminder.reminder_time = to_naive_utc(body.reminder_time)
        reminder.repeat_frequency = body.repeat_frequency
        reminder.priority = body.priority
        reminder.task_id = body.task_id
        if body.status is not None and body.status != reminder.status:
            reminder.status = body.status
            reminder.completed_at = utcnow() if body.status == ReminderStatus.completed else None
        reminder.updated_at = utcnow()
        await self._session.commit()
        return reminder

    async def delete(self, user_id: uuid.UUID, reminder_id: uuid.UUID) -> None:
        reminder = await self.get(user_id, reminder_id)
        await self._reminders.delete(reminder)
        await self._session.commit()

    def _complete(self, reminder: Reminder, now: datetime) -> None:
        if reminder.repeat_frequency == RepeatFrequency.none:
            reminder.status = ReminderStatus.completed
            reminder.completed_at = now
        else:
            upcoming = next_occurrence(reminder.reminder_time, reminder.repeat_frequency)
            while upcoming <= now:
                upcoming = next_occurrence(upcoming, reminder.repeat_frequency)
            reminder.reminder_time = upcoming
            reminder.status = ReminderStatus.pending
            reminder.completed_at = None
        reminder.updated_at = now

    async def complete(self, user_id: uuid.UUID, reminder_id: uuid.UUID) -> Reminder:
        reminder = await self.get(user_id, reminder_id)
        if reminder.status == ReminderStatus.completed:
            raise ValidationError("Reminder is already completed")
        self._complete(reminder, utcnow())
        await self._session.commit()
        return reminder

    async def snooze(self, user_id: uuid.UUID, reminder_id: uuid.UUID, minutes: int) -> Reminder:
        reminder = await self.get(user_id, reminder_id)
        if reminder.status in (ReminderStatus.completed, ReminderStatus.dismissed):
            raise ValidationError(f"Cannot snooze a {reminder.status.value.lower()} reminder")
        now = utcnow()
        reminder.reminder_time = now + timedelta(minutes=minutes)
        reminder.status = ReminderStatus.snoozed
        reminder.updated_at = now
        await self._session.commit()
        return reminder

    async def process_due(self, user_id: uuid.UUID) -> list[Reminder]:
        now = utcnow()
        due = await self._reminders.list_due(user_id, now)
        for reminder in due:
            await self._notifications.notify(
                user_id=user_id,
                title=f"Reminder: {reminder.title}",
                message=reminder.description or reminder.title,
                notification_type=NotificationType.reminder,
                related_entity_type="Reminder",
                related_entity_id=str(reminder.id),
            )
            self._complete(reminder, now)
        await self._session.commit()
        log.info("reminders_processed", user_id=str(user_id), count=len(due))
        return due


# --- Module Notes -----------------------------------------------------------
# Processing is pull-based (`POST /reminders/process-due`); a scheduler can call
# it on behalf of each user.
