"""
tasktracker_api.api.routers.reminders

Reminder endpoints, including due processing and snoozing.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session
from tasktracker_api.api.envelope import ApiResponse, created, ok
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.db.models import ReminderStatus
from tasktracker_api.schemas import ReminderCreate, ReminderRead, ReminderUpdate, SnoozeRequest
from tasktracker_api.services.reminder_service import ReminderService

router = APIRouter(prefix="/reminders", tags=["reminders"], dependencies=[Depends(require_roles())])


def _svc(session: AsyncSession = Depends(db_session)) -> ReminderService:
    return ReminderService(session=session)


@router.get("", response_model=ApiResponse[list[ReminderRead]])
async def list_reminders(
    status: ReminderStatus | None = None,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: ReminderService = Depends(_svc),
) -> ApiResponse:
    reminders = await svc.list_reminders(user_id, status=status)
    return ok([ReminderRead.model_validate(r) for r in reminders])


@router.get("/upcoming", response_model=ApiResponse[list[ReminderRead]])
async def upcoming_reminders(
    days: int = Query(default=7, ge=1, le=365),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: ReminderService = Depends(_svc),
) -> ApiResponse:
    return ok([ReminderRead.model_validate(r) for r in await svc.upcoming(user_id, days)])


@router.get("/due", response_model=ApiResponse[list[ReminderRead]])
async def due_reminders(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: ReminderService = Depends(_svc),
) -> ApiResponse:
    return ok([ReminderRead.model_validate(r) for r in await svc.due(user_id)])


@router.post("/process-due", response_model=ApiResponse[list[ReminderRead]])
async def process_due_reminders(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: ReminderService = Depends(_svc),
) -> ApiResponse:
    processed = await svc.process_due(user_id)
    return ok(
        [ReminderRead.model_validate(r) for r in processed],
        f"{len(processed)} reminder(s) processed",
    )


@router.get("/task/{task_id}", response_model=ApiResponse[list[ReminderRead]])
async def reminders_for_task(
    task_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: ReminderService = Depends(_svc),
) -> ApiResponse:
    return ok([ReminderRead.model_validate(r) for r in await svc.for_task(user_id, task_id)])


@router.get("/{reminder_id}", response_model=ApiResponse[ReminderRead])
async def get_reminder(
    reminder_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: ReminderService = Depends(_svc),
) -> ApiResponse:
    return ok(ReminderRead.model_validate(await svc.get(user_id, reminder_id)))


@router.post("", status_code=201, response_model=ApiResponse[ReminderRead])
async def create_reminder(
    body: ReminderCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: ReminderService = Depends(_svc),
) -> ApiResponse:
    return created(ReminderRead.model_validate(await svc.create(user_id, body)), "Reminder created")


@router.put("/{reminder_id}", response_model=ApiResponse[ReminderRead])
async def update_reminder(
    reminder_id: uuid.UUID,
    body: ReminderUpdate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: ReminderService = Depends(_svc),
) -> ApiResponse:
    reminder = await svc.update(user_id, reminder_id, body)
    return ok(ReminderRead.model_validate(reminder), "Reminder updated")


@router.delete("/{reminder_id}", response_model=ApiResponse[None])
async def delete_reminder(
    reminder_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: ReminderService = Depends(_svc),
) -> ApiResponse:
    await svc.delete(user_id, reminder_id)
    return ok(None, "Reminder deleted")


@router.post("/{reminder_id}/complete", response_model=ApiResponse[ReminderRead])
async def complete_reminder(
    reminder_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: ReminderService = Depends(_svc),
) -> ApiResponse:
    reminder = await svc.complete(user_id, reminder_id)
    return ok(ReminderRead.model_validate(reminder), "Reminder completed")


@router.post("/{reminder_id}/snooze", response_model=ApiResponse[ReminderRead])
async def snooze_reminder(
    reminder_id: uuid.UUID,
    body: SnoozeRequest,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: ReminderService = Depends(_svc),
) -> ApiResponse:
    reminder = await svc.snooze(user_id, reminder_id, body.minutes)
    return ok(ReminderRead.model_validate(reminder), f"Reminder snoozed for {body.minutes} minutes")
