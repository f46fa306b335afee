"""
tasktracker_api.api.routers.notifications

Notification inbox and per-type delivery preferences.

Responsibilities:
- Inbox reads, filters, counters and read/delete operations.
- Manual notification creation (self; `Admin`+ may target another user).
- Preference CRUD plus bulk channel toggles and defaults initialization.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session
from tasktracker_api.api.envelope import ApiResponse, created, ok
from tasktracker_api.auth.deps import current_user_id, get_principal, require_roles
from tasktracker_api.auth.models import Principal
from tasktracker_api.schemas import (
    NotificationCounts,
    NotificationCreate,
    NotificationFilter,
    NotificationRead,
    NotificationStats,
    PreferenceCreate,
    PreferenceRead,
    PreferenceSummary,
    PreferenceUpdate,
)
from tasktracker_api.services.notification_service import NotificationService

router = APIRouter(
    prefix="/notifications", tags=["notifications"], dependencies=[Depends(require_roles())]
)


def _svc(session: AsyncSession = Depends(db_session)) -> NotificationService:
    return NotificationService(session=session)


# --- inbox --------------------------------------------------------------------


@router.get("", response_model=ApiResponse[list[NotificationRead]])
async def list_notifications(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    items = await svc.list_notifications(user_id)
    return ok([NotificationRead.model_validate(n) for n in items])


@router.get("/unread-count", response_model=ApiResponse[int])
async def unread_count(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.unread_count(user_id))


@router.get("/counts", response_model=ApiResponse[NotificationCounts])
async def notification_counts(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.counts(user_id))


@router.get("/stats", response_model=ApiResponse[NotificationStats])
async def notification_stats(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.stats(user_id))


@router.post("/filter", response_model=ApiResponse[list[NotificationRead]])
async def filter_notifications(
    body: NotificationFilter,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    items = await svc.filter_notifications(user_id, body)
    return ok([NotificationRead.model_validate(n) for n in items])


@router.post("", status_code=201, response_model=ApiResponse[NotificationRead])
async def create_notification(
    body: NotificationCreate,
    principal: Principal = Depends(get_principal),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    notification = await svc.create(
        caller_id=principal.user_id, caller_is_admin=principal.is_admin, body=body
    )
    return created(NotificationRead.model_validate(notification), "Notification created")


@router.put("/mark-all-read", response_model=ApiResponse[int])
async def mark_all_read(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    count = await svc.mark_all_read(user_id)
    return ok(count, f"{count} notification(s) marked as read")


@router.delete("", response_model=ApiResponse[int])
async def delete_all_notifications(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    count = await svc.delete_all(user_id)
    return ok(count, f"{count} notification(s) deleted")


# --- preferences --------------------------------------------------------------


@router.get("/preferences", response_model=ApiResponse[list[PreferenceRead]])
async def list_preferences(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    return ok([PreferenceRead.model_validate(p) for p in await svc.list_preferences(user_id)])


@router.get("/preferences/summary", response_model=ApiResponse[PreferenceSummary])
async def preference_summary(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.preference_summary(user_id))


@router.get("/preferences/family/{family_id}", response_model=ApiResponse[list[PreferenceRead]])
async def family_preferences(
    family_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    prefs = await svc.list_family_preferences(user_id, family_id)
    return ok([PreferenceRead.model_validate(p) for p in prefs])


@router.post("/preferences/initialize", response_model=ApiResponse[list[PreferenceRead]])
async def initialize_preferences(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    prefs = await svc.initialize_preferences(user_id)
    return ok([PreferenceRead.model_validate(p) for p in prefs], "Preferences initialized")


@router.put("/preferences/email/{enabled}", response_model=ApiResponse[int])
async def toggle_email(
    enabled: bool,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.set_email_enabled(user_id, enabled))


@router.put("/preferences/push/{enabled}", response_model=ApiResponse[int])
async def toggle_push(
    enabled: bool,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.set_push_enabled(user_id, enabled))


@router.get("/preferences/{pref_id}", response_model=ApiResponse[PreferenceRead])
async def get_preference(
    pref_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    return ok(PreferenceRead.model_validate(await svc.get_preference(user_id, pref_id)))


@router.post("/preferences", status_code=201, response_model=ApiResponse[PreferenceRead])
async def create_preference(
    body: PreferenceCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    pref = await svc.create_preference(user_id, body)
    return created(PreferenceRead.model_validate(pref), "Preference created")


@router.put("/preferences/{pref_id}", response_model=ApiResponse[PreferenceRead])
async def update_preference(
    pref_id: uuid.UUID,
    body: PreferenceUpdate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    pref = await svc.update_preference(user_id, pref_id, body)
    return ok(PreferenceRead.model_validate(pref), "Preference updated")


@router.delete("/preferences/{pref_id}", response_model=ApiResponse[None])
async def delete_preference(
    pref_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    await svc.delete_preference(user_id, pref_id)
    return ok(None, "Preference deleted")


# --- single notification (declared last: `/{notification_id}` is a catch-all) ---


@router.get("/{notification_id}", response_model=ApiResponse[NotificationRead])
async def get_notification(
    notification_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    return ok(NotificationRead.model_validate(await svc.get(user_id, notification_id)))


@router.put("/{notification_id}/read", response_model=ApiResponse[NotificationRead])
async def mark_read(
    notification_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    notification = await svc.mark_read(user_id, notification_id)
    return ok(NotificationRead.model_validate(notification), "Marked as read")


@router.delete("/{notification_id}", response_model=ApiResponse[None])
async def delete_notification(
    notification_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: NotificationService = Depends(_svc),
) -> ApiResponse:
    await svc.delete(user_id, notification_id)
    return ok(None, "Notification deleted")
