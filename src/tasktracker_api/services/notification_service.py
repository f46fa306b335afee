"""
tasktracker_api.services.notification_service

Notifications and notification preferences.

Responsibilities:
- Recipient-scoped reads, filters, counters and read/delete operations.
- `notify(...)`: the single entry point other services use to emit a
  notification; it honours a disabled preference for that type.
- Preference CRUD, channel toggles and idempotent initialization.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.clock import utcnow
from tasktracker_api.db.models import Notification, NotificationPreference, NotificationType
from tasktracker_api.db.repositories.families import FamilyRepo
from tasktracker_api.db.repositories.notifications import (
    NotificationPreferenceRepo,
    NotificationRepo,
)
from tasktracker_api.db.repositories.users import UserRepo
from tasktracker_api.errors import ConflictError, ForbiddenError, NotFoundError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import (
    NotificationCounts,
    NotificationCreate,
    NotificationFilter,
    NotificationStats,
    PreferenceCreate,
    PreferenceSummary,
    PreferenceUpdate,
)

log = get_logger(__name__)


class NotificationService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._notifications = NotificationRepo(session)
        self._prefs = NotificationPreferenceRepo(session)
        self._families = FamilyRepo(session)
        self._users = UserRepo(session)

    # --- emission (shared with other services; flush only) ---------------

    async def notify(
        self,
        *,
        user_id: uuid.UUID,
        title: str,
        message: str,
        notification_type: NotificationType,
        is_important: bool = False,
        related_entity_type: str | None = None,
        related_entity_id: str | None = None,
        created_by_user_id: uuid.UUID | None = None,
    ) -> Notification | None:
        pref = await self._prefs.find(user_id, notification_type)
        if pref is not None and not pref.enabled:
            log.info("notification_suppressed", user_id=str(user_id), type=notification_type.value)
            return None
        notification = await self._notifications.add(
            Notification(
                user_id=user_id,
                title=title,
                message=message,
                notification_type=notification_type,
                is_important=is_important,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
                created_by_user_id=created_by_user_id,
            )
        )
        return notification

    # --- notifications ----------------------------------------------------

    async def list_notifications(self, user_id: uuid.UUID) -> list[Notification]:
        return await self._notifications.list_for_user(user_id)

    async def get(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> Notification:
        notification = await self._notifications.get_owned(notification_id, user_id)
        if notification is None:
            raise NotFoundError(f"Notification with ID {notification_id} not found")
        return notification

    async def filter_notifications(
        self, user_id: uuid.UUID, flt: NotificationFilter
    ) -> list[Notification]:
        return await self._notifications.list_for_user(
            user_id,
            is_read=flt.is_read,
            notification_type=flt.notification_type,
            is_important=flt.is_important,
            since=flt.since,
            until=flt.until,
            search=flt.search,
        )

    async def unread_count(self, user_id: uuid.UUID) -> int:
        return await self._notifications.count(user_id, is_read=False)

    async def counts(self, user_id: uuid.UUID) -> NotificationCounts:
        by_type = await self._notifications.count_by_type(user_id)
        return NotificationCounts(
            total=sum(by_type.values()),
            unread=await self._notifications.count(user_id, is_read=False),
            important=await self._notifications.count(user_id, is_important=True),
            by_type={t.value: n for t, n in by_type.items()},
        )

    async def stats(self, user_id: uuid.UUID) -> NotificationStats:
        by_type = await self._notifications.count_by_type(user_id)
        total = sum(by_type.values())
        unread = await self._notifications.count(user_id, is_read=False)
        read = total - unread
        return NotificationStats(
            total=total,
            unread=unread,
            read=read,
            important=await self._notifications.count(user_id, is_important=True),
            read_rate=round(read / total * 100, 2) if total else 0.0,
            last_7_days=await self._notifications.count(
                user_id, since=utcnow() - timedelta(days=7)
            ),
            by_type={t.value: n for t, n in by_type.items()},
        )

    async def create(
        self, *, caller_id: uuid.UUID, caller_is_admin: bool, body: NotificationCreate
    ) -> Notification:
        recipient_id = body.user_id or caller_id
        if recipient_id != caller_id:
            if not caller_is_admin:
                raise ForbiddenError("Only administrators can notify other users")
            if await self._users.get(recipient_id) is None:
                raise NotFoundError(f"User with ID {recipient_id} not found")
        notification = await self._notifications.add(
            Notification(
                user_id=recipient_id,
                title=body.title,
                message=body.message,
                notification_type=body.notification_type,
                is_important=body.is_important,
                related_entity_type=body.related_entity_type,
                related_entity_id=body.related_entity_id,
                created_by_user_id=caller_id,
            )
        )
        await self._session.commit()
        log.info("notification_created", notification_id=str(notification.id))
        return notification

    async def mark_read(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> Notification:
        notification = await self.get(user_id, notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utcnow()
            await self._session.commit()
        return notification

    async def mark_all_read(self, user_id: uuid.UUID) -> int:
        count = await self._notifications.mark_all_read(user_id, utcnow())
        await self._session.commit()
        return count

    async def delete(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> None:
        notification = await self.get(user_id, notification_id)
        await self._notifications.delete(notification)
        await self._session.commit()

    async def delete_all(self, user_id: uuid.UUID) -> int:
        count = await self._notifications.delete_all(user_id)
        await self._session.commit()
        return count

    # --- preferences ------------------------------------------------------

    async def list_preferences(self, user_id: uuid.UUID) -> list[NotificationPreference]:
        return await self._prefs.list_for_user(user_id)

    async def list_family_preferences(
        self, user_id: uuid.UUID, family_id: uuid.UUID
    ) -> list[NotificationPreference]:
        if await self._families.get_member(family_id, user_id) is None:
            raise ForbiddenError("You are not a member of this family")
        return await self._prefs.list_for_user(user_id, family_id=family_id)

    async def preference_summary(self, user_id: uuid.UUID) -> PreferenceSummary:
        prefs = await self._prefs.list_for_user(user_id)
        enabled = [p for p in prefs if p.enabled]
        return PreferenceSummary(
            total=len(prefs),
            enabled=len(enabled),
            disabled=len(prefs) - len(enabled),
            email_enabled=sum(1 for p in prefs if p.email_enabled),
            push_enabled=sum(1 for p in prefs if p.push_enabled),
            enabled_types=sorted({p.notification_type for p in enabled}),
        )

    async def get_preference(
        self, user_id: uuid.UUID, pref_id: uuid.UUID
    ) -> NotificationPreference:
        pref = await self._prefs.get_owned(pref_id, user_id)
        if pref is None:
            raise NotFoundError(f"Notification preference with ID {pref_id} not found")
        return pref

    async def create_preference(
        self, user_id: uuid.UUID, body: PreferenceCreate
    ) -> NotificationPreference:
        if body.family_id is not None and (
            await self._families.get_member(body.family_id, user_id) is None
        ):
            raise ForbiddenError("You are not a member of this family")
        if await self._prefs.find(user_id, body.notification_type, body.family_id) is not None:
            raise ConflictError(
                f"A preference for {body.notification_type.value} already exists"
            )
        pref = await self._prefs.add(
            NotificationPreference(
                user_id=user_id,
                notification_type=body.notification_type,
                enabled=body.enabled,
                priority=body.priority,
                family_id=body.family_id,
                email_enabled=body.email_enabled,
                push_enabled=body.push_enabled,
            )
        )
        await self._session.commit()
        return pref

    async def update_preference(
        self, user_id: uuid.UUID, pref_id: uuid.UUID, body: PreferenceUpdate
    ) -> NotificationPreference:
        pref = await self.get_preference(user_id, pref_id)
        for field, value in body.model_dump(exclude_none=True).items():
            setattr(pref, field, value)
        pref.updated_at = utcnow()
        await self._session.commit()
        return pref

    async def delete_preference(self, user_id: uuid.UUID, pref_id: uuid.UUID) -> None:
        pref = await self.get_preference(user_id, pref_id)
        await self._prefs.delete(pref)
        await self._session.commit()

    async def set_email_enabled(self, user_id: uuid.UUID, enabled: bool) -> int:
        count = await self._prefs.set_channel(user_id, email=enabled, push=None)
        await self._session.commit()
        return count

    async def set_push_enabled(self, user_id: uuid.UUID, enabled: bool) -> int:
        count = await self._prefs.set_channel(user_id, email=None, push=enabled)
        await self._session.commit()
        return count

    async def initialize_preferences(self, user_id: uuid.UUID) -> list[NotificationPreference]:
        for notification_type in NotificationType:
            if await self._prefs.find(user_id, notification_type) is None:
                await self._prefs.add(
                    NotificationPreference(
                        user_id=user_id, notification_type=notification_type, enabled=True
                    )
                )
        await self._session.commit()
        return await self._prefs.list_for_user(user_id)


# --- Module Notes -----------------------------------------------------------
# Only user-wide preferences (family_id is NULL) gate `notify`; family-scoped
# preferences are stored for clients that render per-family settings.
