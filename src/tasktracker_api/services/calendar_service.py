"""
tasktracker_api.services.calendar_service

Shared family calendar.

Responsibilities:
- Event CRUD scoped to one family; any member may read and create events.
- Only the event creator or a family admin/parent may edit or delete an event
  or remove an attendee.
- Attendees are family members; each answers with a response and an optional note.
- Notify invited members and record an activity row for each event change.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.clock import end_of_day, start_of_day, to_naive_utc, today, utcnow
from tasktracker_api.db.models import (
    AttendeeResponse,
    FamilyCalendarEvent,
    FamilyEventAttendee,
    FamilyMember,
    FamilyRole,
    NotificationType,
)
from tasktracker_api.db.repositories.calendar import CalendarRepo
from tasktracker_api.db.repositories.families import FamilyActivityRepo, FamilyRepo
from tasktracker_api.errors import ForbiddenError, NotFoundError, ValidationError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import (
    AttendeeRead,
    AttendeeResponseUpdate,
    EventCreate,
    EventRead,
    EventUpdate,
)
from tasktracker_api.services.family_service import FamilyService
from tasktracker_api.services.notification_service import NotificationService
from tasktracker_api.settings import Settings

log = get_logger(__name__)

_MANAGER_ROLES = (FamilyRole.admin, FamilyRole.parent)


def attendee_read(attendee: FamilyEventAttendee) -> AttendeeRead:
    return AttendeeRead(
        id=attendee.id,
        family_member_id=attendee.family_member_id,
        user_id=attendee.member.user_id,
        username=attendee.member.user.username,
        response=attendee.response,
        note=attendee.note,
        responded_at=attendee.responded_at,
    )


def event_read(event: FamilyCalendarEvent) -> EventRead:
    return EventRead(
        id=event.id,
        family_id=event.family_id,
        created_by_id=event.created_by_id,
        title=event.title,
        description=event.description,
        start_time=event.start_time,
        end_time=event.end_time,
        is_all_day=event.is_all_day,
        location=event.location,
        color=event.color,
        event_type=event.event_type,
        is_recurring=event.is_recurring,
        recurrence_pattern=event.recurrence_pattern,
        created_at=event.created_at,
        updated_at=event.updated_at,
        attendees=[attendee_read(a) for a in event.attendees],
    )


def _window(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    start, end = to_naive_utc(start), to_naive_utc(end)
    if end < start:
        raise ValidationError("End time cannot be before start time")
    return start, end


class CalendarService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._events = CalendarRepo(session)
        self._families = FamilyRepo(session)
        self._activity = FamilyActivityRepo(session)
        self._membership = FamilyService(session=session, settings=settings)
        self._notifications = NotificationService(session=session)

    # --- access helpers ---------------------------------------------------

    async def _event(self, family_id: uuid.UUID, event_id: uuid.UUID) -> FamilyCalendarEvent:
        event = await self._events.get(event_id)
        if event is None or event.family_id != family_id:
            raise NotFoundError(f"Event with ID {event_id} not found")
        return event

    async def _editable_event(
        self, user_id: uuid.UUID, family_id: uuid.UUID, event_id: uuid.UUID
    ) -> tuple[FamilyCalendarEvent, FamilyMember]:
        _, member = await self._membership.require_member(user_id, family_id)
        event = await self._event(family_id, event_id)
        if event.created_by_id != user_id and member.role not in _MANAGER_ROLES:
            raise ForbiddenError("Only the event creator or a family admin/parent can change it")
        return event, member

    async def _invitees(
        self, family_id: uuid.UUID, member_ids: list[uuid.UUID]
    ) -> list[FamilyMember]:
        # Ids that are not members of this family are skipped.
        members = {m.id: m for m in await self._families.list_members(family_id)}
        picked: dict[uuid.UUID, FamilyMember] = {}
        for member_id in member_ids:
            if member_id in members:
                picked.setdefault(member_id, members[member_id])
        return list(picked.values())

    async def _invite(
        self, user_id: uuid.UUID, event: FamilyCalendarEvent, members: list[FamilyMember]
    ) -> None:
        for member in members:
            event.attendees.append(
                FamilyEventAttendee(
                    family_member_id=member.id, member=member, response=AttendeeResponse.pending
                )
            )
            if member.user_id != user_id:
                await self._notifications.notify(
                    user_id=member.user_id,
                    title="New family event",
                    message=f"You have been invited to '{event.title}'",
                    notification_type=NotificationType.calendar_event,
                    related_entity_type="FamilyCalendarEvent",
                    related_entity_id=str(event.id),
                    created_by_user_id=user_id,
                )

    async def _record(
        self,
        family_id: uuid.UUID,
        user_id: uuid.UUID,
        action_type: str,
        description: str,
        event_id: uuid.UUID,
    ) -> None:
        await self._activity.add(
            family_id=family_id,
            actor_id=user_id,
            action_type=action_type,
            description=description,
            entity_type="FamilyCalendarEvent",
            entity_id=str(event_id),
        )

    # --- reads ------------------------------------------------------------

    async def list_events(self, user_id: uuid.UUID, family_id: uuid.UUID) -> list[EventRead]:
        await self._membership.require_member(user_id, family_id)
        return [event_read(e) for e in await self._events.list_for_family(family_id)]

    async def events_in_range(
        self, user_id: uuid.UUID, family_id: uuid.UUID, start: datetime, end: datetime
    ) -> list[EventRead]:
        await self._membership.require_member(user_id, family_id)
        start, end = _window(start, end)
        return [event_read(e) for e in await self._events.list_overlapping(family_id, start, end)]

    async def events_today(self, user_id: uuid.UUID, family_id: uuid.UUID) -> list[EventRead]:
        current_day = today()
        return await self.events_in_range(
            user_id, family_id, start_of_day(current_day), end_of_day(current_day)
        )

    async def get(
        self, user_id: uuid.UUID, family_id: uuid.UUID, event_id: uuid.UUID
    ) -> EventRead:
        await self._membership.require_member(user_id, family_id)
        return event_read(await self._event(family_id, event_id))

    async def attendees(
        self, user_id: uuid.UUID, family_id: uuid.UUID, event_id: uuid.UUID
    ) -> list[AttendeeRead]:
        await self._membership.require_member(user_id, family_id)
        event = await self._event(family_id, event_id)
        return [attendee_read(a) for a in event.attendees]

    # --- writes -----------------------------------------------------------

    async def create(
        self, user_id: uuid.UUID, family_id: uuid.UUID, body: EventCreate
    ) -> EventRead:
        await self._membership.require_member(user_id, family_id)
        start, end = _window(body.start_time, body.end_time)
        event = await self._events.add(
            FamilyCalendarEvent(
                family_id=family_id,
                created_by_id=user_id,
                title=body.title,
                description=body.description,
                start_time=start,
                end_time=end,
                is_all_day=body.is_all_day,
                location=body.location,
                color=body.color,
                event_type=body.event_type,
                is_recurring=body.is_recurring,
                recurrence_pattern=body.recurrence_pattern,
                attendees=[],
            )
        )
        invitees = await self._invitees(family_id, body.attendee_member_ids)
        await self._invite(user_id, event, invitees)
        await self._record(
            family_id, user_id, "EventCreated", f"'{event.title}' was added", event.id
        )
        await self._session.commit()
        log.info("calendar_event_created", family_id=str(family_id), event_id=str(event.id))
        return event_read(event)

    async def update(
        self, user_id: uuid.UUID, family_id: uuid.UUID, event_id: uuid.UUID, body: EventUpdate
    ) -> EventRead:
        event, _ = await self._editable_event(user_id, family_id, event_id)
        start, end = _window(body.start_time, body.end_time)
        event.title = body.title
        event.description = body.description
        event.start_time = start
        event.end_time = end
        event.is_all_day = body.is_all_day
        event.location = body.location
        event.color = body.color
        event.event_type = body.event_type
        event.is_recurring = body.is_recurring
        event.recurrence_pattern = body.recurrence_pattern
        event.updated_at = utcnow()

        if body.attendee_member_ids is not None:
            wanted = await self._invitees(family_id, body.attendee_member_ids)
            wanted_ids = {m.id for m in wanted}
            # Members who stay invited keep their response.
            for attendee in list(event.attendees):
                if attendee.family_member_id not in wanted_ids:
                    event.attendees.remove(attendee)
            current_ids = {a.family_member_id for a in event.attendees}
            await self._invite(user_id, event, [m for m in wanted if m.id not in current_ids])

        await self._record(
            family_id, user_id, "EventUpdated", f"'{event.title}' was updated", event.id
        )
        await self._session.commit()
        return event_read(event)

    async def delete(self, user_id: uuid.UUID, family_id: uuid.UUID, event_id: uuid.UUID) -> None:
        event, _ = await self._editable_event(user_id, family_id, event_id)
        title = event.title
        await self._events.delete(event)
        await self._record(
            family_id, user_id, "EventDeleted", f"'{title}' was removed from the calendar", event_id
        )
        await self._session.commit()
        log.info("calendar_event_deleted", family_id=str(family_id), event_id=str(event_id))

    async def respond(
        self,
        user_id: uuid.UUID,
        family_id: uuid.UUID,
        event_id: uuid.UUID,
        body: AttendeeResponseUpdate,
    ) -> AttendeeRead:
        _, member = await self._membership.require_member(user_id, family_id)
        event = await self._event(family_id, event_id)
        member_id = body.family_member_id or member.id
        if member_id != member.id and member.role not in _MANAGER_ROLES:
            raise ForbiddenError("Only family admins and parents can answer for another member")
        attendee = next((a for a in event.attendees if a.family_member_id == member_id), None)
        if attendee is None:
            raise NotFoundError("This member is not invited to the event")

        attendee.response = body.response
        attendee.note = body.note
        attendee.responded_at = utcnow()
        if event.created_by_id not in (None, user_id, attendee.member.user_id):
            await self._notifications.notify(
                user_id=event.created_by_id,
                title="Event response",
                message=(
                    f"{attendee.member.user.username} answered {body.response.value} "
                    f"for '{event.title}'"
                ),
                notification_type=NotificationType.calendar_event,
                related_entity_type="FamilyCalendarEvent",
                related_entity_id=str(event.id),
                created_by_user_id=user_id,
            )
        await self._session.commit()
        return attendee_read(attendee)

    async def remove_attendee(
        self, user_id: uuid.UUID, family_id: uuid.UUID, event_id: uuid.UUID, member_id: uuid.UUID
    ) -> None:
        event, _ = await self._editable_event(user_id, family_id, event_id)
        attendee = next((a for a in event.attendees if a.family_member_id == member_id), None)
        if attendee is None:
            raise NotFoundError("This member is not invited to the event")
        event.attendees.remove(attendee)
        event.updated_at = utcnow()
        await self._session.commit()


# --- Module Notes -----------------------------------------------------------
# Attendees reference family memberships, not users, so leaving a family drops
# that person from every event of the family through ON DELETE CASCADE.
