"""
tasktracker_api.api.routers.calendar

Shared family calendar: events, attendees and their responses.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session, settings_dep
from tasktracker_api.api.envelope import ApiResponse, created, ok
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.schemas import (
    AttendeeRead,
    AttendeeResponseUpdate,
    EventCreate,
    EventRead,
    EventUpdate,
)
from tasktracker_api.services.calendar_service import CalendarService
from tasktracker_api.settings import Settings

router = APIRouter(
    prefix="/families/{family_id}/calendar",
    tags=["calendar"],
    dependencies=[Depends(require_roles())],
)


def _svc(
    session: AsyncSession = Depends(db_session), settings: Settings = Depends(settings_dep)
) -> CalendarService:
    return CalendarService(session=session, settings=settings)


@router.get("/events", response_model=ApiResponse[list[EventRead]])
async def list_events(
    family_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CalendarService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.list_events(user_id, family_id))


@router.get("/events/range", response_model=ApiResponse[list[EventRead]])
async def events_in_range(
    family_id: uuid.UUID,
    start: datetime = Query(),
    end: datetime = Query(),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CalendarService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.events_in_range(user_id, family_id, start, end))


@router.get("/events/today", response_model=ApiResponse[list[EventRead]])
async def events_today(
    family_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CalendarService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.events_today(user_id, family_id))


@router.post("/events", status_code=201, response_model=ApiResponse[EventRead])
async def create_event(
    family_id: uuid.UUID,
    body: EventCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CalendarService = Depends(_svc),
) -> ApiResponse:
    return created(await svc.create(user_id, family_id, body), "Event created")


@router.get("/events/{event_id}", response_model=ApiResponse[EventRead])
async def get_event(
    family_id: uuid.UUID,
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CalendarService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.get(user_id, family_id, event_id))


@router.put("/events/{event_id}", response_model=ApiResponse[EventRead])
async def update_event(
    family_id: uuid.UUID,
    event_id: uuid.UUID,
    body: EventUpdate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CalendarService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.update(user_id, family_id, event_id, body), "Event updated")


@router.delete("/events/{event_id}", response_model=ApiResponse[None])
async def delete_event(
    family_id: uuid.UUID,
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CalendarService = Depends(_svc),
) -> ApiResponse:
    await svc.delete(user_id, family_id, event_id)
    return ok(None, "Event deleted")


@router.get("/events/{event_id}/attendees", response_model=ApiResponse[list[AttendeeRead]])
async def list_attendees(
    family_id: uuid.UUID,
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CalendarService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.attendees(user_id, family_id, event_id))


@router.put("/events/{event_id}/response", response_model=ApiResponse[AttendeeRead])
async def respond_to_event(
    family_id: uuid.UUID,
    event_id: uuid.UUID,
    body: AttendeeResponseUpdate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CalendarService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.respond(user_id, family_id, event_id, body), "Response recorded")


@router.delete("/events/{event_id}/attendees/{member_id}", response_model=ApiResponse[None])
async def remove_attendee(
    family_id: uuid.UUID,
    event_id: uuid.UUID,
    member_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: CalendarService = Depends(_svc),
) -> ApiResponse:
    await svc.remove_attendee(user_id, family_id, event_id, member_id)
    return ok(None, "Attendee removed")
