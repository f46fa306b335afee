"""
tests.test_calendar

Family calendar events, attendee responses and edit permissions.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import httpx
import pytest

from tasktracker_api.clock import utcnow

from conftest import register


async def _family(client: httpx.AsyncClient, admin, *members) -> tuple[str, dict[str, str]]:
    r = await client.post("/api/v1/families", json={"name": "Smiths"}, headers=admin.headers)
    assert r.status_code == 201, r.text
    family_id = r.json()["data"]["id"]
    for account in members:
        r = await client.post(
            f"/api/v1/families/{family_id}/invitations",
            json={"email": account.email},
            headers=admin.headers,
        )
        token = r.json()["data"]["token"]
        r = await client.post(
            f"/api/v1/families/invitations/{token}/accept", headers=account.headers
        )
        assert r.status_code == 200, r.text
    r = await client.get(f"/api/v1/families/{family_id}/members", headers=admin.headers)
    member_ids = {m["username"]: m["id"] for m in r.json()["data"]}
    return family_id, member_ids


def _event_body(title: str = "Dentist", *, hours_from_now: float = 1, **fields) -> dict:
    start = utcnow() + timedelta(hours=hours_from_now)
    return {
        "title": title,
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(hours=1)).isoformat(),
        **fields,
    }


async def _create_event(client: httpx.AsyncClient, family_id: str, account, **fields) -> dict:
    r = await client.post(
        f"/api/v1/families/{family_id}/calendar/events",
        json=_event_body(**fields),
        headers=account.headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]


@pytest.mark.asyncio
async def test_create_event_invites_members_only(client: httpx.AsyncClient, alice, bob) -> None:
    carol = await register(client, "carol")
    family_id, members = await _family(client, alice, bob)

    event = await _create_event(
        client,
        family_id,
        alice,
        event_type="Appointment",
        attendee_member_ids=[members["bob"], members["bob"], str(uuid.uuid4())],
    )
    assert event["event_type"] == "Appointment"
    assert event["created_by_id"] == str(alice.id)
    assert [(a["username"], a["response"]) for a in event["attendees"]] == [("bob", "Pending")]

    r = await client.get("/api/v1/notifications", headers=bob.headers)
    assert "CalendarEvent" in {n["notification_type"] for n in r.json()["data"]}

    base = f"/api/v1/families/{family_id}/calendar/events"
    r = await client.get(base, headers=bob.headers)
    assert [e["id"] for e in r.json()["data"]] == [event["id"]]
    r = await client.get(base, headers=carol.headers)
    assert r.status_code == 403
    r = await client.get(f"{base}/{event['id']}", headers=carol.headers)
    assert r.status_code == 403
    r = await client.get(f"{base}/{uuid.uuid4()}", headers=bob.headers)
    assert r.status_code == 404

    r = await client.get(f"/api/v1/families/{family_id}/activity", headers=alice.headers)
    assert "EventCreated" in {a["action_type"] for a in r.json()["data"]["items"]}


@pytest.mark.asyncio
async def test_end_before_start_rejected(client: httpx.AsyncClient, alice) -> None:
    family_id, _ = await _family(client, alice)
    start = utcnow()
    r = await client.post(
        f"/api/v1/families/{family_id}/calendar/events",
        json={
            "title": "Backwards",
            "start_time": start.isoformat(),
            "end_time": (start - timedelta(minutes=5)).isoformat(),
        },
        headers=alice.headers,
    )
    assert r.status_code == 400
    assert r.json()["message"] == "End time cannot be before start time"

    r = await client.post(
        f"/api/v1/families/{family_id}/calendar/events",
        json=_event_body(title="   "),
        headers=alice.headers,
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_only_creator_or_manager_changes_event(client: httpx.AsyncClient, alice, bob) -> None:
    family_id, _ = await _family(client, alice, bob)
    base = f"/api/v1/families/{family_id}/calendar/events"
    alices = await _create_event(client, family_id, alice, title="Parents evening")
    bobs = await _create_event(client, family_id, bob, title="Football")

    r = await client.put(
        f"{base}/{alices['id']}", json=_event_body(title="Mine now"), headers=bob.headers
    )
    assert r.status_code == 403
    r = await client.delete(f"{base}/{alices['id']}", headers=bob.headers)
    assert r.status_code == 403

    r = await client.put(
        f"{base}/{bobs['id']}",
        json=_event_body(title="Football final", location="Park"),
        headers=bob.headers,
    )
    assert r.status_code == 200
    assert (r.json()["data"]["title"], r.json()["data"]["location"]) == ("Football final", "Park")

    # The family admin may remove anyone's event.
    r = await client.delete(f"{base}/{bobs['id']}", headers=alice.headers)
    assert r.status_code == 200
    r = await client.get(f"{base}/{bobs['id']}", headers=bob.headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_attendee_responses(client: httpx.AsyncClient, alice, bob) -> None:
    family_id, members = await _family(client, alice, bob)
    event = await _create_event(client, family_id, alice, attendee_member_ids=[members["bob"]])
    base = f"/api/v1/families/{family_id}/calendar/events/{event['id']}"

    r = await client.put(
        f"{base}/response",
        json={"response": "Accepted", "note": "bringing cake"},
        headers=bob.headers,
    )
    assert r.status_code == 200
    answer = r.json()["data"]
    assert (answer["response"], answer["note"]) == ("Accepted", "bringing cake")
    assert answer["responded_at"] is not None

    r = await client.get("/api/v1/notifications", headers=alice.headers)
    assert "Event response" in {n["title"] for n in r.json()["data"]}

    # alice is not on the guest list herself.
    r = await client.put(f"{base}/response", json={"response": "Accepted"}, headers=alice.headers)
    assert r.status_code == 404

    r = await client.put(
        f"{base}/response",
        json={"response": "Declined", "family_member_id": members["alice"]},
        headers=bob.headers,
    )
    assert r.status_code == 403

    r = await client.put(
        f"{base}/response",
        json={"response": "Tentative", "family_member_id": members["bob"]},
        headers=alice.headers,
    )
    assert r.status_code == 200
    assert r.json()["data"]["response"] == "Tentative"

    r = await client.delete(f"{base}/attendees/{members['bob']}", headers=bob.headers)
    assert r.status_code == 403
    r = await client.delete(f"{base}/attendees/{members['bob']}", headers=alice.headers)
    assert r.status_code == 200
    r = await client.get(f"{base}/attendees", headers=alice.headers)
    assert r.json()["data"] == []
    r = await client.delete(f"{base}/attendees/{members['bob']}", headers=alice.headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_update_replaces_guest_list(client: httpx.AsyncClient, alice, bob) -> None:
    carol = await register(client, "carol")
    family_id, members = await _family(client, alice, bob, carol)
    event = await _create_event(client, family_id, alice, attendee_member_ids=[members["bob"]])
    base = f"/api/v1/families/{family_id}/calendar/events/{event['id']}"
    await client.put(f"{base}/response", json={"response": "Accepted"}, headers=bob.headers)

    r = await client.put(
        base,
        json=_event_body(attendee_member_ids=[members["bob"], members["carol"]]),
        headers=alice.headers,
    )
    responses = {a["username"]: a["response"] for a in r.json()["data"]["attendees"]}
    assert responses == {"bob": "Accepted", "carol": "Pending"}

    # Omitting the list keeps the guests.
    r = await client.put(base, json=_event_body(title="Dentist at 4"), headers=alice.headers)
    assert len(r.json()["data"]["attendees"]) == 2

    r = await client.post(f"/api/v1/families/{family_id}/leave", headers=carol.headers)
    assert r.status_code == 200
    r = await client.get(f"{base}/attendees", headers=alice.headers)
    assert [a["username"] for a in r.json()["data"]] == ["bob"]

    r = await client.put(base, json=_event_body(attendee_member_ids=[]), headers=alice.headers)
    assert r.json()["data"]["attendees"] == []


@pytest.mark.asyncio
async def test_range_and_today(client: httpx.AsyncClient, alice) -> None:
    family_id, _ = await _family(client, alice)
    base = f"/api/v1/families/{family_id}/calendar/events"
    soon = await _create_event(client, family_id, alice, title="Soon", hours_from_now=0)
    later = await _create_event(client, family_id, alice, title="Later", hours_from_now=24 * 10)

    now = utcnow()
    r = await client.get(
        f"{base}/range",
        params={
            "start": (now + timedelta(days=9)).isoformat(),
            "end": (now + timedelta(days=11)).isoformat(),
        },
        headers=alice.headers,
    )
    assert [e["id"] for e in r.json()["data"]] == [later["id"]]

    r = await client.get(f"{base}/today", headers=alice.headers)
    assert [e["id"] for e in r.json()["data"]] == [soon["id"]]

    r = await client.get(
        f"{base}/range",
        params={"start": now.isoformat(), "end": (now - timedelta(days=1)).isoformat()},
        headers=alice.headers,
    )
    assert r.status_code == 400
