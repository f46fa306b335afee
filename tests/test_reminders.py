"""
tests.test_reminders

Reminder scheduling, snooze/complete transitions and due processing.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import httpx
import pytest

from tasktracker_api.db.models import RepeatFrequency
from tasktracker_api.services.reminder_service import add_months, next_occurrence

from conftest import create_task


def _iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


async def _reminder(client: httpx.AsyncClient, account, when: datetime, **fields) -> dict:
    body = {"title": "Call", "reminder_time": _iso(when), **fields}
    r = await client.post("/api/v1/reminders", json=body, headers=account.headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def test_add_months_clamps_day() -> None:
    assert add_months(datetime(2024, 1, 31, 9), 1) == datetime(2024, 2, 29, 9)
    assert add_months(datetime(2023, 12, 15), 1) == datetime(2024, 1, 15)


def test_next_occurrence() -> None:
    start = datetime(2024, 3, 1, 8)
    assert next_occurrence(start, RepeatFrequency.daily) == datetime(2024, 3, 2, 8)
    assert next_occurrence(start, RepeatFrequency.weekly) == datetime(2024, 3, 8, 8)
    assert next_occurrence(start, RepeatFrequency.monthly) == datetime(2024, 4, 1, 8)
    with pytest.raises(ValueError):
        next_occurrence(start, RepeatFrequency.none)


@pytest.mark.asyncio
async def test_reminder_for_foreign_task_forbidden(client: httpx.AsyncClient, alice, bob) -> None:
    task = await create_task(client, bob)
    r = await client.post(
        "/api/v1/reminders",
        json={
            "title": "Nope",
            "reminder_time": _iso(datetime.now(tz=UTC) + timedelta(hours=1)),
            "task_id": task["id"],
        },
        headers=alice.headers,
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_upcoming_and_task_scoped(client: httpx.AsyncClient, alice) -> None:
    now = datetime.now(tz=UTC)
    task = await create_task(client, alice)
    soon = await _reminder(client, alice, now + timedelta(days=1), task_id=task["id"])
    await _reminder(client, alice, now + timedelta(days=20))

    r = await client.get("/api/v1/reminders/upcoming", params={"days": 7}, headers=alice.headers)
    assert [x["id"] for x in r.json()["data"]] == [soon["id"]]

    r = await client.get(f"/api/v1/reminders/task/{task['id']}", headers=alice.headers)
    assert [x["id"] for x in r.json()["data"]] == [soon["id"]]

    r = await client.get("/api/v1/reminders/upcoming", params={"days": 0}, headers=alice.headers)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_complete_one_off_and_repeating(client: httpx.AsyncClient, alice) -> None:
    now = datetime.now(tz=UTC)
    once = await _reminder(client, alice, now - timedelta(minutes=5))
    daily = await _reminder(client, alice, now - timedelta(hours=1), repeat_frequency="Daily")

    r = await client.post(f"/api/v1/reminders/{once['id']}/complete", headers=alice.headers)
    assert r.json()["data"]["status"] == "Completed"
    assert r.json()["data"]["completed_at"] is not None

    r = await client.post(f"/api/v1/reminders/{once['id']}/complete", headers=alice.headers)
    assert r.status_code == 400

    r = await client.post(f"/api/v1/reminders/{daily['id']}/complete", headers=alice.headers)
    data = r.json()["data"]
    assert data["status"] == "Pending"
    assert datetime.fromisoformat(data["reminder_time"]) > now.replace(tzinfo=None)


@pytest.mark.asyncio
async def test_snooze(client: httpx.AsyncClient, alice) -> None:
    reminder = await _reminder(client, alice, datetime.now(tz=UTC) - timedelta(minutes=1))
    r = await client.post(
        f"/api/v1/reminders/{reminder['id']}/snooze", json={"minutes": 15}, headers=alice.headers
    )
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "Snoozed"

    r = await client.get("/api/v1/reminders/due", headers=alice.headers)
    assert r.json()["data"] == []

    r = await client.post(
        f"/api/v1/reminders/{reminder['id']}/snooze", json={"minutes": 0}, headers=alice.headers
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_process_due_notifies(client: httpx.AsyncClient, alice) -> None:
    now = datetime.now(tz=UTC)
    due = await _reminder(client, alice, now - timedelta(minutes=1), title="Water plants")
    await _reminder(client, alice, now + timedelta(hours=3))

    r = await client.post("/api/v1/reminders/process-due", headers=alice.headers)
    assert r.status_code == 200
    assert [x["id"] for x in r.json()["data"]] == [due["id"]]

    r = await client.get("/api/v1/notifications", headers=alice.headers)
    titles = [n["title"] for n in r.json()["data"]]
    assert "Reminder: Water plants" in titles

    r = await client.get(
        "/api/v1/reminders", params={"status": "Completed"}, headers=alice.headers
    )
    assert [x["id"] for x in r.json()["data"]] == [due["id"]]
