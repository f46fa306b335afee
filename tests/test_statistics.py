"""
tests.test_statistics

Productivity statistics, date-range analytics and the dashboard.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import httpx
import pytest

from conftest import create_task


@pytest.mark.asyncio
async def test_distributions_include_every_value(client: httpx.AsyncClient, alice) -> None:
    await create_task(client, alice, priority="High", status="Completed")
    await create_task(client, alice, priority="Low")

    r = await client.get("/api/v1/statistics/status-distribution", headers=alice.headers)
    dist = r.json()["data"]
    assert set(dist) == {"NotStarted", "InProgress", "OnHold", "Pending", "Completed", "Cancelled"}
    assert dist["Completed"] == 1
    assert dist["Cancelled"] == 0

    r = await client.get("/api/v1/statistics/priority-distribution", headers=alice.headers)
    assert r.json()["data"] == {"Low": 1, "Medium": 0, "High": 1, "Critical": 0}

    r = await client.get("/api/v1/statistics/completion-rate", headers=alice.headers)
    assert r.json()["data"] == 50.0


@pytest.mark.asyncio
async def test_summary(client: httpx.AsyncClient, alice) -> None:
    r = await client.post("/api/v1/categories", json={"name": "Work"}, headers=alice.headers)
    work = r.json()["data"]["id"]
    await create_task(client, alice, category_id=work, status="Completed")
    await create_task(client, alice, category_id=work)
    two_days_ago = (datetime.now(tz=UTC) - timedelta(days=2)).isoformat()
    await create_task(client, alice, due_date=two_days_ago)

    r = await client.get("/api/v1/statistics", headers=alice.headers)
    summary = r.json()["data"]
    assert summary["by_category"][0]["name"] == "Work"
    assert summary["by_category"][0]["completion_rate"] == 50.0
    assert summary["overdue"]["count"] == 1
    assert len(summary["productivity_trend"]) == 7
    assert summary["productivity_trend"][-1]["created"] == 3
    assert summary["average_completion_hours"] is not None


@pytest.mark.asyncio
async def test_completion_time_empty(client: httpx.AsyncClient, alice) -> None:
    r = await client.get("/api/v1/statistics/completion-time", headers=alice.headers)
    assert r.status_code == 200
    assert r.json()["data"] is None


@pytest.mark.asyncio
async def test_productivity_range(client: httpx.AsyncClient, alice) -> None:
    await create_task(client, alice, status="Completed")
    await create_task(client, alice)
    end = datetime.now(tz=UTC).date()
    start = end - timedelta(days=2)

    r = await client.get(
        "/api/v1/analytics/productivity",
        params={"start": start.isoformat(), "end": end.isoformat()},
        headers=alice.headers,
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert len(data["daily"]) == 3
    assert data["total_created"] == 2
    assert data["total_completed"] == 1
    assert data["completion_ratio"] == 0.5

    r = await client.get(
        "/api/v1/analytics/productivity",
        params={"start": end.isoformat(), "end": start.isoformat()},
        headers=alice.headers,
    )
    assert r.status_code == 400

    r = await client.get(
        "/api/v1/analytics/productivity",
        params={"start": (end - timedelta(days=400)).isoformat(), "end": end.isoformat()},
        headers=alice.headers,
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_dashboard(client: httpx.AsyncClient, alice) -> None:
    await create_task(client, alice, status="InProgress")
    reminder_time = (datetime.now(tz=UTC) + timedelta(hours=2)).isoformat()
    await client.post(
        "/api/v1/reminders",
        json={"title": "Stretch", "reminder_time": reminder_time},
        headers=alice.headers,
    )

    r = await client.get("/api/v1/dashboard", headers=alice.headers)
    assert r.status_code == 200
    dash = r.json()["data"]
    assert dash["tasks"]["total"] == 1
    assert dash["tasks"]["in_progress"] == 1
    assert [x["title"] for x in dash["upcoming_reminders"]] == ["Stretch"]
    assert len(dash["recent_tasks"]) == 1
    # First task unlocks an achievement, which notifies.
    assert dash["unread_notifications"] == 1
    assert dash["progress"]["total_points_earned"] == 5
