"""
tests.test_tasks

Task CRUD, ownership, status transitions and date-window views.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from conftest import create_task


def _iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


@pytest.mark.asyncio
async def test_create_and_get_task(client: httpx.AsyncClient, alice) -> None:
    task = await create_task(client, alice, title="  Buy milk  ", priority="High")
    assert task["title"] == "Buy milk"
    assert task["status"] == "NotStarted"
    assert task["priority"] == "High"
    assert task["user_id"] == str(alice.id)
    assert task["completed_at"] is None

    r = await client.get(f"/api/v1/tasks/{task['id']}", headers=alice.headers)
    assert r.status_code == 200
    assert r.json()["data"]["id"] == task["id"]


@pytest.mark.asyncio
async def test_create_task_requires_title(client: httpx.AsyncClient, alice) -> None:
    r = await client.post("/api/v1/tasks", json={"title": ""}, headers=alice.headers)
    assert r.status_code == 400
    assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_other_users_task_is_not_found(client: httpx.AsyncClient, alice, bob) -> None:
    task = await create_task(client, alice)

    r = await client.get(f"/api/v1/tasks/{task['id']}", headers=bob.headers)
    assert r.status_code == 404

    r = await client.put(
        f"/api/v1/tasks/{task['id']}", json={"title": "hijacked"}, headers=bob.headers
    )
    assert r.status_code == 404

    r = await client.delete(f"/api/v1/tasks/{task['id']}", headers=bob.headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_foreign_category_is_forbidden(client: httpx.AsyncClient, alice, bob) -> None:
    r = await client.post("/api/v1/categories", json={"name": "Work"}, headers=bob.headers)
    category_id = r.json()["data"]["id"]

    r = await client.post(
        "/api/v1/tasks", json={"title": "T", "category_id": category_id}, headers=alice.headers
    )
    assert r.status_code == 403

    r = await client.post(
        "/api/v1/tasks",
        json={"title": "T", "category_id": str(uuid.uuid4())},
        headers=alice.headers,
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_update_task_replaces_fields(client: httpx.AsyncClient, alice) -> None:
    task = await create_task(client, alice, description="old")
    r = await client.put(
        f"/api/v1/tasks/{task['id']}",
        json={"title": "New title", "priority": "Low", "status": "InProgress"},
        headers=alice.headers,
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["title"] == "New title"
    assert data["description"] is None
    assert data["priority"] == "Low"
    assert data["status"] == "InProgress"


@pytest.mark.asyncio
async def test_completion_stamps_and_awards_points(client: httpx.AsyncClient, alice) -> None:
    task = await create_task(client, alice, priority="Medium")

    r = await client.put(
        f"/api/v1/tasks/{task['id']}/status", json={"status": "Completed"}, headers=alice.headers
    )
    assert r.status_code == 200
    assert r.json()["data"]["completed_at"] is not None

    r = await client.get("/api/v1/gamification/transactions", headers=alice.headers)
    kinds = [(t["transaction_type"], t["points"]) for t in r.json()["data"]]
    assert ("task_completion", 10) in kinds

    # Re-completing an already completed task does not award again.
    await client.put(
        f"/api/v1/tasks/{task['id']}/status", json={"status": "Completed"}, headers=alice.headers
    )
    r = await client.get("/api/v1/gamification/transactions", headers=alice.headers)
    completions = [t for t in r.json()["data"] if t["transaction_type"] == "task_completion"]
    assert len(completions) == 1

    r = await client.put(
        f"/api/v1/tasks/{task['id']}/status", json={"status": "InProgress"}, headers=alice.headers
    )
    assert r.json()["data"]["completed_at"] is None


@pytest.mark.asyncio
async def test_create_completed_task_is_stamped(client: httpx.AsyncClient, alice) -> None:
    task = await create_task(client, alice, status="Completed")
    assert task["status"] == "Completed"
    assert task["completed_at"] is not None


@pytest.mark.asyncio
async def test_list_filters(client: httpx.AsyncClient, alice, bob) -> None:
    await create_task(client, alice, title="a", priority="High")
    await create_task(client, alice, title="b", priority="Low", status="InProgress")
    await create_task(client, bob, title="c", priority="High")

    r = await client.get("/api/v1/tasks", headers=alice.headers)
    assert {t["title"] for t in r.json()["data"]} == {"a", "b"}

    r = await client.get("/api/v1/tasks", params={"priority": "High"}, headers=alice.headers)
    assert [t["title"] for t in r.json()["data"]] == ["a"]

    r = await client.get("/api/v1/tasks/status/InProgress", headers=alice.headers)
    assert [t["title"] for t in r.json()["data"]] == ["b"]


@pytest.mark.asyncio
async def test_paged_with_search_and_sort(client: httpx.AsyncClient, alice) -> None:
    for title in ("alpha report", "beta report", "gamma", "delta report"):
        await create_task(client, alice, title=title)

    r = await client.get(
        "/api/v1/tasks/paged",
        params={
            "page_number": 1,
            "page_size": 2,
            "search_term": "report",
            "sort_by": "title",
            "ascending": "true",
        },
        headers=alice.headers,
    )
    assert r.status_code == 200
    page = r.json()["data"]
    assert page["total_count"] == 3
    assert page["total_pages"] == 2
    assert page["has_next_page"] is True
    assert page["has_previous_page"] is False
    assert [t["title"] for t in page["items"]] == ["alpha report", "beta report"]

    r = await client.get(
        "/api/v1/tasks/paged", params={"sort_by": "nonsense"}, headers=alice.headers
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_due_windows(client: httpx.AsyncClient, alice) -> None:
    now = datetime.now(tz=UTC)
    overdue = await create_task(client, alice, title="late", due_date=_iso(now - timedelta(days=3)))
    await create_task(client, alice, title="today", due_date=_iso(now.replace(hour=12, minute=0)))
    await create_task(client, alice, title="someday", due_date=_iso(now + timedelta(days=30)))

    r = await client.get("/api/v1/tasks/overdue", headers=alice.headers)
    assert [t["id"] for t in r.json()["data"]] == [overdue["id"]]

    r = await client.get("/api/v1/tasks/due-today", headers=alice.headers)
    assert [t["title"] for t in r.json()["data"]] == ["today"]

    r = await client.get("/api/v1/tasks/due-this-week", headers=alice.headers)
    assert "someday" not in {t["title"] for t in r.json()["data"]}

    start = (now + timedelta(days=29)).date().isoformat()
    end = (now + timedelta(days=31)).date().isoformat()
    r = await client.get(
        "/api/v1/tasks/due-date-range", params={"start": start, "end": end}, headers=alice.headers
    )
    assert [t["title"] for t in r.json()["data"]] == ["someday"]

    r = await client.get(
        "/api/v1/tasks/due-date-range", params={"start": end, "end": start}, headers=alice.headers
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_complete_batch_skips_foreign_tasks(client: httpx.AsyncClient, alice, bob) -> None:
    mine = await create_task(client, alice)
    theirs = await create_task(client, bob)

    r = await client.post(
        "/api/v1/tasks/complete-batch",
        json={"task_ids": [mine["id"], theirs["id"]]},
        headers=alice.headers,
    )
    assert r.status_code == 200
    assert [t["id"] for t in r.json()["data"]] == [mine["id"]]

    r = await client.get(f"/api/v1/tasks/{theirs['id']}", headers=bob.headers)
    assert r.json()["data"]["status"] == "NotStarted"


@pytest.mark.asyncio
async def test_task_tags(client: httpx.AsyncClient, alice) -> None:
    t1 = (await client.post("/api/v1/tags", json={"name": "home"}, headers=alice.headers)).json()
    t2 = (await client.post("/api/v1/tags", json={"name": "urgent"}, headers=alice.headers)).json()
    tag1, tag2 = t1["data"]["id"], t2["data"]["id"]
    task = await create_task(client, alice, tag_ids=[tag1])
    assert [t["name"] for t in task["tags"]] == ["home"]

    r = await client.post(f"/api/v1/tasks/{task['id']}/tags/{tag2}", headers=alice.headers)
    assert {t["name"] for t in r.json()["data"]} == {"home", "urgent"}

    r = await client.get(f"/api/v1/tasks/tags/{tag2}", headers=alice.headers)
    assert [t["id"] for t in r.json()["data"]] == [task["id"]]

    r = await client.delete(f"/api/v1/tasks/{task['id']}/tags/{tag1}", headers=alice.headers)
    assert [t["name"] for t in r.json()["data"]] == ["urgent"]

    r = await client.delete(f"/api/v1/tasks/{task['id']}/tags/{tag1}", headers=alice.headers)
    assert r.status_code == 404

    r = await client.put(
        f"/api/v1/tasks/{task['id']}/tags", json={"tag_ids": []}, headers=alice.headers
    )
    assert r.json()["data"] == []


@pytest.mark.asyncio
async def test_statistics(client: httpx.AsyncClient, alice) -> None:
    await create_task(client, alice, status="Completed")
    await create_task(client, alice, status="InProgress")
    await create_task(client, alice, status="OnHold")
    await create_task(client, alice)

    r = await client.get("/api/v1/tasks/statistics", headers=alice.headers)
    assert r.status_code == 200
    stats = r.json()["data"]
    assert stats["total"] == 4
    assert stats["completed"] == 1
    assert stats["in_progress"] == 1
    assert stats["not_started"] == 1
    assert stats["other"] == 1
    assert stats["completion_rate"] == 25.0
    assert len(stats["recently_completed"]) == 1


@pytest.mark.asyncio
async def test_delete_task(client: httpx.AsyncClient, alice) -> None:
    task = await create_task(client, alice)
    r = await client.delete(f"/api/v1/tasks/{task['id']}", headers=alice.headers)
    assert r.status_code == 200
    r = await client.get(f"/api/v1/tasks/{task['id']}", headers=alice.headers)
    assert r.status_code == 404
