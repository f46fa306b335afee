"""
tests.test_batch

Multi-task create/read/update/delete and per-item status results.
"""

from __future__ import annotations

import uuid

import httpx
import pytest

from tasktracker_api.api.app import create_app

from conftest import create_task, make_settings, register


@pytest.mark.asyncio
async def test_batch_create_and_get(client: httpx.AsyncClient, alice) -> None:
    r = await client.post(
        "/api/v1/batch/tasks",
        json=[{"title": "one"}, {"title": "two", "priority": "Critical"}],
        headers=alice.headers,
    )
    assert r.status_code == 201
    created = r.json()["data"]
    assert [t["title"] for t in created] == ["one", "two"]

    ids = ",".join([created[0]["id"], "not-a-uuid", created[1]["id"]])
    r = await client.get("/api/v1/batch/tasks", params={"ids": ids}, headers=alice.headers)
    assert r.status_code == 200
    assert {t["id"] for t in r.json()["data"]} == {t["id"] for t in created}


@pytest.mark.asyncio
async def test_batch_rejects_empty_and_invalid(client: httpx.AsyncClient, alice) -> None:
    r = await client.post("/api/v1/batch/tasks", json=[], headers=alice.headers)
    assert r.status_code == 400

    r = await client.get("/api/v1/batch/tasks", headers=alice.headers)
    assert r.status_code == 400
    assert r.json()["message"] == "No task IDs provided"

    r = await client.get("/api/v1/batch/tasks", params={"ids": "x,y"}, headers=alice.headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid task IDs"


@pytest.mark.asyncio
async def test_batch_create_is_atomic(client: httpx.AsyncClient, alice) -> None:
    r = await client.post(
        "/api/v1/batch/tasks",
        json=[{"title": "ok"}, {"title": "bad", "category_id": str(uuid.uuid4())}],
        headers=alice.headers,
    )
    assert r.status_code == 404

    r = await client.get("/api/v1/tasks", headers=alice.headers)
    assert r.json()["data"] == []


@pytest.mark.asyncio
async def test_batch_size_limit(tmp_path) -> None:
    app = create_app(settings=make_settings(tmp_path, max_batch_size=2))
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            user = await register(client, "batcher")
            r = await client.post(
                "/api/v1/batch/tasks",
                json=[{"title": str(i)} for i in range(3)],
                headers=user.headers,
            )
            assert r.status_code == 400
            assert "maximum" in r.json()["message"]


@pytest.mark.asyncio
async def test_batch_update_only_touches_owned(client: httpx.AsyncClient, alice, bob) -> None:
    mine = await create_task(client, alice, title="mine")
    theirs = await create_task(client, bob, title="theirs")

    r = await client.put(
        "/api/v1/batch/tasks",
        json=[
            {"id": mine["id"], "priority": "High"},
            {"id": theirs["id"], "priority": "High"},
        ],
        headers=alice.headers,
    )
    assert r.status_code == 200
    updated = r.json()["data"]
    assert [t["id"] for t in updated] == [mine["id"]]
    assert updated[0]["priority"] == "High"
    assert updated[0]["title"] == "mine"

    r = await client.put(
        "/api/v1/batch/tasks",
        json=[{"id": theirs["id"], "title": "stolen"}],
        headers=alice.headers,
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_batch_status_reports_per_item(client: httpx.AsyncClient, alice) -> None:
    task = await create_task(client, alice)
    missing = str(uuid.uuid4())

    r = await client.put(
        "/api/v1/batch/tasks/status",
        json={"task_ids": [task["id"], missing], "status": "Completed"},
        headers=alice.headers,
    )
    assert r.status_code == 200
    results = {res["task_id"]: res for res in r.json()["data"]}
    assert results[task["id"]]["success"] is True
    assert results[task["id"]]["previous_status"] == "NotStarted"
    assert results[task["id"]]["new_status"] == "Completed"
    assert results[missing]["success"] is False
    assert results[missing]["error"] == "Task not found"
    assert r.json()["message"] == "1 of 2 task(s) updated"


@pytest.mark.asyncio
async def test_batch_delete_counts_owned_only(client: httpx.AsyncClient, alice, bob) -> None:
    a1 = await create_task(client, alice)
    a2 = await create_task(client, alice)
    b1 = await create_task(client, bob)

    r = await client.delete(
        "/api/v1/batch/tasks",
        params={"ids": ",".join([a1["id"], a2["id"], b1["id"]])},
        headers=alice.headers,
    )
    assert r.status_code == 200
    assert r.json()["data"] == 2

    r = await client.get(f"/api/v1/tasks/{b1['id']}", headers=bob.headers)
    assert r.status_code == 200
