"""
tests.test_categories

Category CRUD, per-user name uniqueness and task detachment on delete.
"""

from __future__ import annotations

import httpx
import pytest

from conftest import create_task


async def _category(client: httpx.AsyncClient, account, name: str, **fields) -> dict:
    r = await client.post(
        "/api/v1/categories", json={"name": name, **fields}, headers=account.headers
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]


@pytest.mark.asyncio
async def test_create_and_conflict(client: httpx.AsyncClient, alice, bob) -> None:
    work = await _category(client, alice, "Work", color="#FF8800")
    assert work["color"] == "#FF8800"

    r = await client.post("/api/v1/categories", json={"name": "Work"}, headers=alice.headers)
    assert r.status_code == 409

    # Names are scoped per user.
    await _category(client, bob, "Work")


@pytest.mark.asyncio
async def test_invalid_color_rejected(client: httpx.AsyncClient, alice) -> None:
    r = await client.post(
        "/api/v1/categories", json={"name": "Home", "color": "orange"}, headers=alice.headers
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_other_users_category_not_found(client: httpx.AsyncClient, alice, bob) -> None:
    work = await _category(client, alice, "Work")
    r = await client.get(f"/api/v1/categories/{work['id']}", headers=bob.headers)
    assert r.status_code == 404
    r = await client.delete(f"/api/v1/categories/{work['id']}", headers=bob.headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_rename_conflict(client: httpx.AsyncClient, alice) -> None:
    await _category(client, alice, "Work")
    home = await _category(client, alice, "Home")

    r = await client.put(
        f"/api/v1/categories/{home['id']}", json={"name": "Work"}, headers=alice.headers
    )
    assert r.status_code == 409

    r = await client.put(
        f"/api/v1/categories/{home['id']}",
        json={"name": "House", "description": "chores"},
        headers=alice.headers,
    )
    assert r.status_code == 200
    assert r.json()["data"]["description"] == "chores"


@pytest.mark.asyncio
async def test_delete_detaches_tasks(client: httpx.AsyncClient, alice) -> None:
    work = await _category(client, alice, "Work")
    task = await create_task(client, alice, category_id=work["id"])

    r = await client.get(f"/api/v1/categories/{work['id']}/tasks-count", headers=alice.headers)
    assert r.json()["data"] == 1

    r = await client.delete(f"/api/v1/categories/{work['id']}", headers=alice.headers)
    assert r.status_code == 200
    assert "1 task(s) detached" in r.json()["message"]

    r = await client.get(f"/api/v1/tasks/{task['id']}", headers=alice.headers)
    assert r.status_code == 200
    assert r.json()["data"]["category_id"] is None


@pytest.mark.asyncio
async def test_search_paged_and_statistics(client: httpx.AsyncClient, alice) -> None:
    work = await _category(client, alice, "Work")
    await _category(client, alice, "Workout")
    await _category(client, alice, "Garden")
    await create_task(client, alice, category_id=work["id"])
    await create_task(client, alice, category_id=work["id"])

    r = await client.get(
        "/api/v1/categories/search", params={"term": "work"}, headers=alice.headers
    )
    assert {c["name"] for c in r.json()["data"]} == {"Work", "Workout"}

    r = await client.get(
        "/api/v1/categories/paged",
        params={"page_number": 2, "page_size": 2},
        headers=alice.headers,
    )
    page = r.json()["data"]
    assert page["total_count"] == 3
    assert len(page["items"]) == 1
    assert page["has_previous_page"] is True

    r = await client.get("/api/v1/categories/statistics", headers=alice.headers)
    counts = {c["name"]: c["count"] for c in r.json()["data"]}
    assert counts["Work"] == 2


@pytest.mark.asyncio
async def test_first_category_unlocks_achievement(client: httpx.AsyncClient, alice) -> None:
    await _category(client, alice, "Work")
    r = await client.get("/api/v1/gamification/achievements/unlocked", headers=alice.headers)
    keys = {ua["achievement"]["key"] for ua in r.json()["data"]}
    assert "first_category_created" in keys
