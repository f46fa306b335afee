"""
tests.test_badges

Badge catalog, admin-only management and awarding badges to users.
"""

from __future__ import annotations

import uuid

import httpx
import pytest

from tasktracker_api.db.init_db import BADGE_CATALOG
from tasktracker_api.db.models import UserRole


async def _badge_id(client: httpx.AsyncClient, account, name: str) -> str:
    r = await client.get("/api/v1/badges", headers=account.headers)
    return next(b["id"] for b in r.json()["data"] if b["name"] == name)


async def _award(client: httpx.AsyncClient, admin, user, badge_id: str, **fields):
    return await client.post(
        "/api/v1/badges/award",
        json={"user_id": str(user.id), "badge_id": badge_id, **fields},
        headers=admin.headers,
    )


@pytest.mark.asyncio
async def test_catalog_is_seeded_and_filterable(client: httpx.AsyncClient, alice) -> None:
    r = await client.get("/api/v1/badges", headers=alice.headers)
    assert r.status_code == 200
    assert len(r.json()["data"]) == len(BADGE_CATALOG)

    r = await client.get("/api/v1/badges/category/family", headers=alice.headers)
    assert {b["name"] for b in r.json()["data"]} == {"Helping Hand", "Family Champion"}

    r = await client.get("/api/v1/badges/rarity/Legendary", headers=alice.headers)
    assert [b["name"] for b in r.json()["data"]] == ["Unstoppable"]
    r = await client.get("/api/v1/badges/rarity/Mythic", headers=alice.headers)
    assert r.status_code == 400

    r = await client.get(f"/api/v1/badges/{uuid.uuid4()}", headers=alice.headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_catalog_management_requires_admin(
    client: httpx.AsyncClient, alice, set_role
) -> None:
    body = {"name": "Night Owl", "description": "Finished a task after midnight", "category": "Fun"}
    r = await client.post("/api/v1/badges", json=body, headers=alice.headers)
    assert r.status_code == 403

    admin = await set_role(alice, UserRole.admin)
    r = await client.post("/api/v1/badges", json=body, headers=admin.headers)
    assert r.status_code == 201
    badge = r.json()["data"]
    assert (badge["rarity"], badge["point_value"], badge["is_active"]) == ("Common", 0, True)

    r = await client.post(
        "/api/v1/badges", json={**body, "name": "night owl"}, headers=admin.headers
    )
    assert r.status_code == 409

    r = await client.put(
        f"/api/v1/badges/{badge['id']}",
        json={**body, "rarity": "Rare", "point_value": 30},
        headers=admin.headers,
    )
    assert r.status_code == 200
    assert (r.json()["data"]["rarity"], r.json()["data"]["point_value"]) == ("Rare", 30)

    r = await client.put(
        f"/api/v1/badges/{badge['id']}", json={**body, "name": "Early Bird"}, headers=admin.headers
    )
    assert r.status_code == 409

    r = await client.delete(f"/api/v1/badges/{badge['id']}", headers=admin.headers)
    assert r.status_code == 200
    r = await client.get(f"/api/v1/badges/{badge['id']}", headers=admin.headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_award_credits_points_once(client: httpx.AsyncClient, alice, bob, set_role) -> None:
    admin = await set_role(alice, UserRole.admin)
    clean_sweep = await _badge_id(client, admin, "Clean Sweep")

    r = await _award(client, admin, bob, clean_sweep, note="Board zero!")
    assert r.status_code == 201
    awarded = r.json()["data"]
    assert awarded["badge"]["name"] == "Clean Sweep"
    assert (awarded["is_displayed"], awarded["is_featured"]) == (True, False)
    assert awarded["award_note"] == "Board zero!"

    r = await _award(client, admin, bob, clean_sweep)
    assert r.status_code == 409
    r = await _award(client, admin, bob, str(uuid.uuid4()))
    assert r.status_code == 404

    r = await client.get("/api/v1/gamification/progress", headers=bob.headers)
    assert r.json()["data"]["total_points_earned"] == 50
    r = await client.get("/api/v1/gamification/transactions", headers=bob.headers)
    tx = r.json()["data"][0]
    assert (tx["transaction_type"], tx["description"]) == ("badge", "Earned badge: Clean Sweep")

    r = await client.get("/api/v1/notifications", headers=bob.headers)
    assert "Badge" in {n["notification_type"] for n in r.json()["data"]}

    r = await client.get(f"/api/v1/badges/user/{bob.id}", headers=bob.headers)
    assert r.status_code == 403
    r = await client.get(f"/api/v1/badges/user/{bob.id}", headers=admin.headers)
    assert [ub["id"] for ub in r.json()["data"]] == [awarded["id"]]
    r = await client.post(
        "/api/v1/badges/award",
        json={"user_id": str(admin.id), "badge_id": clean_sweep},
        headers=bob.headers,
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_one_featured_badge_at_a_time(
    client: httpx.AsyncClient, alice, bob, set_role
) -> None:
    admin = await set_role(alice, UserRole.admin)
    first = await _award(client, admin, bob, await _badge_id(client, admin, "Early Bird"))
    second = await _award(client, admin, bob, await _badge_id(client, admin, "Helping Hand"))
    first_id, second_id = first.json()["data"]["id"], second.json()["data"]["id"]

    r = await client.put(
        f"/api/v1/badges/featured/{first_id}", params={"is_featured": True}, headers=bob.headers
    )
    assert r.json()["data"]["is_featured"] is True
    r = await client.put(
        f"/api/v1/badges/featured/{second_id}", params={"is_featured": True}, headers=bob.headers
    )
    assert r.status_code == 200

    r = await client.get("/api/v1/badges/my", headers=bob.headers)
    mine = r.json()["data"]
    assert [ub["id"] for ub in mine if ub["is_featured"]] == [second_id]
    assert mine[0]["id"] == second_id

    r = await client.put(
        f"/api/v1/badges/display/{second_id}", params={"is_displayed": False}, headers=bob.headers
    )
    assert (r.json()["data"]["is_displayed"], r.json()["data"]["is_featured"]) == (False, False)

    # Someone else's award looks like a missing one.
    r = await client.put(
        f"/api/v1/badges/featured/{first_id}", params={"is_featured": True}, headers=admin.headers
    )
    assert r.status_code == 404
