"""
tests.test_admin

Platform user administration and role hierarchy.
"""

from __future__ import annotations

import httpx
import pytest

from tasktracker_api.auth.models import Principal
from tasktracker_api.db.models import UserRole

from conftest import PASSWORD


def test_role_hierarchy() -> None:
    p = Principal(subject="00000000-0000-0000-0000-000000000001", roles=frozenset({"Admin"}))
    assert p.has_at_least(UserRole.developer)
    assert p.has_at_least(UserRole.admin)
    assert not p.has_at_least(UserRole.global_admin)


@pytest.mark.asyncio
async def test_regular_user_cannot_administer(client: httpx.AsyncClient, alice) -> None:
    r = await client.get("/api/v1/admin/users", headers=alice.headers)
    assert r.status_code == 403
    assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_admin_lists_and_gets_users(
    client: httpx.AsyncClient, alice, bob, set_role
) -> None:
    admin = await set_role(alice, UserRole.admin)
    r = await client.get(
        "/api/v1/admin/users", params={"page_size": 1}, headers=admin.headers
    )
    assert r.status_code == 200
    page = r.json()["data"]
    assert page["total_count"] == 2
    assert page["total_pages"] == 2
    assert len(page["items"]) == 1

    r = await client.get(f"/api/v1/admin/users/{bob.id}", headers=admin.headers)
    assert r.json()["data"]["username"] == "bob"


@pytest.mark.asyncio
async def test_only_global_admin_grants_admin(
    client: httpx.AsyncClient, alice, bob, set_role
) -> None:
    admin = await set_role(alice, UserRole.admin)
    r = await client.put(
        f"/api/v1/admin/users/{bob.id}/role", json={"role": "Admin"}, headers=admin.headers
    )
    assert r.status_code == 403

    r = await client.put(
        f"/api/v1/admin/users/{bob.id}/role", json={"role": "Developer"}, headers=admin.headers
    )
    assert r.status_code == 200
    assert r.json()["data"]["role"] == "Developer"

    root = await set_role(alice, UserRole.global_admin)
    r = await client.put(
        f"/api/v1/admin/users/{bob.id}/role", json={"role": "Admin"}, headers=root.headers
    )
    assert r.json()["data"]["role"] == "Admin"


@pytest.mark.asyncio
async def test_deactivate_blocks_login(client: httpx.AsyncClient, alice, bob, set_role) -> None:
    admin = await set_role(alice, UserRole.admin)

    r = await client.put(f"/api/v1/admin/users/{alice.id}/deactivate", headers=admin.headers)
    assert r.status_code == 400

    r = await client.put(f"/api/v1/admin/users/{bob.id}/deactivate", headers=admin.headers)
    assert r.json()["data"]["is_active"] is False

    r = await client.post(
        "/api/v1/auth/login", json={"username_or_email": "bob", "password": PASSWORD}
    )
    assert r.status_code == 401
    assert r.json()["message"] == "Account is deactivated"

    r = await client.put(f"/api/v1/admin/users/{bob.id}/activate", headers=admin.headers)
    assert r.json()["data"]["is_active"] is True
    r = await client.post(
        "/api/v1/auth/login", json={"username_or_email": "bob", "password": PASSWORD}
    )
    assert r.status_code == 200
