"""
tests.test_auth

Registration, login, profile and password flows.
"""

from __future__ import annotations

import httpx
import pytest

from conftest import PASSWORD, register


@pytest.mark.asyncio
async def test_register_returns_token_and_regular_role(client: httpx.AsyncClient) -> None:
    r = await client.post(
        "/api/v1/auth/register",
        json={"username": "carol", "email": "carol@example.com", "password": PASSWORD},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["status_code"] == 201
    assert body["data"]["token_type"] == "bearer"
    assert body["data"]["user"]["role"] == "RegularUser"
    assert "password" not in body["data"]["user"]


@pytest.mark.asyncio
async def test_register_duplicate_username_conflicts(client: httpx.AsyncClient, alice) -> None:
    r = await client.post(
        "/api/v1/auth/register",
        json={"username": "alice", "email": "other@example.com", "password": PASSWORD},
    )
    assert r.status_code == 409
    assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_register_rejects_short_password(client: httpx.AsyncClient) -> None:
    r = await client.post(
        "/api/v1/auth/register",
        json={"username": "dave", "email": "dave@example.com", "password": "short"},
    )
    assert r.status_code == 400
    fields = {e["field"] for e in r.json()["errors"]}
    assert "password" in fields


@pytest.mark.asyncio
async def test_login_by_email_and_bad_password(client: httpx.AsyncClient, alice) -> None:
    r = await client.post(
        "/api/v1/auth/login",
        json={"username_or_email": "alice@example.com", "password": PASSWORD},
    )
    assert r.status_code == 200
    assert r.json()["data"]["user"]["username"] == "alice"

    r = await client.post(
        "/api/v1/auth/login", json={"username_or_email": "alice", "password": "wrong-password"}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/v1/auth/me")
    assert r.status_code == 401

    r = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_update_profile(client: httpx.AsyncClient, alice) -> None:
    r = await client.put(
        "/api/v1/auth/me",
        json={"first_name": "Alice", "last_name": "Liddell"},
        headers=alice.headers,
    )
    assert r.status_code == 200
    assert r.json()["data"]["first_name"] == "Alice"

    r = await client.get("/api/v1/auth/me", headers=alice.headers)
    assert r.json()["data"]["last_name"] == "Liddell"


@pytest.mark.asyncio
async def test_update_profile_email_taken(client: httpx.AsyncClient, alice, bob) -> None:
    r = await client.put(
        "/api/v1/auth/me", json={"email": bob.email}, headers=alice.headers
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_change_password(client: httpx.AsyncClient) -> None:
    erin = await register(client, "erin")
    r = await client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "nope-nope", "new_password": "brand-new-pass"},
        headers=erin.headers,
    )
    assert r.status_code == 400

    r = await client.post(
        "/api/v1/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "brand-new-pass"},
        headers=erin.headers,
    )
    assert r.status_code == 200

    r = await client.post(
        "/api/v1/auth/login", json={"username_or_email": "erin", "password": "brand-new-pass"}
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_password_longer_than_bcrypt_limit_is_rejected(client: httpx.AsyncClient) -> None:
    r = await client.post(
        "/api/v1/auth/register",
        json={"username": "frank", "email": "frank@example.com", "password": "a" * 100},
    )
    assert r.status_code == 400
    assert "password" in {e["field"] for e in r.json()["errors"]}

    # 40 characters but 80 bytes once encoded.
    r = await client.post(
        "/api/v1/auth/register",
        json={"username": "frank", "email": "frank@example.com", "password": "é" * 40},
    )
    assert r.status_code == 400

    r = await client.post(
        "/api/v1/auth/register",
        json={"username": "frank", "email": "frank@example.com", "password": "a" * 72},
    )
    assert r.status_code == 201

    r = await client.post(
        "/api/v1/auth/login", json={"username_or_email": "frank", "password": "a" * 100}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_change_password_rejects_overlong(client: httpx.AsyncClient, alice) -> None:
    r = await client.post(
        "/api/v1/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "b" * 73},
        headers=alice.headers,
    )
    assert r.status_code == 400
    assert "new_password" in {e["field"] for e in r.json()["errors"]}
