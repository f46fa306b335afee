"""
tests.conftest

Shared fixtures: an app bound to a throwaway SQLite file, an in-process HTTP
client, and helpers to register users and change their platform role.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy import update

from tasktracker_api.api.app import create_app
from tasktracker_api.db.models import User, UserRole
from tasktracker_api.settings import Settings

PASSWORD = "correct-horse-1"


@dataclass
class Account:
    id: uuid.UUID
    username: str
    email: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def make_settings(tmp_path, **overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "env": "test",
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'tasktracker-test.db'}",
        "jwt_secret": "test-secret-with-enough-bytes-for-hs256",
        "bcrypt_rounds": 4,
        "rate_limit_enabled": False,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not drive the lifespan; run it explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def register(client: httpx.AsyncClient, username: str) -> Account:
    email = f"{username}@example.com"
    r = await client.post(
        "/api/v1/auth/register",
        json={"username": username, "email": email, "password": PASSWORD},
    )
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    return Account(
        id=uuid.UUID(data["user"]["id"]),
        username=username,
        email=email,
        token=data["access_token"],
    )


async def login(client: httpx.AsyncClient, username: str) -> str:
    r = await client.post(
        "/api/v1/auth/login", json={"username_or_email": username, "password": PASSWORD}
    )
    assert r.status_code == 200, r.text
    return r.json()["data"]["access_token"]


@pytest.fixture
def make_user(client: httpx.AsyncClient) -> Callable[[str], Awaitable[Account]]:
    async def _make(username: str) -> Account:
        return await register(client, username)

    return _make


@pytest_asyncio.fixture
async def alice(client: httpx.AsyncClient) -> Account:
    return await register(client, "alice")


@pytest_asyncio.fixture
async def bob(client: httpx.AsyncClient) -> Account:
    return await register(client, "bob")


@pytest.fixture
def set_role(app: FastAPI, client: httpx.AsyncClient):
    """
    Change a user's platform role directly in the database and return an
    account carrying a freshly issued token (roles are baked into tokens).
    """

    async def _set(account: Account, role: UserRole) -> Account:
        async with app.state.sessionmaker() as session:
            await session.execute(update(User).where(User.id == account.id).values(role=role))
            await session.commit()
        token = await login(client, account.username)
        return Account(id=account.id, username=account.username, email=account.email, token=token)

    return _set


async def create_task(client: httpx.AsyncClient, account: Account, **fields: Any) -> dict[str, Any]:
    body = {"title": "Task", **fields}
    r = await client.post("/api/v1/tasks", json=body, headers=account.headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]
