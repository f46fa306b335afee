"""
tasktracker_api.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings and DB sessions.
- Encapsulate app.state access patterns (settings/sessionmaker/rate limiter).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tasktracker_api.settings import Settings


def settings_dep(request: Request) -> Settings:
    # Settings are attached in `tasktracker_api.api.app.create_app`.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created during app lifespan startup.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


# --- Module Notes -----------------------------------------------------------
# Per-request resources other than the session (principal, rate limit) live in
# `auth.deps` and `api.rate_limit`.
