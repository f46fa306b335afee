"""
tests.test_errors

Exception handlers render every failure in the response envelope.
"""

from __future__ import annotations

import json

import httpx
import pytest
from fastapi import HTTPException

from tasktracker_api.api.app import create_app
from tasktracker_api.api.exception_handlers import domain_error_handler, http_exception_handler
from tasktracker_api.errors import ConflictError, RateLimitExceededError

from conftest import make_settings


@pytest.mark.asyncio
async def test_domain_errors_map_to_status() -> None:
    response = await domain_error_handler(None, ConflictError("Name taken"))
    body = json.loads(response.body)
    assert response.status_code == 409
    assert body == {
        "success": False,
        "data": None,
        "message": "Name taken",
        "errors": [],
        "status_code": 409,
    }

    response = await domain_error_handler(None, RateLimitExceededError("Slow down", retry_after=7))
    assert response.status_code == 429
    assert response.headers["retry-after"] == "7"


@pytest.mark.asyncio
async def test_http_exception_keeps_headers() -> None:
    exc = HTTPException(
        status_code=401, detail="Missing token", headers={"WWW-Authenticate": "Bearer"}
    )
    response = await http_exception_handler(None, exc)
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert json.loads(response.body)["message"] == "Missing token"


@pytest.mark.asyncio
async def test_unexpected_error_is_generic_500(tmp_path) -> None:
    app = create_app(settings=make_settings(tmp_path))

    @app.get("/explode")
    async def explode() -> None:
        raise RuntimeError("secret internals")

    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            r = await client.get("/explode")

    assert r.status_code == 500
    body = r.json()
    assert body["success"] is False
    assert "secret" not in body["message"]
