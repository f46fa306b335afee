"""
tests.test_rate_limit

Sliding-window limiter behavior and the 429 envelope.
"""

from __future__ import annotations

import httpx
import pytest

from tasktracker_api.api.app import create_app
from tasktracker_api.api.rate_limit import SlidingWindowRateLimiter

from conftest import make_settings


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_window_slides() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(clock=clock)

    assert limiter.hit("k", max_requests=2, period_seconds=10) is None
    clock.now += 4
    assert limiter.hit("k", max_requests=2, period_seconds=10) is None
    assert limiter.hit("k", max_requests=2, period_seconds=10) == pytest.approx(6.0)
    assert limiter.hit("other", max_requests=2, period_seconds=10) is None

    clock.now += 6
    assert limiter.hit("k", max_requests=2, period_seconds=10) is None

    limiter.reset()
    assert limiter.hit("k", max_requests=1, period_seconds=10) is None


@pytest.mark.asyncio
async def test_login_is_rate_limited(tmp_path) -> None:
    app = create_app(settings=make_settings(tmp_path, rate_limit_enabled=True))
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            body = {"username_or_email": "nobody", "password": "wrong-password"}
            for _ in range(10):
                r = await client.post("/api/v1/auth/login", json=body)
                assert r.status_code == 401

            r = await client.post("/api/v1/auth/login", json=body)
            assert r.status_code == 429
            assert int(r.headers["retry-after"]) >= 1
            assert r.json()["message"] == "Rate limit exceeded: 10 requests per 60 seconds"

            # Other routes keep their own window.
            r = await client.get("/healthz")
            assert r.status_code == 200


def test_idle_keys_are_dropped() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(clock=clock, sweep_interval=30)

    limiter.hit("a", max_requests=5, period_seconds=10)
    limiter.hit("b", max_requests=5, period_seconds=120)
    assert len(limiter) == 2

    clock.now += 31
    limiter.hit("c", max_requests=5, period_seconds=10)
    # "a" aged out; "b" still has a request inside its two-minute window.
    assert len(limiter) == 2
    assert limiter.hit("b", max_requests=1, period_seconds=120) is not None

    clock.now += 120
    limiter.hit("c", max_requests=5, period_seconds=10)
    assert len(limiter) == 1
