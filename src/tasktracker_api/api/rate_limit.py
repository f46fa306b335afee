"""
tasktracker_api.api.rate_limit

In-process sliding-window rate limiting.

Responsibilities:
- Track request timestamps per (caller, route) key.
- Expose a dependency factory routes attach as `Depends(rate_limit(n, seconds))`.
"""

from __future__ import annotations

import math
import time
from collections import deque
from collections.abc import Callable

from fastapi import Depends, Request

from tasktracker_api.api.deps import settings_dep
from tasktracker_api.auth.deps import get_optional_principal
from tasktracker_api.auth.models import Principal
from tasktracker_api.errors import RateLimitExceededError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.settings import Settings

log = get_logger(__name__)


def _prune(window: deque[float], cutoff: float) -> None:
    while window and window[0] <= cutoff:
        window.popleft()


class SlidingWindowRateLimiter:
    def __init__(
        self, clock: Callable[[], float] = time.monotonic, *, sweep_interval: float = 60.0
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._last_sweep = clock()
        # key -> (period, request timestamps)
        self._hits: dict[str, tuple[float, deque[float]]] = {}

    def __len__(self) -> int:
        return len(self._hits)

    def hit(self, key: str, *, max_requests: int, period_seconds: float) -> float | None:
        """
        Record one request for `key`.

        Returns None when the request is allowed, otherwise the number of seconds
        until the oldest request in the window expires.
        """

        now = self._clock()
        self._sweep(now)
        entry = self._hits.get(key)
        window = entry[1] if entry is not None else deque()
        _prune(window, now - period_seconds)
        if len(window) >= max_requests:
            return window[0] + period_seconds - now
        window.append(now)
        self._hits[key] = (period_seconds, window)
        return None

    def _sweep(self, now: float) -> None:
        # Drop keys whose callers have gone quiet for a whole window.
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        for key, (period, window) in list(self._hits.items()):
            _prune(window, now - period)
            if not window:
                del self._hits[key]

    def reset(self) -> None:
        self._hits.clear()


def _caller_key(request: Request, principal: Principal | None) -> str:
    if principal is not None:
        return f"user:{principal.subject}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


def rate_limit(max_requests: int, period_seconds: int):
    def _dep(
        request: Request,
        principal: Principal | None = Depends(get_optional_principal),
        settings: Settings = Depends(settings_dep),
    ) -> None:
        if not settings.rate_limit_enabled:
            return
        limiter: SlidingWindowRateLimiter = request.app.state.rate_limiter
        route = request.scope.get("route")
        route_key = getattr(route, "path", request.url.path)
        key = (
            f"{_caller_key(request, principal)}:{request.method}:{route_key}"
            f":{max_requests}/{period_seconds}"
        )
        retry_after = limiter.hit(key, max_requests=max_requests, period_seconds=period_seconds)
        if retry_after is not None:
            log.warning("rate_limited", key=key, limit=max_requests, period=period_seconds)
            raise RateLimitExceededError(
                f"Rate limit exceeded: {max_requests} requests per {period_seconds} seconds",
                retry_after=max(1, math.ceil(retry_after)),
            )

    return _dep


# --- Module Notes -----------------------------------------------------------
# Window state lives in one process. Several workers each enforce their own
# window, so the effective limit scales with the worker count.
