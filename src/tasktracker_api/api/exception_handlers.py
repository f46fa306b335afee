"""
tasktracker_api.api.exception_handlers

Exception -> envelope conversion.

Responsibilities:
- Map domain errors to their HTTP status with an `ApiResponse` body.
- Render FastAPI request validation errors as 400 with field-level detail.
- Render `HTTPException` raised by dependencies (auth, role checks) in the
  same envelope.
- Log unexpected exceptions and return a generic 500.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktracker_api.api.envelope import fail
from tasktracker_api.errors import DomainError, RateLimitExceededError
from tasktracker_api.observability.logging import get_logger

log = get_logger(__name__)


def _envelope(
    status_code: int,
    message: str,
    errors: list[Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = fail(status_code, message, errors).model_dump(mode="json")
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    log.warning(
        "domain_error",
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        detail=exc.message,
    )
    headers = None
    if isinstance(exc, RateLimitExceededError):
        headers = {"Retry-After": str(exc.retry_after)}
    return _envelope(exc.status_code, exc.message, exc.errors, headers)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return _envelope(400, "Validation failed", errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _envelope(exc.status_code, message, headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", error_type=type(exc).__name__)
    return _envelope(500, "An unexpected error occurred. Please try again later.")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# --- Module Notes -----------------------------------------------------------
# Handlers for `Exception` run in Starlette's ServerErrorMiddleware, outside the
# request middleware, so the request id is no longer bound when they log.
