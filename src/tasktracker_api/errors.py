"""
tasktracker_api.errors

Domain exception taxonomy.

Responsibilities:
- Give services a small set of exceptions that describe *what* went wrong.
- Carry the HTTP status each exception maps to, so the API layer converts them
  in exactly one place (`api.exception_handlers`).
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, *, errors: list[Any] | None = None) -> None:
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class AuthenticationError(DomainError):
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(DomainError):
    status_code = 403
    default_message = "You do not have access to this resource"


class ValidationError(DomainError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(DomainError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(DomainError):
    status_code = 409
    default_message = "Resource already exists"


class RateLimitExceededError(DomainError):
    status_code = 429
    default_message = "Too many requests"

    def __init__(self, message: str | None = None, *, retry_after: int = 1) -> None:
        super().__init__(message)
        self.retry_after = retry_after
