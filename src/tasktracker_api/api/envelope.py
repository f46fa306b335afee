"""
tasktracker_api.api.envelope

Uniform response envelope.

Responsibilities:
- `ApiResponse[T]`: the body shape of every endpoint, success or failure.
- `PagedResult[T]`: page metadata wrapper used inside `data`.
- Small constructors so routers read as `return ok(data)`.
"""

from __future__ import annotations

import math
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool
    data: T | None = None
    message: str | None = None
    errors: list[Any] = Field(default_factory=list)
    status_code: int = 200


class PagedResult(BaseModel, Generic[T]):
    items: list[T]
    total_count: int
    page_number: int
    page_size: int
    total_pages: int
    has_previous_page: bool
    has_next_page: bool

    @classmethod
    def build(
        cls, items: list[Any], *, total_count: int, page_number: int, page_size: int
    ) -> PagedResult[Any]:
        total_pages = math.ceil(total_count / page_size) if page_size else 0
        return cls(
            items=items,
            total_count=total_count,
            page_number=page_number,
            page_size=page_size,
            total_pages=total_pages,
            has_previous_page=page_number > 1,
            has_next_page=page_number < total_pages,
        )


def ok(data: Any = None, message: str | None = None) -> ApiResponse[Any]:
    return ApiResponse(success=True, data=data, message=message, status_code=200)


def created(data: Any = None, message: str | None = "Created successfully") -> ApiResponse[Any]:
    return ApiResponse(success=True, data=data, message=message, status_code=201)


def fail(status_code: int, message: str, errors: list[Any] | None = None) -> ApiResponse[Any]:
    return ApiResponse(
        success=False, data=None, message=message, errors=errors or [], status_code=status_code
    )


# --- Module Notes -----------------------------------------------------------
# `status_code` mirrors the HTTP status so clients that only look at the body can
# still branch on it.
