"""
tasktracker_api.api.routers.health

Liveness and readiness checks, served outside the versioned API prefix and
outside the response envelope.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session, settings_dep
from tasktracker_api.db.models import Achievement
from tasktracker_api.settings import Settings

router = APIRouter()


@router.get("/healthz")
async def healthz(settings: Settings = Depends(settings_dep)) -> dict[str, str]:
    return {"status": "ok", "service": settings.service_name}


@router.get("/readyz")
async def readyz(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    # Counting the catalog proves both connectivity and that startup seeding ran.
    achievements = (await session.execute(select(func.count(Achievement.id)))).scalar_one()
    return {"status": "ready", "env": settings.env, "achievements": achievements}
