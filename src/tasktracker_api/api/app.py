"""
tasktracker_api.api.app

FastAPI app factory for the TaskTracker API.

Responsibilities:
- Build the FastAPI application and register routers/middleware/handlers.
- Initialize and dispose shared infrastructure (DB engine/session factory,
  rate limiter) in the app lifespan.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tasktracker_api.api.exception_handlers import register_exception_handlers
from tasktracker_api.api.rate_limit import SlidingWindowRateLimiter
from tasktracker_api.api.routers.admin import router as admin_router
from tasktracker_api.api.routers.auth import router as auth_router
from tasktracker_api.api.routers.badges import router as badges_router
from tasktracker_api.api.routers.batch import router as batch_router
from tasktracker_api.api.routers.boards import router as boards_router
from tasktracker_api.api.routers.calendar import router as calendar_router
from tasktracker_api.api.routers.categories import router as categories_router
from tasktracker_api.api.routers.families import router as families_router
from tasktracker_api.api.routers.gamification import router as gamification_router
from tasktracker_api.api.routers.health import router as health_router
from tasktracker_api.api.routers.notifications import router as notifications_router
from tasktracker_api.api.routers.reminders import router as reminders_router
from tasktracker_api.api.routers.saved_searches import router as saved_searches_router
from tasktracker_api.api.routers.search import router as search_router
from tasktracker_api.api.routers.statistics import router as statistics_router
from tasktracker_api.api.routers.tags import router as tags_router
from tasktracker_api.api.routers.tasks import router as tasks_router
from tasktracker_api.db.init_db import init_db, seed_achievements, seed_badges
from tasktracker_api.db.session import create_engine, create_sessionmaker
from tasktracker_api.observability.logging import configure_logging, get_logger
from tasktracker_api.observability.middleware import RequestContextMiddleware
from tasktracker_api.settings import Settings

log = get_logger(__name__)

API_PREFIX = "/api/v1"

_ROUTERS = (
    auth_router,
    tasks_router,
    batch_router,
    categories_router,
    tags_router,
    reminders_router,
    notifications_router,
    families_router,
    calendar_router,
    boards_router,
    gamification_router,
    badges_router,
    saved_searches_router,
    search_router,
    statistics_router,
    admin_router,
)


def create_app(*, settings: Settings) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json_logs=settings.env != "dev",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        # Create the async DB engine and session factory once and stash them on app.state.
        # Routers obtain sessions via dependencies (see `tasktracker_api.api.deps`).
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(engine)
        async with app.state.sessionmaker() as session:
            seeded = await seed_achievements(session)
            badges_seeded = await seed_badges(session)
        if seeded:
            log.info("achievements_seeded", count=seeded)
        if badges_seeded:
            log.info("badges_seeded", count=badges_seeded)
        try:
            yield
        finally:
            # Dispose the engine to close pools/FDs gracefully.
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="TaskTracker API",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_limiter = SlidingWindowRateLimiter()

    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router, tags=["health"])
    for router in _ROUTERS:
        app.include_router(router, prefix=API_PREFIX)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; business logic lives in services and routers only
# translate between HTTP and service calls.
