"""
alembic.env

Alembic migration environment for the task tracker schema.

Responsibilities:
- Point autogeneration at `tasktracker_api` ORM metadata.
- Run migrations offline (SQL script) or online through the async engine.

Notes:
- This module is executed by Alembic, not imported by the FastAPI runtime.
"""

from __future__ import annotations

import asyncio
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from tasktracker_api.db import models  # noqa: F401  # registers tables on Base.metadata
from tasktracker_api.db.base import Base
from tasktracker_api.settings import Settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _get_database_url() -> str:
    if "TASKTRACKER_DATABASE_URL" in os.environ:
        return os.environ["TASKTRACKER_DATABASE_URL"]
    return Settings().database_url


def run_migrations_offline() -> None:
    context.configure(
        url=_get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection: Connection) -> None:
    # SQLite cannot ALTER most constraints in place; batch mode recreates tables.
    context.configure(
        connection=connection, target_metadata=target_metadata, render_as_batch=True
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = _get_database_url()
    connectable = async_engine_from_config(
        configuration, prefix="sqlalchemy.", poolclass=pool.NullPool
    )
    async with connectable.connect() as connection:
        await connection.run_sync(_run_sync)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())


# --- Module Notes -----------------------------------------------------------
# Keep this file aligned with the models in `tasktracker_api.db.models`. In
# dev/test the app creates tables itself (`db.init_db`); prod relies on Alembic.
