"""
tasktracker_api.db.init_db

DB initialization helpers (dev/test convenience).

Responsibilities:
- Create tables for local development and tests.
- Seed the achievement and badge catalogs when they are empty.
- Keep production migration workflow separate (Alembic).
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from tasktracker_api.db import models  # noqa: F401  # register tables on Base.metadata
from tasktracker_api.db.base import Base
from tasktracker_api.db.models import Achievement, Badge, BadgeRarity

ACHIEVEMENT_CATALOG: list[dict[str, Any]] = [
    {
        "key": "first_task_completed",
        "name": "First Steps",
        "description": "Complete your first task",
        "category": "Tasks",
        "criterion": "tasks_completed",
        "target_value": 1,
        "point_value": 10,
    },
    {
        "key": "ten_tasks_completed",
        "name": "Getting Things Done",
        "description": "Complete 10 tasks",
        "category": "Tasks",
        "criterion": "tasks_completed",
        "target_value": 10,
        "point_value": 50,
    },
    {
        "key": "fifty_tasks_completed",
        "name": "Task Master",
        "description": "Complete 50 tasks",
        "category": "Tasks",
        "criterion": "tasks_completed",
        "target_value": 50,
        "point_value": 200,
    },
    {
        "key": "first_task_created",
        "name": "Planner",
        "description": "Create your first task",
        "category": "Tasks",
        "criterion": "tasks_created",
        "target_value": 1,
        "point_value": 5,
    },
    {
        "key": "first_category_created",
        "name": "Organizer",
        "description": "Create your first category",
        "category": "Organization",
        "criterion": "categories_created",
        "target_value": 1,
        "point_value": 5,
    },
    {
        "key": "streak_3",
        "name": "On a Roll",
        "description": "Stay active 3 days in a row",
        "category": "Consistency",
        "criterion": "streak",
        "target_value": 3,
        "point_value": 25,
    },
    {
        "key": "streak_7",
        "name": "Week Warrior",
        "description": "Stay active 7 days in a row",
        "category": "Consistency",
        "criterion": "streak",
        "target_value": 7,
        "point_value": 75,
    },
    {
        "key": "level_5",
        "name": "Rising Star",
        "description": "Reach level 5",
        "category": "Progress",
        "criterion": "level",
        "target_value": 5,
        "point_value": 100,
    },
]

BADGE_CATALOG: list[dict[str, Any]] = [
    {
        "name": "Early Bird",
        "description": "Finished a task before breakfast",
        "category": "Productivity",
        "rarity": BadgeRarity.common,
        "point_value": 10,
    },
    {
        "name": "Helping Hand",
        "description": "Took on a chore for someone else in the family",
        "category": "Family",
        "rarity": BadgeRarity.uncommon,
        "point_value": 25,
    },
    {
        "name": "Clean Sweep",
        "description": "Cleared every task on a board",
        "category": "Productivity",
        "rarity": BadgeRarity.rare,
        "point_value": 50,
    },
    {
        "name": "Family Champion",
        "description": "Led the family leaderboard for a month",
        "category": "Family",
        "rarity": BadgeRarity.epic,
        "point_value": 100,
    },
    {
        "name": "Unstoppable",
        "description": "Kept a streak alive for 100 days",
        "category": "Consistency",
        "rarity": BadgeRarity.legendary,
        "point_value": 250,
    },
]


async def init_db(engine: AsyncEngine) -> None:
    """
    Dev/test bootstrap: create tables if they don't exist.
    Production relies on Alembic migrations.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_achievements(session: AsyncSession) -> int:
    existing = (await session.execute(select(func.count()).select_from(Achievement))).scalar_one()
    if existing:
        return 0
    for item in ACHIEVEMENT_CATALOG:
        session.add(Achievement(**item))
    await session.commit()
    return len(ACHIEVEMENT_CATALOG)


async def seed_badges(session: AsyncSession) -> int:
    existing = (await session.execute(select(func.count()).select_from(Badge))).scalar_one()
    if existing:
        return 0
    for item in BADGE_CATALOG:
        session.add(Badge(**item))
    await session.commit()
    return len(BADGE_CATALOG)


# --- Module Notes -----------------------------------------------------------
# Seeding runs on every startup (all environments); each catalog is left alone
# once it holds any row.
