"""
tests.test_gamification

Points, levels, achievements, daily login and leaderboards.
"""

from __future__ import annotations

from datetime import date

import httpx
import pytest

from tasktracker_api.db.models import TaskPriority
from tasktracker_api.errors import ValidationError
from tasktracker_api.services import gamification_service
from tasktracker_api.services.gamification_service import (
    GamificationService,
    daily_login_points,
    level_threshold,
    task_completion_points,
)

from conftest import create_task


def test_point_formulas() -> None:
    assert level_threshold(1) == 100
    assert level_threshold(2) == 282
    assert level_threshold(3) == 519
    assert task_completion_points(TaskPriority.low) == 5
    assert task_completion_points(TaskPriority.critical) == 20
    assert daily_login_points(1) == 12
    assert daily_login_points(100) == daily_login_points(30)


@pytest.mark.asyncio
async def test_new_user_progress(client: httpx.AsyncClient, alice) -> None:
    r = await client.get("/api/v1/gamification/progress", headers=alice.headers)
    assert r.status_code == 200
    progress = r.json()["data"]
    assert progress["level"] == 1
    assert progress["current_points"] == 0
    assert progress["next_level_threshold"] == 100


@pytest.mark.asyncio
async def test_first_task_and_completion_points(client: httpx.AsyncClient, alice) -> None:
    task = await create_task(client, alice)
    await client.put(
        f"/api/v1/tasks/{task['id']}/status", json={"status": "Completed"}, headers=alice.headers
    )

    r = await client.get("/api/v1/gamification/achievements/unlocked", headers=alice.headers)
    keys = {ua["achievement"]["key"] for ua in r.json()["data"]}
    assert keys == {"first_task_created", "first_task_completed"}

    r = await client.get("/api/v1/gamification/progress", headers=alice.headers)
    # Planner (5) + completion (10) + First Steps (10)
    assert r.json()["data"]["total_points_earned"] == 25

    r = await client.get("/api/v1/gamification/achievements/available", headers=alice.headers)
    assert "first_task_created" not in {a["key"] for a in r.json()["data"]}

    r = await client.get("/api/v1/notifications", headers=alice.headers)
    achievement_notes = [n for n in r.json()["data"] if n["notification_type"] == "Achievement"]
    assert len(achievement_notes) == 2


@pytest.mark.asyncio
async def test_daily_login_once_per_day(client: httpx.AsyncClient, alice) -> None:
    r = await client.get("/api/v1/gamification/daily-login/status", headers=alice.headers)
    status = r.json()["data"]
    assert status["claimed_today"] is False
    assert status["next_reward"] == 12

    r = await client.post("/api/v1/gamification/daily-login", headers=alice.headers)
    assert r.status_code == 200
    result = r.json()["data"]
    assert result["points_awarded"] == 12
    assert result["current_streak"] == 1

    r = await client.post("/api/v1/gamification/daily-login", headers=alice.headers)
    assert r.status_code == 400

    r = await client.get("/api/v1/gamification/daily-login/status", headers=alice.headers)
    assert r.json()["data"]["claimed_today"] is True


@pytest.mark.asyncio
async def test_leaderboard(client: httpx.AsyncClient, alice, bob) -> None:
    await client.post("/api/v1/gamification/daily-login", headers=alice.headers)

    r = await client.get(
        "/api/v1/gamification/leaderboard", params={"category": "points"}, headers=bob.headers
    )
    assert r.status_code == 200
    entries = r.json()["data"]
    assert entries[0]["username"] == "alice"
    assert entries[0]["rank"] == 1

    r = await client.get(
        "/api/v1/gamification/leaderboard", params={"category": "karma"}, headers=bob.headers
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_stats_and_multipliers(client: httpx.AsyncClient, alice) -> None:
    await client.post("/api/v1/gamification/daily-login", headers=alice.headers)

    r = await client.get("/api/v1/gamification/stats", headers=alice.headers)
    stats = r.json()["data"]
    assert stats["achievements_total"] == 8
    assert stats["consistency_score"] > 0
    assert {c["category"] for c in stats["category_stats"]} == {
        "Consistency",
        "Organization",
        "Progress",
        "Tasks",
    }

    r = await client.get("/api/v1/gamification/multipliers", headers=alice.headers)
    assert r.json()["data"] == {"Low": 0.5, "Medium": 1.0, "High": 1.5, "Critical": 2.0}


@pytest.mark.asyncio
async def test_streak_rules(app, alice, monkeypatch) -> None:
    current = {"day": date(2026, 3, 1)}
    monkeypatch.setattr(gamification_service, "today", lambda: current["day"])

    async def record(day: date) -> tuple[int, int]:
        current["day"] = day
        async with app.state.sessionmaker() as session:
            progress = await GamificationService(session=session).record_activity(alice.id)
            await session.commit()
            return progress.current_streak, progress.longest_streak

    assert await record(date(2026, 3, 1)) == (1, 1)
    assert await record(date(2026, 3, 1)) == (1, 1)
    assert await record(date(2026, 3, 2)) == (2, 2)
    assert await record(date(2026, 3, 3)) == (3, 3)
    # A missed day resets the streak but keeps the best run.
    assert await record(date(2026, 3, 6)) == (1, 3)
    assert await record(date(2026, 3, 7)) == (2, 3)


@pytest.mark.asyncio
async def test_large_award_climbs_several_levels(app, client: httpx.AsyncClient, alice) -> None:
    async with app.state.sessionmaker() as session:
        await GamificationService(session=session).add_points(
            alice.id, 400, transaction_type="bonus", description="Bulk award"
        )

    r = await client.get("/api/v1/gamification/progress", headers=alice.headers)
    progress = r.json()["data"]
    # 400 - 100 (level 1) - 282 (level 2) leaves 18 toward level 4.
    assert progress["level"] == 3
    assert progress["current_points"] == 18
    assert progress["next_level_threshold"] == level_threshold(3)
    assert progress["total_points_earned"] == 400

    async with app.state.sessionmaker() as session:
        with pytest.raises(ValidationError, match="negative"):
            await GamificationService(session=session).add_points(
                alice.id, -1, transaction_type="bonus", description="nope"
            )
