"""
tests.test_boards

Kanban boards: default columns, column ordering, WIP limits and task moves.
"""

from __future__ import annotations

import httpx
import pytest

from tasktracker_api.services.board_service import COLUMN_NAME_MAX, copy_name, wip_state

from conftest import create_task


async def _board(client: httpx.AsyncClient, account, **fields) -> dict:
    r = await client.post(
        "/api/v1/boards", json={"name": "Home", **fields}, headers=account.headers
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]


def _column(board: dict, name: str) -> dict:
    return next(c for c in board["columns"] if c["name"] == name)


def test_wip_state() -> None:
    assert wip_state(3, None) == "none"
    assert wip_state(1, 2) == "under"
    assert wip_state(2, 2) == "at"
    assert wip_state(3, 2) == "over"


def test_copy_name_skips_taken_names() -> None:
    assert copy_name("To Do", {"to do"}) == "To Do (Copy)"
    assert copy_name("To Do", {"to do", "to do (copy)"}) == "To Do (Copy 2)"
    assert copy_name("To Do", {"to do (copy)", "to do (copy 2)"}) == "To Do (Copy 3)"

    long = copy_name("x" * COLUMN_NAME_MAX, set())
    assert len(long) == COLUMN_NAME_MAX
    assert long.endswith(" (Copy)")


@pytest.mark.asyncio
async def test_board_gets_default_columns(client: httpx.AsyncClient, alice, bob) -> None:
    board = await _board(client, alice)
    assert [(c["name"], c["order"]) for c in board["columns"]] == [
        ("To Do", 0),
        ("In Progress", 1),
        ("Completed", 2),
    ]
    assert _column(board, "Completed")["is_done_column"] is True

    r = await client.get(f"/api/v1/boards/{board['id']}", headers=bob.headers)
    assert r.status_code == 404

    r = await client.post(f"/api/v1/boards/{board['id']}/columns/default", headers=alice.headers)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_empty_board_and_default_columns(client: httpx.AsyncClient, alice) -> None:
    board = await _board(client, alice, create_default_columns=False)
    assert board["columns"] == []
    r = await client.post(f"/api/v1/boards/{board['id']}/columns/default", headers=alice.headers)
    assert r.status_code == 201
    assert len(r.json()["data"]) == 3


@pytest.mark.asyncio
async def test_column_insert_and_conflict(client: httpx.AsyncClient, alice) -> None:
    board = await _board(client, alice)
    r = await client.post(
        f"/api/v1/boards/{board['id']}/columns",
        json={"name": "Review", "order": 2, "mapped_status": "Pending"},
        headers=alice.headers,
    )
    assert r.status_code == 201
    assert r.json()["data"]["order"] == 2

    r = await client.get(f"/api/v1/boards/{board['id']}/columns", headers=alice.headers)
    assert [c["name"] for c in r.json()["data"]] == ["To Do", "In Progress", "Review", "Completed"]
    assert [c["order"] for c in r.json()["data"]] == [0, 1, 2, 3]

    r = await client.post(
        f"/api/v1/boards/{board['id']}/columns", json={"name": "review"}, headers=alice.headers
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_reorder_columns(client: httpx.AsyncClient, alice) -> None:
    board = await _board(client, alice)
    done = _column(board, "Completed")["id"]
    todo = _column(board, "To Do")["id"]

    r = await client.put(
        f"/api/v1/boards/{board['id']}/columns/reorder",
        json={"column_ids": [done, todo]},
        headers=alice.headers,
    )
    assert r.status_code == 200
    assert [c["name"] for c in r.json()["data"]] == ["Completed", "To Do", "In Progress"]

    r = await client.put(
        f"/api/v1/boards/{board['id']}/columns/reorder",
        json={"column_ids": [done, done]},
        headers=alice.headers,
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_move_task_maps_status_and_awards(client: httpx.AsyncClient, alice) -> None:
    board = await _board(client, alice)
    task = await create_task(client, alice, priority="High")

    r = await client.put(
        f"/api/v1/boards/{board['id']}/tasks/{task['id']}/move",
        json={"column_id": _column(board, "In Progress")["id"]},
        headers=alice.headers,
    )
    assert r.status_code == 200
    moved = r.json()["data"]
    assert moved["status"] == "InProgress"
    assert moved["board_id"] == board["id"]

    r = await client.put(
        f"/api/v1/boards/{board['id']}/tasks/{task['id']}/move",
        json={"column_id": _column(board, "Completed")["id"]},
        headers=alice.headers,
    )
    assert r.json()["data"]["status"] == "Completed"
    assert r.json()["data"]["completed_at"] is not None

    r = await client.get("/api/v1/gamification/transactions", headers=alice.headers)
    assert ("task_completion", 15) in {
        (t["transaction_type"], t["points"]) for t in r.json()["data"]
    }

    r = await client.get(f"/api/v1/boards/{board['id']}", headers=alice.headers)
    detail = r.json()["data"]
    assert [t["id"] for t in _column(detail, "Completed")["tasks"]] == [task["id"]]
    assert detail["unassigned_tasks"] == []


@pytest.mark.asyncio
async def test_move_respects_wip_limit(client: httpx.AsyncClient, alice) -> None:
    board = await _board(client, alice)
    doing = _column(board, "In Progress")["id"]
    r = await client.put(
        f"/api/v1/boards/{board['id']}/columns/{doing}",
        json={"task_limit": 1},
        headers=alice.headers,
    )
    assert r.json()["data"]["task_limit"] == 1

    first = await create_task(client, alice)
    second = await create_task(client, alice)
    r = await client.put(
        f"/api/v1/boards/{board['id']}/tasks/{first['id']}/move",
        json={"column_id": doing},
        headers=alice.headers,
    )
    assert r.status_code == 200

    r = await client.put(
        f"/api/v1/boards/{board['id']}/tasks/{second['id']}/move",
        json={"column_id": doing},
        headers=alice.headers,
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Column is at WIP limit (1/1)"

    r = await client.get(
        f"/api/v1/boards/{board['id']}/columns/{doing}/wip-status", headers=alice.headers
    )
    wip = r.json()["data"]
    assert wip["status"] == "at"
    assert wip["message"] == "Column is at WIP limit (1/1)"

    r = await client.put(
        f"/api/v1/boards/{board['id']}/columns/{doing}",
        json={"clear_task_limit": True},
        headers=alice.headers,
    )
    assert r.json()["data"]["task_limit"] is None


@pytest.mark.asyncio
async def test_move_to_foreign_column_rejected(client: httpx.AsyncClient, alice) -> None:
    home = await _board(client, alice)
    work = await _board(client, alice, name="Work")
    task = await create_task(client, alice)

    r = await client.put(
        f"/api/v1/boards/{home['id']}/tasks/{task['id']}/move",
        json={"column_id": _column(work, "To Do")["id"]},
        headers=alice.headers,
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_delete_column_with_tasks_rejected(client: httpx.AsyncClient, alice) -> None:
    board = await _board(client, alice)
    todo = _column(board, "To Do")["id"]
    task = await create_task(client, alice)
    await client.put(
        f"/api/v1/boards/{board['id']}/tasks/{task['id']}/move",
        json={"column_id": todo},
        headers=alice.headers,
    )

    r = await client.delete(f"/api/v1/boards/{board['id']}/columns/{todo}", headers=alice.headers)
    assert r.status_code == 400
    assert "contains 1 tasks" in r.json()["message"]

    empty = _column(board, "In Progress")["id"]
    r = await client.delete(f"/api/v1/boards/{board['id']}/columns/{empty}", headers=alice.headers)
    assert r.status_code == 200
    r = await client.get(f"/api/v1/boards/{board['id']}/columns", headers=alice.headers)
    assert [(c["name"], c["order"]) for c in r.json()["data"]] == [("To Do", 0), ("Completed", 1)]


@pytest.mark.asyncio
async def test_duplicate_and_toggle_visibility(client: httpx.AsyncClient, alice) -> None:
    board = await _board(client, alice)
    todo = _column(board, "To Do")["id"]

    r = await client.post(
        f"/api/v1/boards/{board['id']}/columns/{todo}/duplicate", headers=alice.headers
    )
    assert r.status_code == 201
    copy = r.json()["data"]
    assert copy["name"] == "To Do (Copy)"
    assert copy["order"] == 3

    r = await client.post(
        f"/api/v1/boards/{board['id']}/columns/{todo}/duplicate", headers=alice.headers
    )
    assert r.json()["data"]["name"] == "To Do (Copy 2)"

    r = await client.get(f"/api/v1/boards/{board['id']}/columns", headers=alice.headers)
    names = [c["name"].lower() for c in r.json()["data"]]
    assert len(names) == len(set(names))

    r = await client.patch(
        f"/api/v1/boards/{board['id']}/columns/{copy['id']}/toggle-visibility",
        headers=alice.headers,
    )
    assert r.json()["data"]["is_hidden"] is True

    r = await client.get(
        f"/api/v1/boards/{board['id']}/columns",
        params={"include_hidden": "false"},
        headers=alice.headers,
    )
    assert copy["id"] not in {c["id"] for c in r.json()["data"]}


@pytest.mark.asyncio
async def test_column_statistics(client: httpx.AsyncClient, alice) -> None:
    board = await _board(client, alice)
    todo = _column(board, "To Do")["id"]
    for priority in ("High", "High", "Low"):
        task = await create_task(client, alice, priority=priority)
        await client.put(
            f"/api/v1/boards/{board['id']}/tasks/{task['id']}/move",
            json={"column_id": todo},
            headers=alice.headers,
        )

    r = await client.get(
        f"/api/v1/boards/{board['id']}/columns/{todo}/statistics", headers=alice.headers
    )
    stats = r.json()["data"]
    assert stats["task_count"] == 3
    assert stats["by_priority"] == {"High": 2, "Low": 1}
    assert stats["wip_status"] == "none"


@pytest.mark.asyncio
async def test_blank_names_rejected(client: httpx.AsyncClient, alice) -> None:
    r = await client.post("/api/v1/boards", json={"name": "   "}, headers=alice.headers)
    assert r.status_code == 400

    board = await _board(client, alice, create_default_columns=False)
    r = await client.post(
        f"/api/v1/boards/{board['id']}/columns", json={"name": "\t "}, headers=alice.headers
    )
    assert r.status_code == 400

    r = await client.post(
        f"/api/v1/boards/{board['id']}/columns", json={"name": "  Doing  "}, headers=alice.headers
    )
    assert r.json()["data"]["name"] == "Doing"
