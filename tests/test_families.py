"""
tests.test_families

Family membership, invitations, activity log, task assignment and leaderboard.
"""

from __future__ import annotations

from datetime import timedelta

import httpx
import pytest
from sqlalchemy import update

from tasktracker_api.clock import utcnow
from tasktracker_api.db.models import Invitation

from conftest import create_task, register


async def _family(client: httpx.AsyncClient, account, name: str = "Smiths") -> dict:
    r = await client.post("/api/v1/families", json={"name": name}, headers=account.headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


async def _join(client: httpx.AsyncClient, family: dict, admin, invitee, role: str = "Member"):
    r = await client.post(
        f"/api/v1/families/{family['id']}/invitations",
        json={"email": invitee.email, "role": role},
        headers=admin.headers,
    )
    assert r.status_code == 201, r.text
    token = r.json()["data"]["token"]
    r = await client.post(
        f"/api/v1/families/invitations/{token}/accept", headers=invitee.headers
    )
    assert r.status_code == 200, r.text
    return r.json()["data"]


def _member_id(family: dict, account) -> str:
    return next(m["id"] for m in family["members"] if m["user_id"] == str(account.id))


@pytest.mark.asyncio
async def test_creator_becomes_admin(client: httpx.AsyncClient, alice, bob) -> None:
    family = await _family(client, alice)
    assert [(m["username"], m["role"]) for m in family["members"]] == [("alice", "Admin")]

    r = await client.get(f"/api/v1/families/{family['id']}", headers=bob.headers)
    assert r.status_code == 403

    r = await client.get("/api/v1/families", headers=bob.headers)
    assert r.json()["data"] == []


@pytest.mark.asyncio
async def test_invitation_flow(client: httpx.AsyncClient, alice, bob) -> None:
    family = await _family(client, alice)
    r = await client.post(
        f"/api/v1/families/{family['id']}/invitations",
        json={"email": bob.email, "role": "Parent", "message": "join us"},
        headers=alice.headers,
    )
    assert r.status_code == 201
    invitation = r.json()["data"]
    assert invitation["family_name"] == "Smiths"

    r = await client.post(
        f"/api/v1/families/{family['id']}/invitations",
        json={"email": bob.email},
        headers=alice.headers,
    )
    assert r.status_code == 409

    r = await client.get("/api/v1/families/invitations/pending", headers=bob.headers)
    assert [i["id"] for i in r.json()["data"]] == [invitation["id"]]

    r = await client.get("/api/v1/notifications", headers=bob.headers)
    assert "FamilyInvitation" in {n["notification_type"] for n in r.json()["data"]}

    r = await client.post(
        f"/api/v1/families/invitations/{invitation['token']}/accept", headers=bob.headers
    )
    assert r.status_code == 200
    roles = {m["username"]: m["role"] for m in r.json()["data"]["members"]}
    assert roles == {"alice": "Admin", "bob": "Parent"}

    r = await client.post(
        f"/api/v1/families/invitations/{invitation['token']}/accept", headers=bob.headers
    )
    assert r.status_code == 400

    r = await client.get(
        f"/api/v1/families/{family['id']}/activity",
        params={"action_type": "MemberJoined"},
        headers=alice.headers,
    )
    page = r.json()["data"]
    assert page["total_count"] == 1
    assert page["items"][0]["description"] == "bob joined the family"


@pytest.mark.asyncio
async def test_invitation_for_other_email_forbidden(client: httpx.AsyncClient, alice, bob) -> None:
    carol = await register(client, "carol")
    family = await _family(client, alice)
    r = await client.post(
        f"/api/v1/families/{family['id']}/invitations",
        json={"email": carol.email},
        headers=alice.headers,
    )
    token = r.json()["data"]["token"]

    r = await client.post(f"/api/v1/families/invitations/{token}/accept", headers=bob.headers)
    assert r.status_code == 403

    r = await client.post(f"/api/v1/families/invitations/{token}/decline", headers=carol.headers)
    assert r.status_code == 200
    r = await client.post(f"/api/v1/families/invitations/{token}/accept", headers=carol.headers)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_only_admins_and_parents_invite(client: httpx.AsyncClient, alice, bob) -> None:
    carol = await register(client, "carol")
    family = await _family(client, alice)
    await _join(client, family, alice, bob, role="Child")

    r = await client.post(
        f"/api/v1/families/{family['id']}/invitations",
        json={"email": carol.email},
        headers=bob.headers,
    )
    assert r.status_code == 403

    r = await client.post(
        f"/api/v1/families/{family['id']}/invitations",
        json={"email": bob.email},
        headers=alice.headers,
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_last_admin_rules(client: httpx.AsyncClient, alice, bob) -> None:
    family = await _family(client, alice)
    joined = await _join(client, family, alice, bob)
    alice_member = _member_id(joined, alice)
    bob_member = _member_id(joined, bob)

    r = await client.put(
        f"/api/v1/families/{family['id']}/members/{alice_member}/role",
        json={"role": "Member"},
        headers=alice.headers,
    )
    assert r.status_code == 400

    r = await client.post(f"/api/v1/families/{family['id']}/leave", headers=alice.headers)
    assert r.status_code == 400

    r = await client.delete(
        f"/api/v1/families/{family['id']}/members/{alice_member}", headers=alice.headers
    )
    assert r.status_code == 400

    r = await client.put(
        f"/api/v1/families/{family['id']}/members/{bob_member}/role",
        json={"role": "Admin"},
        headers=bob.headers,
    )
    assert r.status_code == 403

    r = await client.put(
        f"/api/v1/families/{family['id']}/members/{bob_member}/role",
        json={"role": "Admin"},
        headers=alice.headers,
    )
    assert r.status_code == 200
    assert r.json()["data"]["role"] == "Admin"

    r = await client.post(f"/api/v1/families/{family['id']}/leave", headers=alice.headers)
    assert r.status_code == 200

    r = await client.get(f"/api/v1/families/{family['id']}/members", headers=bob.headers)
    assert [m["username"] for m in r.json()["data"]] == ["bob"]


@pytest.mark.asyncio
async def test_last_member_leaving_deletes_family(client: httpx.AsyncClient, alice) -> None:
    family = await _family(client, alice)
    r = await client.post(f"/api/v1/families/{family['id']}/leave", headers=alice.headers)
    assert r.status_code == 200
    r = await client.get(f"/api/v1/families/{family['id']}", headers=alice.headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_remove_member(client: httpx.AsyncClient, alice, bob) -> None:
    family = await _family(client, alice)
    joined = await _join(client, family, alice, bob)

    r = await client.delete(
        f"/api/v1/families/{family['id']}/members/{_member_id(joined, bob)}",
        headers=alice.headers,
    )
    assert r.status_code == 200
    r = await client.get(f"/api/v1/families/{family['id']}", headers=bob.headers)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_assign_task_and_leaderboard(client: httpx.AsyncClient, alice, bob) -> None:
    family = await _family(client, alice)
    await _join(client, family, alice, bob)
    task = await create_task(client, alice, title="Mow the lawn")

    r = await client.post(
        f"/api/v1/families/{family['id']}/tasks/assign",
        json={"task_id": task["id"], "assignee_user_id": str(bob.id)},
        headers=alice.headers,
    )
    assert r.status_code == 200
    assigned = r.json()["data"]
    assert assigned["assigned_to_user_id"] == str(bob.id)
    assert assigned["family_id"] == family["id"]

    r = await client.get("/api/v1/notifications", headers=bob.headers)
    assert "TaskAssigned" in {n["notification_type"] for n in r.json()["data"]}

    # The assignee can see and progress the task but not edit it.
    r = await client.get(f"/api/v1/tasks/{task['id']}", headers=bob.headers)
    assert r.status_code == 200
    r = await client.put(
        f"/api/v1/tasks/{task['id']}/status", json={"status": "Completed"}, headers=bob.headers
    )
    assert r.status_code == 200
    r = await client.put(
        f"/api/v1/tasks/{task['id']}", json={"title": "edited"}, headers=bob.headers
    )
    assert r.status_code == 404

    r = await client.get(f"/api/v1/families/{family['id']}/tasks", headers=bob.headers)
    assert [t["id"] for t in r.json()["data"]] == [task["id"]]

    r = await client.get(f"/api/v1/families/{family['id']}/leaderboard", headers=alice.headers)
    board = r.json()["data"]
    assert [e["rank"] for e in board] == [1, 2]
    assert board[0]["value"] >= board[1]["value"]


@pytest.mark.asyncio
async def test_assign_requires_owner_and_member(client: httpx.AsyncClient, alice, bob) -> None:
    family = await _family(client, alice)
    await _join(client, family, alice, bob)
    outsider = await register(client, "outsider")
    bobs_task = await create_task(client, bob)
    alices_task = await create_task(client, alice)

    r = await client.post(
        f"/api/v1/families/{family['id']}/tasks/assign",
        json={"task_id": bobs_task["id"], "assignee_user_id": str(alice.id)},
        headers=alice.headers,
    )
    assert r.status_code == 403

    r = await client.post(
        f"/api/v1/families/{family['id']}/tasks/assign",
        json={"task_id": alices_task["id"], "assignee_user_id": str(outsider.id)},
        headers=alice.headers,
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_update_and_delete_family_admin_only(client: httpx.AsyncClient, alice, bob) -> None:
    family = await _family(client, alice)
    await _join(client, family, alice, bob)

    r = await client.put(
        f"/api/v1/families/{family['id']}", json={"name": "Joneses"}, headers=bob.headers
    )
    assert r.status_code == 403

    r = await client.put(
        f"/api/v1/families/{family['id']}", json={"name": "Joneses"}, headers=alice.headers
    )
    assert r.json()["data"]["name"] == "Joneses"

    r = await client.delete(f"/api/v1/families/{family['id']}", headers=bob.headers)
    assert r.status_code == 403
    r = await client.delete(f"/api/v1/families/{family['id']}", headers=alice.headers)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_expired_invitation_cannot_be_accepted(
    app, client: httpx.AsyncClient, alice, bob
) -> None:
    family = await _family(client, alice)
    r = await client.post(
        f"/api/v1/families/{family['id']}/invitations",
        json={"email": bob.email},
        headers=alice.headers,
    )
    token = r.json()["data"]["token"]

    async with app.state.sessionmaker() as session:
        await session.execute(
            update(Invitation)
            .where(Invitation.token == token)
            .values(expires_at=utcnow() - timedelta(minutes=1))
        )
        await session.commit()

    r = await client.get("/api/v1/families/invitations/pending", headers=bob.headers)
    assert r.json()["data"] == []

    r = await client.post(f"/api/v1/families/invitations/{token}/accept", headers=bob.headers)
    assert r.status_code == 400
    assert r.json()["message"] == "This invitation has expired"


@pytest.mark.asyncio
async def test_blank_family_name_rejected(client: httpx.AsyncClient, alice) -> None:
    r = await client.post("/api/v1/families", json={"name": "   "}, headers=alice.headers)
    assert r.status_code == 400
