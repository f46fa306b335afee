"""
tasktracker_api.api.routers.families

Family groups, membership, invitations, activity feed and shared tasks.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.api.deps import db_session, settings_dep
from tasktracker_api.api.envelope import ApiResponse, PagedResult, created, ok
from tasktracker_api.auth.deps import current_user_id, require_roles
from tasktracker_api.schemas import (
    AssignTaskRequest,
    FamilyActivityRead,
    FamilyCreate,
    FamilyMemberRead,
    FamilyRead,
    InvitationCreate,
    InvitationRead,
    LeaderboardEntry,
    MemberRoleUpdate,
    TaskRead,
)
from tasktracker_api.services.family_service import FamilyService
from tasktracker_api.settings import Settings

router = APIRouter(prefix="/families", tags=["families"], dependencies=[Depends(require_roles())])


def _svc(
    session: AsyncSession = Depends(db_session), settings: Settings = Depends(settings_dep)
) -> FamilyService:
    return FamilyService(session=session, settings=settings)


@router.get("", response_model=ApiResponse[list[FamilyRead]])
async def list_families(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.list_families(user_id))


@router.post("", status_code=201, response_model=ApiResponse[FamilyRead])
async def create_family(
    body: FamilyCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    return created(await svc.create(user_id, body), "Family created")


# --- invitations addressed to the caller ----------------------------------------


@router.get("/invitations/pending", response_model=ApiResponse[list[InvitationRead]])
async def my_pending_invitations(
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.my_invitations(user_id))


@router.post("/invitations/{token}/accept", response_model=ApiResponse[FamilyRead])
async def accept_invitation(
    token: str,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.accept(user_id, token), "Invitation accepted")


@router.post("/invitations/{token}/decline", response_model=ApiResponse[None])
async def decline_invitation(
    token: str,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    await svc.decline(user_id, token)
    return ok(None, "Invitation declined")


# --- a single family --------------------------------------------------------------


@router.get("/{family_id}", response_model=ApiResponse[FamilyRead])
async def get_family(
    family_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.get(user_id, family_id))


@router.put("/{family_id}", response_model=ApiResponse[FamilyRead])
async def update_family(
    family_id: uuid.UUID,
    body: FamilyCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.update(user_id, family_id, body), "Family updated")


@router.delete("/{family_id}", response_model=ApiResponse[None])
async def delete_family(
    family_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    await svc.delete(user_id, family_id)
    return ok(None, "Family deleted")


@router.get("/{family_id}/members", response_model=ApiResponse[list[FamilyMemberRead]])
async def list_members(
    family_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.members(user_id, family_id))


@router.put("/{family_id}/members/{member_id}/role", response_model=ApiResponse[FamilyMemberRead])
async def update_member_role(
    family_id: uuid.UUID,
    member_id: uuid.UUID,
    body: MemberRoleUpdate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    member = await svc.update_member_role(user_id, family_id, member_id, body.role)
    return ok(member, "Member role updated")


@router.delete("/{family_id}/members/{member_id}", response_model=ApiResponse[None])
async def remove_member(
    family_id: uuid.UUID,
    member_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    await svc.remove_member(user_id, family_id, member_id)
    return ok(None, "Member removed")


@router.post("/{family_id}/leave", response_model=ApiResponse[None])
async def leave_family(
    family_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    deleted = await svc.leave(user_id, family_id)
    return ok(None, "You left the family; it was deleted" if deleted else "You left the family")


@router.post(
    "/{family_id}/invitations", status_code=201, response_model=ApiResponse[InvitationRead]
)
async def invite_member(
    family_id: uuid.UUID,
    body: InvitationCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    return created(await svc.invite(user_id, family_id, body), "Invitation sent")


@router.get("/{family_id}/invitations", response_model=ApiResponse[list[InvitationRead]])
async def family_invitations(
    family_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.family_invitations(user_id, family_id))


@router.get("/{family_id}/activity", response_model=ApiResponse[PagedResult[FamilyActivityRead]])
async def family_activity(
    family_id: uuid.UUID,
    page_number: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=50),
    action_type: str | None = Query(default=None, max_length=64),
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    items, total = await svc.activity(
        user_id, family_id, page=page_number, page_size=page_size, action_type=action_type
    )
    return ok(
        PagedResult.build(
            [FamilyActivityRead.model_validate(a) for a in items],
            total_count=total,
            page_number=page_number,
            page_size=page_size,
        )
    )


@router.get("/{family_id}/tasks", response_model=ApiResponse[list[TaskRead]])
async def family_tasks(
    family_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    return ok([TaskRead.model_validate(t) for t in await svc.tasks(user_id, family_id)])


@router.post("/{family_id}/tasks/assign", response_model=ApiResponse[TaskRead])
async def assign_task(
    family_id: uuid.UUID,
    body: AssignTaskRequest,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    task = await svc.assign_task(user_id, family_id, body)
    return ok(TaskRead.model_validate(task), "Task assigned")


@router.get("/{family_id}/leaderboard", response_model=ApiResponse[list[LeaderboardEntry]])
async def family_leaderboard(
    family_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    svc: FamilyService = Depends(_svc),
) -> ApiResponse:
    return ok(await svc.leaderboard(user_id, family_id))
