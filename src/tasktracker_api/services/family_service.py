"""
tasktracker_api.services.family_service

Families, memberships, invitations and the family activity feed.

Responsibilities:
- Family CRUD; the creator joins as the family `Admin`.
- Membership management with "at least one admin" protection.
- Token invitations (create, list, accept, decline) with expiry.
- Task assignment between members, family task list and leaderboard.
- Record an activity row for each state change.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.clock import utcnow
from tasktracker_api.db.models import (
    Family,
    FamilyActivity,
    FamilyMember,
    FamilyRole,
    Invitation,
    NotificationType,
    TaskItem,
    User,
)
from tasktracker_api.db.repositories.families import (
    FamilyActivityRepo,
    FamilyRepo,
    InvitationRepo,
)
from tasktracker_api.db.repositories.gamification import GamificationRepo
from tasktracker_api.db.repositories.tasks import TaskRepo
from tasktracker_api.db.repositories.users import UserRepo
from tasktracker_api.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import (
    AssignTaskRequest,
    FamilyCreate,
    FamilyMemberRead,
    FamilyRead,
    InvitationCreate,
    InvitationRead,
    LeaderboardEntry,
)
from tasktracker_api.services.notification_service import NotificationService
from tasktracker_api.settings import Settings

log = get_logger(__name__)

_INVITER_ROLES = (FamilyRole.admin, FamilyRole.parent)


def member_read(member: FamilyMember) -> FamilyMemberRead:
    return FamilyMemberRead(
        id=member.id,
        user_id=member.user_id,
        username=member.user.username,
        role=member.role,
        display_name=member.display_name,
        joined_at=member.joined_at,
    )


def invitation_read(invitation: Invitation) -> InvitationRead:
    return InvitationRead(
        id=invitation.id,
        token=invitation.token,
        email=invitation.email,
        family_id=invitation.family_id,
        family_name=invitation.family.name,
        role=invitation.role,
        message=invitation.message,
        is_accepted=invitation.is_accepted,
        is_declined=invitation.is_declined,
        created_at=invitation.created_at,
        expires_at=invitation.expires_at,
    )


class FamilyService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._families = FamilyRepo(session)
        self._invitations = InvitationRepo(session)
        self._activity = FamilyActivityRepo(session)
        self._users = UserRepo(session)
        self._tasks = TaskRepo(session)
        self._progress = GamificationRepo(session)
        self._notifications = NotificationService(session=session)

    # --- access helpers ---------------------------------------------------

    async def _family(self, family_id: uuid.UUID) -> Family:
        family = await self._families.get(family_id)
        if family is None:
            raise NotFoundError(f"Family with ID {family_id} not found")
        return family

    async def require_member(
        self, user_id: uuid.UUID, family_id: uuid.UUID
    ) -> tuple[Family, FamilyMember]:
        family = await self._family(family_id)
        member = await self._families.get_member(family_id, user_id)
        if member is None:
            raise ForbiddenError("You are not a member of this family")
        return family, member

    async def _require_admin(
        self, user_id: uuid.UUID, family_id: uuid.UUID
    ) -> tuple[Family, FamilyMember]:
        family, member = await self.require_member(user_id, family_id)
        if member.role != FamilyRole.admin:
            raise ForbiddenError("Only family admins can perform this action")
        return family, member

    async def _user(self, user_id: uuid.UUID) -> User:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def _read(self, family: Family) -> FamilyRead:
        members = await self._families.list_members(family.id)
        return FamilyRead(
            id=family.id,
            name=family.name,
            description=family.description,
            created_by_id=family.created_by_id,
            created_at=family.created_at,
            members=[member_read(m) for m in members],
        )

    async def _record(
        self,
        family_id: uuid.UUID,
        actor_id: uuid.UUID | None,
        action_type: str,
        description: str,
        *,
        entity_type: str | None = None,
        entity_id: uuid.UUID | None = None,
    ) -> FamilyActivity:
        return await self._activity.add(
            family_id=family_id,
            actor_id=actor_id,
            action_type=action_type,
            description=description,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id else None,
        )

    # --- families ---------------------------------------------------------

    async def list_families(self, user_id: uuid.UUID) -> list[FamilyRead]:
        return [await self._read(f) for f in await self._families.list_for_user(user_id)]

    async def get(self, user_id: uuid.UUID, family_id: uuid.UUID) -> FamilyRead:
        family, _ = await self.require_member(user_id, family_id)
        return await self._read(family)

    async def create(self, user_id: uuid.UUID, body: FamilyCreate) -> FamilyRead:
        user = await self._user(user_id)
        family = await self._families.create(
            name=body.name.strip(), description=body.description, created_by_id=user_id
        )
        await self._families.add_member(family_id=family.id, user=user, role=FamilyRole.admin)
        await self._record(
            family.id, user_id, "FamilyCreated", f"{user.username} created the family"
        )
        await self._session.commit()
        log.info("family_created", family_id=str(family.id), user_id=str(user_id))
        return await self._read(family)

    async def update(self, user_id: uuid.UUID, family_id: uuid.UUID, body: FamilyCreate) -> FamilyRead:
        family, _ = await self._require_admin(user_id, family_id)
        family.name = body.name.strip()
        family.description = body.description
        family.updated_at = utcnow()
        await self._record(family.id, user_id, "FamilyUpdated", "Family details were updated")
        await self._session.commit()
        return await self._read(family)

    async def delete(self, user_id: uuid.UUID, family_id: uuid.UUID) -> None:
        family, _ = await self._require_admin(user_id, family_id)
        await self._families.delete(family)
        await self._session.commit()
        log.info("family_deleted", family_id=str(family_id))

    # --- members ----------------------------------------------------------

    async def members(self, user_id: uuid.UUID, family_id: uuid.UUID) -> list[FamilyMemberRead]:
        await self.require_member(user_id, family_id)
        return [member_read(m) for m in await self._families.list_members(family_id)]

    async def _target_member(self, family_id: uuid.UUID, member_id: uuid.UUID) -> FamilyMember:
        member = await self._families.get_member_by_id(member_id)
        if member is None or member.family_id != family_id:
            raise NotFoundError(f"Family member with ID {member_id} not found")
        return member

    async def update_member_role(
        self, user_id: uuid.UUID, family_id: uuid.UUID, member_id: uuid.UUID, role: FamilyRole
    ) -> FamilyMemberRead:
        await self._require_admin(user_id, family_id)
        target = await self._target_member(family_id, member_id)
        if target.role == FamilyRole.admin and role != FamilyRole.admin:
            if await self._families.count_admins(family_id) <= 1:
                raise ValidationError("Cannot demote the last family admin")
        target.role = role
        await self._record(
            family_id,
            user_id,
            "MemberRoleChanged",
            f"{target.user.username} is now {role.value}",
            entity_type="FamilyMember",
            entity_id=target.id,
        )
        await self._session.commit()
        return member_read(target)

    async def remove_member(
        self, user_id: uuid.UUID, family_id: uuid.UUID, member_id: uuid.UUID
    ) -> None:
        await self._require_admin(user_id, family_id)
        target = await self._target_member(family_id, member_id)
        if target.user_id == user_id:
            raise ValidationError("Use the leave endpoint to remove yourself")
        if target.role == FamilyRole.admin and await self._families.count_admins(family_id) <= 1:
            raise ValidationError("Cannot remove the last family admin")
        username = target.user.username
        await self._families.remove_member(target)
        await self._record(
            family_id, user_id, "MemberRemoved", f"{username} was removed from the family"
        )
        await self._session.commit()
        log.info("family_member_removed", family_id=str(family_id), member_id=str(member_id))

    async def leave(self, user_id: uuid.UUID, family_id: uuid.UUID) -> bool:
        """
        Leave a family; returns True when the family was deleted because the
        caller was its last member.
        """

        family, member = await self.require_member(user_id, family_id)
        members = await self._families.list_members(family_id)
        if len(members) == 1:
            await self._families.delete(family)
            await self._session.commit()
            log.info("family_deleted_last_member_left", family_id=str(family_id))
            return True
        if member.role == FamilyRole.admin and await self._families.count_admins(family_id) <= 1:
            raise ValidationError(
                "You are the last admin. Promote another member before leaving the family"
            )
        username = member.user.username
        await self._families.remove_member(member)
        await self._record(family_id, user_id, "MemberLeft", f"{username} left the family")
        await self._session.commit()
        return False

    # --- invitations ------------------------------------------------------

    async def invite(
        self, user_id: uuid.UUID, family_id: uuid.UUID, body: InvitationCreate
    ) -> InvitationRead:
        family, member = await self.require_member(user_id, family_id)
        if member.role not in _INVITER_ROLES:
            raise ForbiddenError("Only family admins and parents can invite members")

        email = body.email.lower()
        now = utcnow()
        invitee = await self._users.get_by_email(email)
        if invitee is not None and await self._families.get_member(family_id, invitee.id):
            raise ConflictError("This user is already a member of the family")
        if await self._invitations.find_pending(family_id, email, now) is not None:
            raise ConflictError("A pending invitation already exists for this email")

        invitation = await self._invitations.add(
            Invitation(
                token=secrets.token_urlsafe(32),
                email=email,
                family_id=family_id,
                family=family,
                role=body.role,
                created_by_id=user_id,
                message=body.message,
                expires_at=now + timedelta(days=self._settings.invitation_ttl_days),
            )
        )
        await self._record(
            family_id,
            user_id,
            "InvitationSent",
            f"Invitation sent to {email}",
            entity_type="Invitation",
            entity_id=invitation.id,
        )
        if invitee is not None:
            await self._notifications.notify(
                user_id=invitee.id,
                title="Family invitation",
                message=f"You have been invited to join {family.name}",
                notification_type=NotificationType.family_invitation,
                related_entity_type="Invitation",
                related_entity_id=str(invitation.id),
                created_by_user_id=user_id,
            )
        await self._session.commit()
        log.info("invitation_created", family_id=str(family_id), invitation_id=str(invitation.id))
        return invitation_read(invitation)

    async def family_invitations(
        self, user_id: uuid.UUID, family_id: uuid.UUID
    ) -> list[InvitationRead]:
        _, member = await self.require_member(user_id, family_id)
        if member.role not in _INVITER_ROLES:
            raise ForbiddenError("Only family admins and parents can view invitations")
        return [invitation_read(i) for i in await self._invitations.list_for_family(family_id)]

    async def my_invitations(self, user_id: uuid.UUID) -> list[InvitationRead]:
        user = await self._user(user_id)
        pending = await self._invitations.list_pending_for_email(user.email, utcnow())
        return [invitation_read(i) for i in pending]

    async def _open_invitation(self, user: User, token: str) -> Invitation:
        invitation = await self._invitations.get_by_token(token)
        if invitation is None:
            raise NotFoundError("Invitation not found")
        if invitation.email != user.email.lower():
            raise ForbiddenError("This invitation was sent to a different email address")
        if invitation.is_accepted or invitation.is_declined:
            raise ValidationError("This invitation has already been used")
        if invitation.expires_at <= utcnow():
            raise ValidationError("This invitation has expired")
        return invitation

    async def accept(self, user_id: uuid.UUID, token: str) -> FamilyRead:
        user = await self._user(user_id)
        invitation = await self._open_invitation(user, token)
        family = await self._family(invitation.family_id)
        if await self._families.get_member(family.id, user_id) is not None:
            raise ConflictError("You are already a member of this family")

        invitation.is_accepted = True
        await self._families.add_member(family_id=family.id, user=user, role=invitation.role)
        await self._record(
            family.id, user_id, "MemberJoined", f"{user.username} joined the family"
        )
        if invitation.created_by_id is not None:
            await self._notifications.notify(
                user_id=invitation.created_by_id,
                title="Invitation accepted",
                message=f"{user.username} joined {family.name}",
                notification_type=NotificationType.family_activity,
                related_entity_type="Family",
                related_entity_id=str(family.id),
                created_by_user_id=user_id,
            )
        await self._session.commit()
        log.info("invitation_accepted", family_id=str(family.id), user_id=str(user_id))
        return await self._read(family)

    async def decline(self, user_id: uuid.UUID, token: str) -> None:
        user = await self._user(user_id)
        invitation = await self._open_invitation(user, token)
        invitation.is_declined = True
        await self._record(
            invitation.family_id,
            user_id,
            "InvitationDeclined",
            f"{user.username} declined the invitation",
        )
        await self._session.commit()

    # --- activity, tasks, leaderboard -------------------------------------

    async def activity(
        self,
        user_id: uuid.UUID,
        family_id: uuid.UUID,
        *,
        page: int,
        page_size: int,
        action_type: str | None = None,
    ) -> tuple[list[FamilyActivity], int]:
        await self.require_member(user_id, family_id)
        return await self._activity.paged(
            family_id, page=page, page_size=page_size, action_type=action_type
        )

    async def tasks(self, user_id: uuid.UUID, family_id: uuid.UUID) -> list[TaskItem]:
        await self.require_member(user_id, family_id)
        return await self._tasks.list_for_family(family_id)

    async def assign_task(
        self, user_id: uuid.UUID, family_id: uuid.UUID, body: AssignTaskRequest
    ) -> TaskItem:
        await self.require_member(user_id, family_id)
        task = await self._tasks.get(body.task_id)
        if task is None:
            raise NotFoundError(f"Task with ID {body.task_id} not found")
        if task.user_id != user_id:
            raise ForbiddenError("Only the task owner can assign it")
        assignee = await self._families.get_member(family_id, body.assignee_user_id)
        if assignee is None:
            raise ValidationError("The assignee is not a member of this family")

        task.family_id = family_id
        task.assigned_to_user_id = assignee.user_id
        task.assigned_by_user_id = user_id
        task.updated_at = utcnow()
        await self._record(
            family_id,
            user_id,
            "TaskAssigned",
            f"'{task.title}' was assigned to {assignee.user.username}",
            entity_type="TaskItem",
            entity_id=task.id,
        )
        if assignee.user_id != user_id:
            await self._notifications.notify(
                user_id=assignee.user_id,
                title="New task assigned",
                message=f"You have been assigned '{task.title}'",
                notification_type=NotificationType.task_assigned,
                related_entity_type="TaskItem",
                related_entity_id=str(task.id),
                created_by_user_id=user_id,
            )
        await self._session.commit()
        log.info("task_assigned", task_id=str(task.id), assignee=str(assignee.user_id))
        return task

    async def leaderboard(self, user_id: uuid.UUID, family_id: uuid.UUID) -> list[LeaderboardEntry]:
        await self.require_member(user_id, family_id)
        members = await self._families.list_members(family_id)
        progress = await self._progress.list_progress_for_users([m.user_id for m in members])
        rows = sorted(
            (
                (m, progress[m.user_id].total_points_earned if m.user_id in progress else 0)
                for m in members
            ),
            key=lambda row: (-row[1], row[0].user.username),
        )
        return [
            LeaderboardEntry(rank=i, user_id=m.user_id, username=m.user.username, value=points)
            for i, (m, points) in enumerate(rows, start=1)
        ]


# --- Module Notes -----------------------------------------------------------
# Invitations bind to an e-mail address rather than a user id so people can be
# invited before they register; acceptance checks the caller's current e-mail.
