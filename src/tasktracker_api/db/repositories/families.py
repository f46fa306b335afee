"""
tasktracker_api.db.repositories.families

Repositories for the family aggregate.

Responsibilities:
- Families and their memberships.
- Invitations (token lookups, pending-by-email).
- Append-only family activity feed.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.models import (
    Family,
    FamilyActivity,
    FamilyMember,
    FamilyRole,
    Invitation,
    User,
)
from tasktracker_api.db.repositories._text import LIKE_ESCAPE, contains_pattern


class FamilyRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self, *, name: str, description: str | None, created_by_id: uuid.UUID
    ) -> Family:
        family = Family(name=name, description=description, created_by_id=created_by_id)
        self._session.add(family)
        await self._session.flush()
        return family

    async def get(self, family_id: uuid.UUID) -> Family | None:
        return await self._session.get(Family, family_id)

    async def list_for_user(self, user_id: uuid.UUID) -> list[Family]:
        stmt = (
            select(Family)
            .join(FamilyMember, FamilyMember.family_id == Family.id)
            .where(FamilyMember.user_id == user_id)
            .order_by(Family.name)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def search_for_user(self, user_id: uuid.UUID, term: str) -> list[Family]:
        pattern = contains_pattern(term)
        stmt = (
            select(Family)
            .join(FamilyMember, FamilyMember.family_id == Family.id)
            .where(
                FamilyMember.user_id == user_id,
                Family.name.ilike(pattern, escape=LIKE_ESCAPE)
                | Family.description.ilike(pattern, escape=LIKE_ESCAPE),
            )
            .order_by(Family.name)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def delete(self, family: Family) -> None:
        await self._session.delete(family)
        await self._session.flush()

    # --- members ------------------------------------------------------------

    async def add_member(
        self,
        *,
        family_id: uuid.UUID,
        user: User,
        role: FamilyRole,
        display_name: str | None = None,
    ) -> FamilyMember:
        member = FamilyMember(
            family_id=family_id, user_id=user.id, user=user, role=role, display_name=display_name
        )
        self._session.add(member)
        await self._session.flush()
        return member

    async def get_member(self, family_id: uuid.UUID, user_id: uuid.UUID) -> FamilyMember | None:
        stmt = select(FamilyMember).where(
            FamilyMember.family_id == family_id, FamilyMember.user_id == user_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_member_by_id(self, member_id: uuid.UUID) -> FamilyMember | None:
        return await self._session.get(FamilyMember, member_id)

    async def list_members(self, family_id: uuid.UUID) -> list[FamilyMember]:
        stmt = (
            select(FamilyMember)
            .where(FamilyMember.family_id == family_id)
            .order_by(FamilyMember.joined_at)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def count_admins(self, family_id: uuid.UUID) -> int:
        stmt = select(func.count(FamilyMember.id)).where(
            FamilyMember.family_id == family_id, FamilyMember.role == FamilyRole.admin
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def family_ids_for_user(self, user_id: uuid.UUID) -> list[uuid.UUID]:
        stmt = select(FamilyMember.family_id).where(FamilyMember.user_id == user_id)
        return list((await self._session.execute(stmt)).scalars())

    async def remove_member(self, member: FamilyMember) -> None:
        await self._session.delete(member)
        await self._session.flush()


class InvitationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, invitation: Invitation) -> Invitation:
        self._session.add(invitation)
        await self._session.flush()
        return invitation

    async def get_by_token(self, token: str) -> Invitation | None:
        stmt = select(Invitation).where(Invitation.token == token)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_family(self, family_id: uuid.UUID) -> list[Invitation]:
        stmt = (
            select(Invitation)
            .where(Invitation.family_id == family_id)
            .order_by(desc(Invitation.created_at))
        )
        return list((await self._session.execute(stmt)).scalars())

    async def list_pending_for_email(self, email: str, now: datetime) -> list[Invitation]:
        stmt = (
            select(Invitation)
            .where(
                Invitation.email == email.lower(),
                Invitation.is_accepted.is_(False),
                Invitation.is_declined.is_(False),
                Invitation.expires_at > now,
            )
            .order_by(desc(Invitation.created_at))
        )
        return list((await self._session.execute(stmt)).scalars())

    async def find_pending(
        self, family_id: uuid.UUID, email: str, now: datetime
    ) -> Invitation | None:
        stmt = select(Invitation).where(
            Invitation.family_id == family_id,
            Invitation.email == email.lower(),
            Invitation.is_accepted.is_(False),
            Invitation.is_declined.is_(False),
            Invitation.expires_at > now,
        )
        return (await self._session.execute(stmt)).scalars().first()


class FamilyActivityRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        family_id: uuid.UUID,
        actor_id: uuid.UUID | None,
        action_type: str,
        description: str,
        entity_type: str | None = None,
        entity_id: str | None = None,
    ) -> FamilyActivity:
        activity = FamilyActivity(
            family_id=family_id,
            actor_id=actor_id,
            action_type=action_type,
            description=description,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        self._session.add(activity)
        await self._session.flush()
        return activity

    async def paged(
        self,
        family_id: uuid.UUID,
        *,
        page: int,
        page_size: int,
        action_type: str | None = None,
    ) -> tuple[list[FamilyActivity], int]:
        where = [FamilyActivity.family_id == family_id]
        if action_type:
            where.append(FamilyActivity.action_type == action_type)
        total = (
            await self._session.execute(select(func.count(FamilyActivity.id)).where(*where))
        ).scalar_one()
        stmt = (
            select(FamilyActivity)
            .where(*where)
            .order_by(desc(FamilyActivity.created_at), desc(FamilyActivity.id))
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list((await self._session.execute(stmt)).scalars()), total


# --- Module Notes -----------------------------------------------------------
# Activity rows are never updated; the feed is ordered newest first.
