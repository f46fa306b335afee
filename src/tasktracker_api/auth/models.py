"""
tasktracker_api.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
- Rank application roles so checks can express "this role or higher".
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from tasktracker_api.db.models import UserRole

_ROLE_ORDER: tuple[UserRole, ...] = tuple(UserRole)


def role_rank(role: str | UserRole) -> int:
    try:
        return _ROLE_ORDER.index(UserRole(role))
    except ValueError:
        return -1


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity.
    """

    subject: str
    roles: frozenset[str]

    @property
    def user_id(self) -> uuid.UUID:
        return uuid.UUID(self.subject)

    @property
    def highest_rank(self) -> int:
        return max((role_rank(r) for r in self.roles), default=-1)

    def has_at_least(self, role: UserRole) -> bool:
        return self.highest_rank >= role_rank(role)

    @property
    def is_admin(self) -> bool:
        return self.has_at_least(UserRole.admin)


# --- Module Notes -----------------------------------------------------------
# The subject is the user's UUID as a string; `auth.deps.get_principal` rejects
# tokens whose subject does not parse.
