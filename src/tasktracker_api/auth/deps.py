"""
tasktracker_api.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer token into a typed `Principal`.
- Enforce the role hierarchy via a reusable dependency factory.
"""

from __future__ import annotations

import uuid

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from tasktracker_api.api.deps import settings_dep
from tasktracker_api.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from tasktracker_api.auth.models import Principal
from tasktracker_api.db.models import UserRole
from tasktracker_api.settings import Settings

_bearer = HTTPBearer(auto_error=False)


def principal_from_token(token: str, settings: Settings) -> Principal:
    try:
        # Authn: validate signature and registered claims (iss/aud/exp/sub...).
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=token)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e

    subject = str(payload.get("sub", ""))
    roles_raw = payload.get("roles", [])
    try:
        uuid.UUID(subject)
    except ValueError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token subject") from e
    if not isinstance(roles_raw, list):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token roles")

    return Principal(subject=subject, roles=frozenset(str(r) for r in roles_raw))


def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Principal:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    return principal_from_token(creds.credentials, settings)


def get_optional_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Principal | None:
    if creds is None or not creds.credentials:
        return None
    try:
        return principal_from_token(creds.credentials, settings)
    except HTTPException:
        return None


def require_roles(minimum: UserRole = UserRole.regular_user):
    def _dep(principal: Principal = Depends(get_principal)) -> Principal:
        # Authz: roles are ordered, so any higher role satisfies the check.
        if not principal.has_at_least(minimum):
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Insufficient role")
        return principal

    return _dep


def current_user_id(principal: Principal = Depends(get_principal)) -> uuid.UUID:
    return principal.user_id


# --- Module Notes -----------------------------------------------------------
# Routers attach `require_roles(...)` as a router-level dependency and take the
# caller id from `current_user_id`; FastAPI caches `get_principal` per request so
# the token is decoded once.
