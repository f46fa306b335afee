"""
tasktracker_api.auth.jwt

JWT issuing and validation helpers.

Responsibilities:
- Issue access tokens for authenticated users.
- Decode and validate JWTs with strict claim requirements (iss/aud/exp/iat/sub).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from tasktracker_api.settings import Settings


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Algorithm/issuer/audience are enforced during decoding.
    alg: str
    issuer: str
    audience: str
    secret: str

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
        )


class JwtValidationError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class IssuedToken:
    token: str
    expires_at: datetime


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    roles: list[str],
    ttl: timedelta = timedelta(hours=1),
    extra_claims: dict[str, Any] | None = None,
) -> IssuedToken:
    now = datetime.now(tz=UTC)
    expires_at = now + ttl
    payload: dict[str, Any] = {
        **(extra_claims or {}),
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": subject,
        "roles": roles,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return IssuedToken(
        token=jwt.encode(payload, cfg.secret, algorithm=cfg.alg),
        expires_at=expires_at.replace(tzinfo=None),
    )


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        # jwt.decode enforces signature + registered claims (issuer/audience/exp, etc.).
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub"],
            },
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e


# --- Module Notes -----------------------------------------------------------
# Tokens are issued by `services.auth_service` on register/login and validated by
# `auth.deps` on every protected route.
