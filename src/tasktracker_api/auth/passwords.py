"""
tasktracker_api.auth.passwords

bcrypt password hashing.
"""

from __future__ import annotations

import bcrypt

# bcrypt only reads the first 72 bytes; current releases reject longer input.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, *, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        # Never hashable at registration, so it cannot match a stored hash.
        return False
    try:
        return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False
