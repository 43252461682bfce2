"""Password hashing and session token helpers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt

JWT_ALGORITHM = "HS256"


def hash_password(password: str, rounds: int = 10) -> str:
    """Return a bcrypt hash for the given password."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def issue_token(claims: dict[str, Any], secret: str, expires_in: timedelta) -> str:
    """Sign a session token carrying ``claims`` that expires after ``expires_in``."""
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, secret: str) -> dict[str, Any]:
    """Verify a session token and return its claims.

    Raises ``jwt.InvalidTokenError`` for bad signatures, malformed or expired tokens.
    """
    return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
