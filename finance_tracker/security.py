"""Password hashing and session token primitives."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Final

import bcrypt
from jose import JWTError, jwt

from .errors import InvalidTokenError

ALGORITHM: Final[str] = "HS256"
DEFAULT_ROUNDS: Final[int] = 10
DEFAULT_TTL: Final[timedelta] = timedelta(days=1)


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of ``password``."""

    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def create_access_token(
    user_id: int,
    secret: str,
    ttl: timedelta = DEFAULT_TTL,
    now: datetime | None = None,
) -> str:
    """Issue a signed token carrying ``user_id`` that expires after ``ttl``."""

    issued = now or datetime.now(tz=UTC)
    claims = {
        "id": int(user_id),
        "iat": int(issued.timestamp()),
        "exp": int((issued + ttl).timestamp()),
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, secret: str) -> int:
    """Verify ``token`` and return the embedded user identifier.

    Raises:
        InvalidTokenError: when the signature, the expiry or the claims do not
            check out.
    """

    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError() from exc
    user_id = claims.get("id")
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise InvalidTokenError()
    return user_id


__all__ = ["create_access_token", "decode_access_token", "hash_password", "verify_password"]
