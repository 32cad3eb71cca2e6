"""Registration, login and bearer-token authentication."""
from __future__ import annotations

from typing import Optional, Tuple

from fastapi import Header, Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas, security
from .config import Settings
from .errors import DuplicateUserError, InvalidPasswordError, MissingTokenError, UserNotFoundError
from .logging import setup_logger

LOG = setup_logger(__name__)


def get_settings(request: Request) -> Settings:
    """FastAPI dependency returning the settings the app was built with."""
    return request.app.state.settings


def find_user_by_email(session: Session, email: str) -> Optional[models.User]:
    stmt = select(models.User).where(models.User.email == email)
    return session.scalars(stmt).first()


def _issue_token(user: models.User, settings: Settings) -> str:
    return security.create_access_token(user.user_id, settings.jwt_secret, settings.token_ttl)


def register(session: Session, payload: schemas.RegisterRequest, settings: Settings) -> str:
    """Create a user and return a session token bound to it."""
    if find_user_by_email(session, payload.email) is not None:
        raise DuplicateUserError()

    user = models.User(
        name=payload.name,
        email=payload.email,
        password=security.hash_password(payload.password, rounds=settings.bcrypt_rounds),
    )
    session.add(user)
    try:
        session.flush()
    except IntegrityError as exc:
        # Concurrent registration won the unique index.
        raise DuplicateUserError() from exc
    session.refresh(user)
    LOG.info("Registered user %s", user.user_id)
    return _issue_token(user, settings)


def login(session: Session, payload: schemas.LoginRequest, settings: Settings) -> Tuple[str, str]:
    """Check credentials and return ``(token, display name)``."""
    user = find_user_by_email(session, payload.email)
    if user is None:
        raise UserNotFoundError()
    if not security.verify_password(payload.password, user.password):
        LOG.info("Rejected login for user %s", user.user_id)
        raise InvalidPasswordError()
    return _issue_token(user, settings), user.name


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the credential following the scheme in an ``Authorization`` value."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) < 2:
        return None
    return parts[1]


def get_current_user_id(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> int:
    """FastAPI dependency resolving the caller from the bearer token."""
    token = bearer_token(authorization)
    if token is None:
        raise MissingTokenError()
    user_id = security.decode_access_token(token, get_settings(request).jwt_secret)
    request.state.user_id = user_id
    return user_id
