"""Error taxonomy mapped onto HTTP responses of the form ``{"error": ...}``."""

from __future__ import annotations


class TrackerError(RuntimeError):
    """Base class for failures that are reported to the client."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InputValidationError(TrackerError):
    """Raised when a request carries missing or malformed input."""

    status_code = 400
    default_message = "Invalid input"


class DuplicateUserError(TrackerError):
    status_code = 400
    default_message = "User already exists"


class AuthFailure(TrackerError):
    """Wrong credentials on login. Reported as 400 to keep the client contract."""

    status_code = 400
    default_message = "Invalid credentials"


class UserNotFoundError(AuthFailure):
    default_message = "User does not exist"


class InvalidPasswordError(AuthFailure):
    default_message = "Invalid password"


class MissingTokenError(TrackerError):
    status_code = 401
    default_message = "Access denied"


class InvalidTokenError(TrackerError):
    status_code = 403
    default_message = "Invalid token"


class EntityNotFoundError(TrackerError):
    """Raised when a row is absent or owned by another user."""

    status_code = 404
    default_message = "Not found"


class StorageFailure(TrackerError):
    status_code = 500
    default_message = "Server error"


__all__ = [
    "AuthFailure",
    "DuplicateUserError",
    "EntityNotFoundError",
    "InputValidationError",
    "InvalidPasswordError",
    "InvalidTokenError",
    "MissingTokenError",
    "StorageFailure",
    "TrackerError",
    "UserNotFoundError",
]
