"""Runtime settings for the finance tracker, read from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Final
from urllib.parse import quote_plus

DEFAULT_DB_PATH: Final[Path] = Path("artifacts") / "tracker.db"
DEFAULT_TOKEN_TTL_HOURS: Final[int] = 24
DEFAULT_BCRYPT_ROUNDS: Final[int] = 10
DEFAULT_HOST: Final[str] = "127.0.0.1"
DEFAULT_PORT: Final[int] = 5000


class ConfigurationError(RuntimeError):
    """Raised when the environment does not describe a usable configuration."""


def _int_from_env(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def database_url_from_env(environ: Mapping[str, str] | None = None) -> str:
    """Resolve the store location.

    ``DATABASE_URL`` wins; otherwise the ``DB_*`` connection parameters
    describe a PostgreSQL server; otherwise a local SQLite file is used.
    """

    environ = os.environ if environ is None else environ
    explicit = environ.get("DATABASE_URL", "").strip()
    if explicit:
        return explicit
    host = environ.get("DB_HOST", "").strip()
    if host:
        user = quote_plus(environ.get("DB_USER", ""))
        password = quote_plus(environ.get("DB_PASSWORD", ""))
        port = _int_from_env(environ, "DB_PORT", 5432)
        name = environ.get("DB_DATABASE", "").strip()
        credentials = f"{user}:{password}@" if user else ""
        return f"postgresql+psycopg://{credentials}{host}:{port}/{name}"
    path = environ.get("TRACKER_DB_PATH", "").strip() or str(DEFAULT_DB_PATH)
    return f"sqlite:///{path}"


@dataclass(frozen=True)
class Settings:
    database_url: str
    jwt_secret: str
    token_ttl: timedelta = timedelta(hours=DEFAULT_TOKEN_TTL_HOURS)
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cors_origins: tuple[str, ...] = field(default=("*",))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``environ`` (defaults to :data:`os.environ`)."""

        env = os.environ if environ is None else environ
        secret = env.get("JWT_SECRET", "").strip()
        if not secret:
            raise ConfigurationError("JWT_SECRET must be set to sign session tokens")
        ttl_hours = _int_from_env(env, "TOKEN_TTL_HOURS", DEFAULT_TOKEN_TTL_HOURS)
        if ttl_hours <= 0:
            raise ConfigurationError("TOKEN_TTL_HOURS must be positive")
        origins = tuple(
            origin.strip() for origin in env.get("CORS_ORIGINS", "*").split(",") if origin.strip()
        )
        return cls(
            database_url=database_url_from_env(env),
            jwt_secret=secret,
            token_ttl=timedelta(hours=ttl_hours),
            bcrypt_rounds=_int_from_env(env, "BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS),
            host=env.get("HOST", "").strip() or DEFAULT_HOST,
            port=_int_from_env(env, "PORT", DEFAULT_PORT),
            cors_origins=origins or ("*",),
        )


__all__ = ["ConfigurationError", "Settings", "database_url_from_env"]
