"""Structured logging helpers shared by the finance tracker."""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Final

CONSOLE_FORMAT: Final[str] = "[%(levelname)s] %(name)s: %(message)s"
DEFAULT_LEVEL: Final[str] = "INFO"
LOG_ROOT: Final[Path] = Path("artifacts") / "logs"
LOG_PATH: Final[Path] = LOG_ROOT / "tracker.log"
JSON_ENV_FLAG: Final[str] = "TRACKER_JSON_LOGS"
LEVEL_ENV_FLAG: Final[str] = "TRACKER_LOG_LEVEL"
ROOT_LOGGER: Final[str] = "finance_tracker"


class JsonAuditFormatter(logging.Formatter):
    """Render log records as single-line JSON payloads."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        payload = {
            "timestamp": timestamp,
            "level": record.levelname,
            "source": record.name,
            "message": record.getMessage(),
            "method": getattr(record, "method", None),
            "path": getattr(record, "path", None),
            "status_code": _coerce_int(getattr(record, "status_code", None)),
            "duration_ms": _coerce_number(getattr(record, "duration_ms", None)),
            "user_id": _coerce_int(getattr(record, "user_id", None)),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _coerce_number(value: object) -> float | None:
    """Convert arbitrary extras to ``float`` when possible."""

    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _coerce_int(value: object) -> int | None:
    number = _coerce_number(value)
    return None if number is None else int(number)


def _resolve_level(level: str | int | None) -> int:
    """Pick the level from ``TRACKER_LOG_LEVEL`` first, then the argument."""

    env_level = os.environ.get(LEVEL_ENV_FLAG)
    if env_level:
        candidate = env_level.strip().upper()
    elif isinstance(level, str):
        candidate = level.strip().upper()
    elif isinstance(level, int):
        return int(level)
    else:
        candidate = DEFAULT_LEVEL
    resolved = logging.getLevelName(candidate)
    return int(resolved) if isinstance(resolved, int) else logging.INFO


def _json_logging_enabled(explicit: bool) -> bool:
    """Return ``True`` when JSON logging is requested by argument or environment."""

    if explicit:
        return True
    value = os.environ.get(JSON_ENV_FLAG)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _ensure_console_handler(logger: logging.Logger, level: int) -> None:
    """Attach the console handler unless the logger already carries one."""

    for handler in logger.handlers:
        if getattr(handler, "_tracker_console", False):
            handler.setLevel(level)
            return
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    stream_handler._tracker_console = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)


def _ensure_json_handler(logger: logging.Logger, level: int) -> None:
    """Attach the JSON-lines file handler under ``artifacts/logs`` once."""

    for handler in logger.handlers:
        if getattr(handler, "_tracker_json", False):
            handler.setLevel(level)
            return
    LOG_ROOT.mkdir(parents=True, exist_ok=True)
    json_handler = logging.FileHandler(LOG_PATH, encoding="utf-8")
    json_handler.setLevel(level)
    json_handler.setFormatter(JsonAuditFormatter())
    json_handler._tracker_json = True  # type: ignore[attr-defined]
    logger.addHandler(json_handler)


def setup_logger(
    name: str,
    json_format: bool = False,
    level: str | int | None = None,
) -> logging.Logger:
    """Configure and return a module logger.

    Calling it repeatedly for the same name never stacks handlers. Records
    still propagate to the parent loggers so capture handlers (``caplog``)
    see them.
    """

    resolved_level = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(resolved_level)
    logger.propagate = True
    _ensure_console_handler(logger, resolved_level)
    if _json_logging_enabled(json_format):
        _ensure_json_handler(logger, resolved_level)
    return logger


def configure_cli_logging(json_logs: bool, level: str | int | None = None) -> None:
    """Reconfigure every existing ``finance_tracker`` logger for a CLI run."""

    if json_logs:
        os.environ[JSON_ENV_FLAG] = "1"
    else:
        os.environ.pop(JSON_ENV_FLAG, None)
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not isinstance(logger, logging.Logger):
            continue
        if not name.startswith(ROOT_LOGGER):
            continue
        setup_logger(name, json_format=json_logs, level=level)
    setup_logger(ROOT_LOGGER, json_format=json_logs, level=level)


__all__ = ["JsonAuditFormatter", "configure_cli_logging", "setup_logger"]
