from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from finance_tracker import logging as runtime_logging
from finance_tracker.logging import configure_cli_logging, setup_logger


@pytest.fixture(autouse=True)
def isolate_logging(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Reset logging handlers and run in a temporary working directory."""

    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(runtime_logging.LEVEL_ENV_FLAG, raising=False)
    yield
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if isinstance(logger, logging.Logger) and name.startswith("finance_tracker.tests"):
            for handler in logger.handlers:
                handler.close()
            logger.handlers = []
            logger.setLevel(logging.NOTSET)


def test_setup_logger_resolves_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(runtime_logging.LEVEL_ENV_FLAG, "DEBUG")
    logger = setup_logger("finance_tracker.tests.level")

    assert logger.isEnabledFor(logging.DEBUG)
    console_handlers = [h for h in logger.handlers if getattr(h, "_tracker_console", False)]
    assert len(console_handlers) == 1
    assert console_handlers[0].formatter._fmt == runtime_logging.CONSOLE_FORMAT


def test_setup_logger_is_idempotent() -> None:
    first = setup_logger("finance_tracker.tests.same", json_format=True)
    second = setup_logger("finance_tracker.tests.same", json_format=True)

    assert first is second
    json_handlers = [h for h in second.handlers if getattr(h, "_tracker_json", False)]
    assert len(json_handlers) == 1


def test_json_handler_writes_request_fields() -> None:
    logger = setup_logger("finance_tracker.tests.json", json_format=True)
    logger.info(
        "GET /api/loans -> 200",
        extra={"method": "GET", "path": "/api/loans", "status_code": 200, "duration_ms": 1.5, "user_id": 3},
    )
    for handler in logger.handlers:
        handler.flush()

    lines = runtime_logging.LOG_PATH.read_text(encoding="utf-8").splitlines()
    payload = json.loads(lines[-1])
    assert payload["level"] == "INFO"
    assert payload["source"] == "finance_tracker.tests.json"
    assert payload["method"] == "GET"
    assert payload["status_code"] == 200
    assert payload["duration_ms"] == 1.5
    assert payload["user_id"] == 3


def test_configure_cli_logging_toggles_json_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(runtime_logging.JSON_ENV_FLAG, raising=False)
    setup_logger("finance_tracker.tests.cli")
    configure_cli_logging(json_logs=True, level="WARNING")
    try:
        logger = logging.getLogger("finance_tracker.tests.cli")
        assert any(getattr(h, "_tracker_json", False) for h in logger.handlers)
        assert logger.level == logging.WARNING
    finally:
        configure_cli_logging(json_logs=False, level="INFO")
        for name, logger in logging.Logger.manager.loggerDict.items():
            if isinstance(logger, logging.Logger) and name.startswith("finance_tracker"):
                for handler in [h for h in logger.handlers if getattr(h, "_tracker_json", False)]:
                    handler.close()
                    logger.removeHandler(handler)
