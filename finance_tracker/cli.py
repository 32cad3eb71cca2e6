"""Command-line interface for running and preparing the finance tracker."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from . import __version__
from .config import ConfigurationError, Settings, database_url_from_env
from .database import Database
from .logging import configure_cli_logging, setup_logger

DESCRIPTION = "Personal finance tracker backend"
LOG = setup_logger(__name__)


def _add_logging_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Also write JSON audit logs under artifacts/logs",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (overridden by TRACKER_LOG_LEVEL)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="finance-tracker", description=DESCRIPTION)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST or 127.0.0.1)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT or 5000)")
    serve.add_argument("--reload", action="store_true", help="Reload on source changes")
    _add_logging_flags(serve)

    init_db = subparsers.add_parser("init-db", help="Create the database schema")
    _add_logging_flags(init_db)
    return parser


def _handle_serve(args: argparse.Namespace) -> None:
    import uvicorn

    settings = Settings.from_env()
    host = args.host or settings.host
    port = args.port or settings.port
    LOG.info("Starting API on %s:%s", host, port)
    uvicorn.run(
        "finance_tracker.server:create_app",
        factory=True,
        host=host,
        port=port,
        reload=args.reload,
        log_level=(args.log_level or "info").lower(),
    )


def _handle_init_db(args: argparse.Namespace) -> None:
    database = Database(database_url_from_env())
    try:
        database.create_all()
    finally:
        database.dispose()
    LOG.info("Schema ready at %s", database.engine.url.render_as_string(hide_password=True))


HANDLERS = {
    "serve": _handle_serve,
    "init-db": _handle_init_db,
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_cli_logging(args.json_logs, args.log_level)
    try:
        HANDLERS[args.command](args)
    except ConfigurationError as exc:
        parser.error(str(exc))
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
