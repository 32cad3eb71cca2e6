"""Backend package providing a REST API for personal expenses and loans."""

from __future__ import annotations

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "auth",
    "cli",
    "config",
    "crud",
    "database",
    "errors",
    "logging",
    "models",
    "schemas",
    "security",
    "server",
]
