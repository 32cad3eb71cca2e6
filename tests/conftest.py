"""Shared pytest fixtures: in-memory store, app factory and API client."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable, Iterator
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker


def _insert_repo_root() -> None:
    """Make the repository root importable when the package is not installed."""

    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_insert_repo_root()

from finance_tracker.config import Settings  # noqa: E402
from finance_tracker.database import Database, get_db  # noqa: E402
from finance_tracker.server import create_app  # noqa: E402

TEST_SECRET = "test-secret"


def pytest_report_header(config: pytest.Config) -> Iterable[str]:  # pragma: no cover - pytest hook
    return [f"finance tracker repo: {Path.cwd()}"]


@pytest.fixture(autouse=True)
def _set_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRACKER_LOG_LEVEL", "INFO")
    monkeypatch.delenv("TRACKER_JSON_LOGS", raising=False)


@pytest.fixture(scope="session")
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        jwt_secret=TEST_SECRET,
        token_ttl=timedelta(days=1),
        bcrypt_rounds=4,
    )


@pytest.fixture(scope="session")
def database(settings: Settings) -> Iterator[Database]:
    test_database = Database(settings.database_url)
    test_database.create_all()
    yield test_database
    test_database.dispose()


@pytest.fixture()
def db_session(database: Database) -> Iterator[Session]:
    connection = database.engine.connect()
    transaction = connection.begin()
    TestingSessionLocal = sessionmaker(bind=connection, autoflush=False, autocommit=False, future=True)
    session: Session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture()
def app(settings: Settings, database: Database, db_session: Session) -> FastAPI:
    def override_get_db():
        yield db_session

    application = create_app(settings, database)
    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def register(client: TestClient) -> Callable[..., dict[str, str]]:
    """Register a user and return the ``Authorization`` header for it."""

    def _register(name: str = "Ana", email: str = "ana@x.com", password: str = "pw123") -> dict[str, str]:
        response = client.post("/api/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _register
