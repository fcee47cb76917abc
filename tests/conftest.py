from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from dashboard.core.config import settings
from dashboard.core.security import brute_force_protection
from dashboard.db.base import Base
from dashboard.db.redis import get_redis
from dashboard.db.session import get_db
from dashboard.models import Application, E2EManualRun, Notification, Todo
from dashboard.services.circle_ci import get_optional_circle_ci_client


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite://"
TEST_API_KEY = "test-api-key-123"

TRIGGER_CONFIGURATION = '{"branch": "master", "parameters": {"run_e2e": true}}'


@pytest.fixture(autouse=True)
def api_key(monkeypatch):
    """Configure a known API key and start every test with a clean block list."""
    monkeypatch.setattr(settings, "API_SECURITY_KEY", TEST_API_KEY)
    monkeypatch.setattr(settings, "FIREBASE_CREDENTIALS_PATH", "")
    monkeypatch.setattr(brute_force_protection, "_attempts", {})
    return TEST_API_KEY


@pytest.fixture()
def db_session():
    """Per-test SQLite in-memory session."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key support in SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def redis_mock():
    """Stand-in for the Redis client: publishes succeed and locks are granted."""
    redis = MagicMock()
    redis.publish.return_value = 1
    redis.lock.return_value.acquire.return_value = True
    redis.ping.return_value = True
    return redis


@pytest.fixture()
def client(db_session, redis_mock):
    """TestClient with DB and Redis overrides; CircleCI is unconfigured."""
    from dashboard.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis_mock
    app.dependency_overrides[get_optional_circle_ci_client] = lambda: None
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(api_key):
    return {"X-API-Key": api_key}


@pytest.fixture()
def seed_apps(db_session):
    """Two watched apps (one triggerable) and one unwatched app."""
    apps = [
        Application(name="Agent Portal", code="agent-portal", watching=True,
                    e2e_trigger_configuration=TRIGGER_CONFIGURATION),
        Application(name="Billing", code="billing", watching=True),
        Application(name="Legacy Admin", code="legacy-admin", watching=False),
    ]
    db_session.add_all(apps)
    db_session.commit()
    return apps


@pytest.fixture()
def seed_todos(db_session):
    now = datetime(2025, 6, 15, 10, 0, 0)
    todos = [
        Todo(title="Write release notes", due_date=now + timedelta(days=2)),
        Todo(title="Review PR", due_date=now, is_completed=True),
        Todo(title="Someday", due_date=None),
    ]
    db_session.add_all(todos)
    db_session.commit()
    return todos


@pytest.fixture()
def seed_notifications(db_session):
    base_time = datetime(2025, 6, 15, 10, 0, 0)
    items = [
        Notification(title="Old", message="first", type="info", is_read=True, created_at=base_time),
        Notification(title="Middle", message="second", type="warning", created_at=base_time + timedelta(hours=1)),
        Notification(title="New", message="third", type="error", link="/pull_requests",
                     created_at=base_time + timedelta(hours=2)),
    ]
    db_session.add_all(items)
    db_session.commit()
    return items


@pytest.fixture()
def seed_manual_run(db_session, seed_apps):
    run = E2EManualRun(app_id=seed_apps[0].id, pipeline_id="pipeline-1")
    db_session.add(run)
    db_session.commit()
    return run
