"""
Shared pytest fixtures.

Uses an SQLite database file so no Postgres is required for tests.
Persistence and coach adapters are replaced by the in-memory fakes from
tests/fakes.py for the store / coach tests.
"""
import os

SQLITE_URL = "sqlite:///./test_hugfeed.db"
os.environ.setdefault("DATABASE_URL", SQLITE_URL)

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.errors import RemoteError
from app.db.base import Base, get_db
from app.main import app
from app.routers.coach import get_coach
from app.services.store import StateStore
from app import models  # noqa: F401  (registers tables on Base.metadata)
from tests.fakes import TODAY, FakeCoach, MemoryAdapter

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def call_log():
    return []


@pytest.fixture()
def remote(call_log):
    return MemoryAdapter("remote", call_log)


@pytest.fixture()
def local(call_log):
    return MemoryAdapter("local", call_log)


@pytest.fixture()
def store(remote, local):
    return StateStore(remote, local, debounce_seconds=0.05, today=lambda: TODAY)


@pytest.fixture()
def fake_coach():
    return FakeCoach()


@pytest.fixture()
def failing_coach():
    return FakeCoach(error=RemoteError("network unreachable"))


@pytest.fixture()
def client(db, fake_coach):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_coach] = lambda: fake_coach
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def session_factory():
    return TestingSessionLocal


@pytest.fixture()
def api_client():
    """Async client talking to the app in-process, for the HTTP adapters."""
    app.dependency_overrides[get_db] = override_get_db
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    yield client
    app.dependency_overrides.clear()
