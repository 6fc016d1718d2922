"""Shared test fixtures for the Spacefy backend test suite.

Tests run against a throwaway SQLite file (override with TEST_DATABASE_URL).
Tables are created on app import; every test starts from empty tables with
the role and permission catalog re-seeded.

The response cache runs on an in-memory store installed on ``app.state``
before the lifespan starts, so no Redis is needed.
"""

import os
import tempfile

# Point the app at the test database before any app imports.
_TEST_DIR = tempfile.mkdtemp(prefix="spacefy-tests-")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite:///{_TEST_DIR}/test.db",
)
os.environ["LOG_FORMAT"] = "text"
os.environ["REDIS_URL"] = ""

import pytest
from fastapi.testclient import TestClient

from spacefy.core.seeder import seed_catalog
from spacefy.database import Base, SessionLocal, get_db
from spacefy.main import app

from tests.fakes import FailingCacheStore, InMemoryCacheStore


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty every table and re-seed the catalog before each test."""
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
        seed_catalog(db)
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def cache_store():
    return InMemoryCacheStore()


def _make_client(db, store):
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.state.cache_store = store
    return TestClient(app)


@pytest.fixture()
def client(db, cache_store):
    """TestClient with the DB session overridden and the in-memory cache installed."""
    with _make_client(db, cache_store) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def failing_client(db):
    """TestClient whose cache store raises on every call, like an unreachable Redis."""
    with _make_client(db, FailingCacheStore()) as c:
        yield c
    app.dependency_overrides.clear()
