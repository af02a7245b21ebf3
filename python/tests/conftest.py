"""Pytest configuration and fixtures for ClipShare tests.

Test isolation strategy:
- Every test gets a fresh in-memory SQLite database (StaticPool, foreign
  keys on) with the schema created from the ORM metadata
- The app is wired to that database and to an in-memory FakeMediaStore
- Auth tests use session tokens minted by tests.helpers
"""

import os
import sys
from collections.abc import Generator
from pathlib import Path

# Test settings must be in place before anything reads them
os.environ["CLIPSHARE_ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["MEDIA_BACKEND"] = "local"
os.environ["MAX_UPLOAD_BYTES"] = str(1024 * 1024)
for _name in ("ADMIN_BOOTSTRAP_EMAIL", "ADMIN_BOOTSTRAP_PASSWORD", "STORAGE_TEST_PREFIX"):
    os.environ.pop(_name, None)

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from clipshare.app import add_request_id_middleware, create_app
from clipshare.config import clear_settings_cache
from clipshare.db.engine import create_db_engine
from clipshare.db.models import Base, User
from clipshare.db.session import create_session_factory
from clipshare.storage.client import FakeMediaStore
from tests.factories import create_test_user


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database with the full schema."""
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Session for arranging and inspecting test data.

    Objects are not expired on commit, so call db_session.expire_all()
    before reading rows changed through the API.
    """
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def media_store() -> FakeMediaStore:
    return FakeMediaStore()


@pytest.fixture
def app(session_factory: sessionmaker[Session], media_store: FakeMediaStore) -> FastAPI:
    """App with auth middleware, bound to the test database and fake store."""
    app = create_app(media_store=media_store, session_factory=session_factory)
    add_request_id_middleware(app, log_requests=False)
    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as client:
        yield client


@pytest.fixture
def user(db_session: Session) -> User:
    """A regular USER account."""
    return create_test_user(db_session, email="user@example.com", name="Regular User")


@pytest.fixture
def other_user(db_session: Session) -> User:
    return create_test_user(db_session, email="other@example.com", name="Other User")


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return create_test_user(db_session, email="admin@example.com", name="Admin", role="ADMIN")


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset the settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
