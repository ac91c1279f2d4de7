"""Pytest configuration and fixtures."""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENV"] = "dev"
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tools_hub.db import Base, get_db
from tools_hub.main import app
from tools_hub.middleware.rate_limit import rate_limiter
from tools_hub.schemas.tool import Tool
from tools_hub.services.auth import create_session
from tools_hub.services.kv_store import KeyValueStore
from tools_hub.services.notifications import get_notification_dispatcher
from tools_hub.settings import settings

ADMIN_EMAIL = "mhansen@cmgfi.com"
USER_EMAIL = "jdoe@cmgfi.com"
OTHER_USER_EMAIL = "asmith@cmgfi.com"

# Use in-memory SQLite for tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingDispatcher:
    """Stands in for the email dispatcher and remembers what it was asked to send."""

    def __init__(self):
        self.sent = []

    def dispatch(self, notifications):
        self.sent.extend(notifications)

    @property
    def kinds(self):
        return [n.kind.value for n in self.sent]


def make_tool(**overrides) -> Tool:
    """Build a stored-shape tool with sensible defaults."""
    data = {
        "id": "tool-1",
        "title": "Guideline Assistant",
        "description": "Answers guideline questions",
        "url": "https://example.cmgfi.com/guidelines",
        "category": "CMG Product",
        "status": "pending",
        "createdBy": USER_EMAIL,
        "createdAt": "2026-01-01T00:00:00.000Z",
        "updatedAt": "2026-01-01T00:00:00.000Z",
    }
    data.update(overrides)
    return Tool.model_validate(data)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture(scope="function")
def client(db_session, dispatcher):
    """Create a test client with overridden database and notification dependencies."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    # Not used as a context manager: startup validation targets the configured database
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def login(client, db_session):
    """Sign the test client in as the given email by issuing a session directly."""
    def _login(email: str):
        session = create_session(db_session, email)
        client.cookies.set(settings.SESSION_COOKIE_NAME, session.session_token)
        return session
    return _login


@pytest.fixture(scope="function")
def seed_tools(db_session):
    """Write tools straight into the store."""
    def _seed(*tools: Tool):
        KeyValueStore(db_session).set(settings.TOOLS_KEY, [tool.to_document() for tool in tools])
    return _seed


@pytest.fixture(scope="function")
def stored_tools(db_session):
    """Read the raw stored tool documents."""
    def _read():
        return KeyValueStore(db_session).get(settings.TOOLS_KEY, default=[])
    return _read
