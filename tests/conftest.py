"""
Shared fixtures.

The application reads its settings at import time, so the environment is
prepared before any backend module is imported.  Every test gets a fresh
in-memory SQLite database; the app's ``get_db`` dependency is overridden to
hand out sessions bound to it.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production-use-0123456789"
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"
os.environ.setdefault("PARENTCIRCLE_LOG_DIR", tempfile.mkdtemp(prefix="parentcircle-logs-"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import models.audit_log  # noqa: F401, E402
import models.baby  # noqa: F401, E402
import models.cohort  # noqa: F401, E402
import models.password_reset_token  # noqa: F401, E402
import models.post  # noqa: F401, E402
from database import Base, get_db  # noqa: E402
from main import app as fastapi_app  # noqa: E402
from models.user import User  # noqa: E402
from storage.user_manager import UserManager  # noqa: E402

DEFAULT_PASSWORD = "Sup3rSecret!"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def app(session_factory):
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _get_test_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client_for(app):
    """
    Factory returning a logged-in TestClient per username.  Each client keeps
    its own cookie jar, so several users can act in one test.
    """
    clients = []

    def _make(username: str, password: str = DEFAULT_PASSWORD, email: str | None = None):
        client = TestClient(app)
        clients.append(client)
        resp = client.post("/api/register", json={
            "username": username,
            "password": password,
            "full_name": f"{username.title()} Parent",
            "email": email or f"{username}@example.com",
        })
        assert resp.status_code == 201, resp.text
        client.user = resp.json()
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def anon_client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_user(db):
    """Create a user directly through the identity store."""
    def _make(username: str, role: str = "user") -> User:
        user = UserManager(db).register(username, DEFAULT_PASSWORD, username.title(), f"{username}@example.com")
        if role != "user":
            user.role = role
            db.commit()
            db.refresh(user)
        return user

    return _make


@pytest.fixture
def promote(session_factory):
    """Give an existing user the global admin role."""
    def _promote(user_id: int) -> None:
        session = session_factory()
        try:
            session.get(User, user_id).role = "admin"
            session.commit()
        finally:
            session.close()

    return _promote
