"""Pytest fixtures: a file-backed SQLite database per test.

File-backed rather than in-memory so that several sessions (and threads) can
see the same data, which the race tests need.
"""
import os

# The module-level app in mutual_aid.main must not need a Postgres driver.
os.environ.setdefault("DATABASE_URL", "sqlite:///./mutual_aid_dev.db")

import pytest
from fastapi.testclient import TestClient

from mutual_aid.config import Settings
from mutual_aid.database import Base, build_engine, build_session_factory
from mutual_aid.main import create_app
from mutual_aid.models.request import HelpCategory
from mutual_aid.models.user import Role, User


@pytest.fixture(scope="function")
def settings(tmp_path):
    return Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}", CORS_ORIGINS="http://testserver")


@pytest.fixture(scope="function")
def db_engine(settings):
    """Create a fresh SQLite engine (and schema) for each test."""
    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session for service-level tests."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(settings, db_engine):
    """TestClient for an app built against the per-test database."""
    app = create_app(settings)
    with TestClient(app) as c:
        yield c
    app.state.engine.dispose()


# ---------------------------------------------------------------------------
# Helpers: HTTP
# ---------------------------------------------------------------------------
def auth(user: dict) -> dict:
    """Headers identifying ``user`` as the caller."""
    return {"X-User-Id": user["user_id"]}


def create_test_user(client: TestClient, name: str = "Test User", role: str = "USER", email: str = None) -> dict:
    """POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={
        "name": name,
        "email": email or f"{name.lower().replace(' ', '.')}@example.com",
        "phone": "+380501234567",
        "city": "Kyiv",
        "role": role,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_request(client: TestClient, owner: dict, **overrides) -> dict:
    """POST /api/requests as ``owner`` and return response JSON."""
    body = {
        "title": "Need groceries",
        "description": "Cannot leave the flat this week, need basic groceries delivered.",
        "category": "FOOD",
        "city": "Kyiv",
    }
    body.update(overrides)
    resp = client.post("/api/requests/", json=body, headers=auth(owner))
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Helpers: service level
# ---------------------------------------------------------------------------
def make_user(db, name: str, role: Role = Role.USER) -> User:
    user = User(name=name, email=f"{name.lower()}@example.com", phone="+380500000000", city="Lviv", role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


REQUEST_FIELDS = {
    "title": "Ride to the clinic",
    "description": "Need a lift to the clinic on Monday morning and back home.",
    "category": HelpCategory.TRANSPORT,
    "city": "Lviv",
}
