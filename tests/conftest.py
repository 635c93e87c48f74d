"""
Shared pytest fixtures for the Delivery Tracker test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - store: TrackerStore bound to the test session
    - admin / member / other_member: pre-created users
    - auth_headers: X-User-Id header builder
"""

from datetime import datetime, timezone

import pytest

from app import create_app
from app.models import db as _db
from app.models.enums import TeamName, UserRole
from app.services.store import TrackerStore

T0 = datetime(2024, 5, 6, 9, 0, tzinfo=timezone.utc)


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def store():
    return TrackerStore()


# ── Users ────────────────────────────────────────────────────────────────


@pytest.fixture()
def admin(store):
    user = store.create_user(name="Hemanth", password="admin", role=UserRole.ADMIN)
    store.commit()
    return user


@pytest.fixture()
def member(store):
    user = store.create_user(name="Akshat", password="user", team=TeamName.HIGH_VELOCITY)
    store.commit()
    return user


@pytest.fixture()
def other_member(store):
    user = store.create_user(name="Krishna", password="user", team=TeamName.AGENCY)
    store.commit()
    return user


@pytest.fixture()
def auth_headers():
    """Build the identity header for a user."""
    def _headers(user):
        return {"X-User-Id": str(user.id)}
    return _headers


@pytest.fixture()
def t0():
    """Fixed, tz-aware reference instant for timer tests."""
    return T0
