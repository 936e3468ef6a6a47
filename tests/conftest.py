"""Pytest fixtures for Flask application testing.

Requests run without an outer app context so that each request gets a fresh
``g`` and database session, like in production. Database setup and
assertions open short ``app.app_context()`` blocks of their own.
"""

import os
from collections import namedtuple
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest


# Disable OpenTelemetry for tests
os.environ["OTEL_SDK_DISABLED"] = "true"


UserRecord = namedtuple("UserRecord", ["id", "email", "password"])


class FakeClock:
    """Controllable replacement for ``utcnow``."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def app():
    """Create test application backed by a fresh in-memory database."""
    from taskflow import create_app
    from taskflow.config import TestConfig

    app = create_app(TestConfig)

    yield app

    from taskflow.extensions import db as _db

    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def services(app):
    from taskflow.context import get_services

    return get_services(app)


@pytest.fixture
def clock(services):
    clock = FakeClock(datetime(2026, 1, 15, 12, 0, 0))
    services.clock = clock
    return clock


@pytest.fixture
def outbox(services):
    return services.mailer.outbox


@pytest.fixture
def assistant(services):
    """Replace the model client with a mock."""
    from taskflow.services.llm import AssistantClient

    fake = MagicMock(spec=AssistantClient)
    services.assistant = fake
    return fake


@pytest.fixture
def make_user(app):
    """Factory inserting users directly; returns plain records."""
    from taskflow.extensions import db as _db
    from taskflow.models import User

    def _make_user(email="test@example.com", password="password123", name="Test User",
                   verified=True):
        with app.app_context():
            user = User(email=email, name=name, verified=verified)
            user.set_password(password)
            _db.session.add(user)
            _db.session.commit()
            return UserRecord(user.id, email, password)

    return _make_user


@pytest.fixture
def user(make_user):
    """Create verified test user."""
    return make_user()


@pytest.fixture
def other_user(make_user):
    return make_user(email="other@example.com", name="Other User")


@pytest.fixture
def login(app):
    """Return a helper producing a client logged in as the given user."""

    def _login(record):
        client = app.test_client()
        response = client.post(
            "/api/login",
            json={"identifier": record.email, "password": record.password},
        )
        assert response.status_code == 200, response.get_json()
        return client

    return _login


@pytest.fixture
def auth_client(login, user):
    """Test client holding a session for ``user``."""
    return login(user)


@pytest.fixture
def other_client(login, other_user):
    return login(other_user)


@pytest.fixture
def make_task(app):
    """Factory inserting a task for a user id; returns the task id."""
    from taskflow.extensions import db as _db
    from taskflow.models import Task

    def _make_task(user_id, title="Write report", **fields):
        with app.app_context():
            task = Task(user_id=user_id, title=title, **fields)
            _db.session.add(task)
            _db.session.commit()
            return task.id

    return _make_task


@pytest.fixture
def in_db(app):
    """Run a callable against the database inside a short app context."""
    from taskflow.extensions import db as _db

    def _in_db(fn):
        with app.app_context():
            return fn(_db.session)

    return _in_db
