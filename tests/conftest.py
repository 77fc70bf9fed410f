# tests/conftest.py
# PURPOSE: temp SQLite Database per test, a TestClient bound to it, and helpers
# to register/login users and to drive the task engine directly.

# Ensure project root is on sys.path so `import taskboard` works when running pytest.
import sys, os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient

from taskboard.auth import hash_password
from taskboard.db import Database
from taskboard.main import app
from taskboard.models import UserIdentity
from taskboard.rate_limit import limiter
from taskboard.store_db import TaskRepository, UserRepository
from taskboard.tasks import TaskQueryEngine


@pytest.fixture()
def database(tmp_path):
    # A file (not :memory:) so every pooled connection sees the same data
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    db.open(create_schema=True)
    yield db
    db.close()


@pytest.fixture()
def client(database):
    # Limits are per client address and TestClient always uses "testclient"
    limiter.reset()
    app.state.database = database
    # context manager runs the lifespan (open on startup, close on shutdown)
    with TestClient(app) as c:
        yield c
    limiter.reset()


@pytest.fixture()
def make_user(client) -> Callable[..., Dict[str, str]]:
    """Register + login through the API; returns Authorization headers."""

    def _make(email: str, username: str | None = None, password: str = "secret-123") -> Dict[str, str]:
        r = client.post(
            "/auth/register",
            json={"email": email, "username": username or email.split("@")[0], "password": password},
        )
        assert r.status_code == 201, r.text
        r = client.post("/auth/login", data={"username": email, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _make


@pytest.fixture()
def alice(make_user) -> Dict[str, str]:
    return make_user("alice@example.com")


@pytest.fixture()
def bob(make_user) -> Dict[str, str]:
    return make_user("bob@example.com")


# --- engine-level fixtures (no HTTP) ---


@pytest.fixture()
def session(database):
    with database.session() as db:
        yield db


def _add_user(session, email: str, username: str) -> UserIdentity:
    row = UserRepository(session).add(email=email, username=username, password_hash=hash_password("pw-123456"))
    return UserIdentity.model_validate(row)


@pytest.fixture()
def user_a(session) -> UserIdentity:
    return _add_user(session, "a@example.com", "user_a")


@pytest.fixture()
def user_b(session) -> UserIdentity:
    return _add_user(session, "b@example.com", "user_b")


@pytest.fixture()
def task_engine(session) -> TaskQueryEngine:
    return TaskQueryEngine(TaskRepository(session))
