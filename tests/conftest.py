"""
Shared pytest fixtures for the College Site Registry test suite.

Provides:
    - app: Flask application on the memory store (session-scoped)
    - fresh_store: a new MemStorage per test, installed on the app (autouse)
    - client: Flask test client
    - sql_app / sql_store: SQL backend on in-memory SQLite, tables recreated per test
    - any_store: parametrized over both backends for contract tests
    - admin / assessor / viewer: users plus ready-made Bearer token headers
"""

import pytest

from app import create_app
from app.models import db as _db
from app.services import jwt_service, user_service
from app.store import EXTENSION_KEY, MemStorage, SqlStorage

TEST_ROUNDS = 4


# ── App fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(autouse=True)
def fresh_store(app):
    """Per-test: empty memory store and an open app context."""
    store = MemStorage()
    app.extensions[EXTENSION_KEY] = store
    with app.app_context():
        yield store


@pytest.fixture()
def store(fresh_store):
    return fresh_store


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── SQL backend ──────────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def sql_app():
    """Application wired to SqlStorage on in-memory SQLite."""
    return create_app("testing_sql")


@pytest.fixture()
def sql_store(sql_app):
    """Per-test: recreated tables and a SqlStorage bound to them."""
    with sql_app.app_context():
        _db.drop_all()
        _db.create_all()
        yield SqlStorage()
        _db.session.rollback()
        _db.session.remove()


@pytest.fixture(params=["memory", "sql"])
def any_store(request):
    """The entity store contract holds for every backend."""
    if request.param == "memory":
        return MemStorage()
    return request.getfixturevalue("sql_store")


# ── Users ────────────────────────────────────────────────────────────────


def _make_user(store, username, role, **extra):
    payload = {
        "username": username,
        "password": f"{username}-secret",
        "name": username.title(),
        "role": role,
        **extra,
    }
    return user_service.create_user(store, payload, rounds=TEST_ROUNDS)


def _actor_headers(user):
    return {"Authorization": f"Bearer {jwt_service.generate_access_token(user)}"}


@pytest.fixture()
def admin(store):
    return _make_user(store, "admin", "Admin", email="admin@nwcetc.edu.za")


@pytest.fixture()
def assessor(store):
    return _make_user(store, "field", "Field Assessor")


@pytest.fixture()
def viewer(store):
    return _make_user(store, "viewer", "Viewer")


@pytest.fixture()
def admin_headers(admin):
    return _actor_headers(admin)


@pytest.fixture()
def assessor_headers(assessor):
    return _actor_headers(assessor)


@pytest.fixture()
def viewer_headers(viewer):
    return _actor_headers(viewer)
