"""
Pytest configuration and fixtures for the assignment engine tests.

Every test gets its own SQLite file under tmp_path with the schema created
from the ORM models, seeded with:

- super@x   (super_admin)
- sub1@x    (sub_admin)
- sub2@x    (sub_admin)
- clients A, B, C, D, none of them assigned
"""
import os

os.environ.setdefault("ENABLE_CREATE_ALL", "0")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from contentops.core.access import resolve_access
from contentops.core.auth import get_db
from contentops.core.security import create_access_token
from contentops.db.session import create_all, make_engine, make_session_factory
from contentops.main import app
from contentops.models.admin import SUB_ADMIN, SUPER_ADMIN, Admin
from contentops.models.client import Client
from contentops.services.registry import AssignmentRegistry

SUPER_EMAIL = "super@x"
SUB1_EMAIL = "sub1@x"
SUB2_EMAIL = "sub2@x"


@pytest.fixture
async def engine(tmp_path):
    """Fresh database per test."""
    eng = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_all(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seed(db):
    """Three admins and four unassigned clients. Returns their ids."""
    admins = {
        "super": Admin(id="admin-super", email=SUPER_EMAIL, name="Super", role=SUPER_ADMIN),
        "sub1": Admin(id="admin-sub1", email=SUB1_EMAIL, name="Sub One", role=SUB_ADMIN),
        "sub2": Admin(id="admin-sub2", email=SUB2_EMAIL, name="Sub Two", role=SUB_ADMIN),
    }
    clients = {
        "a": Client(id="client-a", email="a@client.com", company="Acme"),
        "b": Client(id="client-b", email="b@client.com", company="Beta Ltd"),
        "c": Client(id="client-c", email="c@client.com", company=None),
        "d": Client(id="client-d", email="d@client.com", company="Delta"),
    }
    db.add_all(list(admins.values()) + list(clients.values()))
    await db.commit()

    return SimpleNamespace(
        super_id="admin-super",
        sub1_id="admin-sub1",
        sub2_id="admin-sub2",
        client_a="client-a",
        client_b="client-b",
        client_c="client-c",
        client_d="client-d",
    )


@pytest.fixture
async def super_ctx(db, seed):
    return await resolve_access(db, SUPER_EMAIL)


@pytest.fixture
async def sub1_ctx(db, seed):
    return await resolve_access(db, SUB1_EMAIL)


@pytest.fixture
async def registry(db, super_ctx):
    """Loaded registry for the super admin."""
    return await AssignmentRegistry.load(db, super_ctx)


# ----------------------------
# HTTP
# ----------------------------
def auth_headers(email: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(email)}"}


@pytest.fixture
async def api(session_factory, seed):
    """httpx client against the app, wired to the per-test database."""

    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
