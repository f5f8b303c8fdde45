"""Shared test fixtures: in-memory app, async client, account helpers."""

import os
import tempfile

import pytest
import pytest_asyncio
from fastapi import Depends
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Force test config BEFORE any app imports
os.environ["DEBUG"] = "true"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-usermgmt-tests"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="usermgmt-logs-")

import usermgmt.database as db_mod
import usermgmt.dependencies as dep_mod
from usermgmt.dependencies import get_account_store, get_db
from usermgmt.models.account import Account
from usermgmt.models.base import Base
from usermgmt.store import AccountStore


def _reset_singletons():
    db_mod._engine = None
    db_mod._session_factory = None
    dep_mod._config_instance = None


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test, shared across connections via StaticPool."""
    _reset_singletons()
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    db_mod._engine = test_engine
    db_mod._session_factory = async_sessionmaker(test_engine, expire_on_commit=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()
    _reset_singletons()


@pytest_asyncio.fixture
async def session_factory(engine):
    return db_mod._session_factory


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest_asyncio.fixture
async def app(engine):
    from usermgmt.main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def fail_store_on(app):
    """Make the request-scoped store fail every statement of the given kinds."""

    def _install(*statement_types):
        async def _failing_store(db: AsyncSession = Depends(get_db)) -> AccountStore:
            real_execute = db.execute

            async def execute(statement, *args, **kwargs):
                if isinstance(statement, statement_types):
                    raise OperationalError(str(statement), {}, Exception("disk I/O error"))
                return await real_execute(statement, *args, **kwargs)

            db.execute = execute
            return AccountStore(db)

        app.dependency_overrides[get_account_store] = _failing_store

    return _install


@pytest.fixture
def fetch_account(session_factory):
    """Read an account straight from the store, bypassing the API."""

    async def _fetch(email: str) -> Account | None:
        async with session_factory() as s:
            result = await s.execute(select(Account).where(Account.email == email))
            return result.scalar_one_or_none()

    return _fetch


@pytest.fixture
def login_as(client, fetch_account):
    """Register (if needed) and log in; returns (account_id, auth headers)."""

    async def _login(name: str, email: str, password: str = "p1"):
        if await fetch_account(email) is None:
            resp = await client.post(
                "/register", json={"name": name, "email": email, "password": password}
            )
            assert resp.status_code == 201, resp.text
        resp = await client.post("/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        account = await fetch_account(email)
        return account.id, {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login
