"""Tests for the access gate pipeline: each rejection step and the happy path."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from starlette.requests import Request

from usermgmt.auth.gate import DEFAULT_STEPS, AccessGate, GateContext
from usermgmt.auth.tokens import TokenService
from usermgmt.errors import (
    AccountBlockedError,
    AccountNotFoundError,
    InvalidTokenError,
    MissingTokenError,
    StorageError,
)
from usermgmt.models.account import Account, AccountStatus

pytestmark = pytest.mark.asyncio

SECRET = "gate-test-secret"


def _make_request(authorization: str | None = None) -> Request:
    headers = []
    if authorization is not None:
        headers.append((b"authorization", authorization.encode()))
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "server": ("test", 80),
        "path": "/users",
        "raw_path": b"/users",
        "root_path": "",
        "query_string": b"",
        "headers": headers,
    }
    return Request(scope)


def _make_store(account=None, error=None):
    store = MagicMock()
    if error is not None:
        store.get_by_id = AsyncMock(side_effect=error)
    else:
        store.get_by_id = AsyncMock(return_value=account)
    return store


def _make_account(account_id=1, status=AccountStatus.ACTIVE):
    return Account(
        id=account_id,
        name="Ann",
        email="a@x.com",
        password="digest",
        status=status.value,
    )


def _context(authorization=None, store=None) -> GateContext:
    return GateContext(
        request=_make_request(authorization),
        store=store or _make_store(),
        tokens=TokenService(secret_key=SECRET),
    )


def _bearer(account_id: int) -> str:
    return f"Bearer {TokenService(secret_key=SECRET).issue(account_id)}"


class TestRejections:
    async def test_missing_header_is_missing_token(self):
        ctx = _context()
        with pytest.raises(MissingTokenError):
            await AccessGate().run(ctx)
        ctx.store.get_by_id.assert_not_awaited()

    async def test_non_bearer_scheme_is_missing_token(self):
        ctx = _context("Basic dXNlcjpwYXNz")
        with pytest.raises(MissingTokenError):
            await AccessGate().run(ctx)

    async def test_bearer_without_credentials_is_missing_token(self):
        ctx = _context("Bearer ")
        with pytest.raises(MissingTokenError):
            await AccessGate().run(ctx)

    async def test_bad_token_is_invalid_and_skips_store(self):
        ctx = _context("Bearer garbage")
        with pytest.raises(InvalidTokenError):
            await AccessGate().run(ctx)
        ctx.store.get_by_id.assert_not_awaited()
        assert ctx.passed == ["extract_bearer_token"]

    async def test_unknown_account_is_not_found(self):
        ctx = _context(_bearer(9), _make_store(account=None))
        with pytest.raises(AccountNotFoundError):
            await AccessGate().run(ctx)
        ctx.store.get_by_id.assert_awaited_once_with(9)

    async def test_blocked_account_is_forbidden(self):
        blocked = _make_account(1, AccountStatus.BLOCKED)
        ctx = _context(_bearer(1), _make_store(account=blocked))
        with pytest.raises(AccountBlockedError):
            await AccessGate().run(ctx)
        assert not hasattr(ctx.request.state, "account")

    async def test_store_failure_propagates(self):
        ctx = _context(_bearer(1), _make_store(error=StorageError()))
        with pytest.raises(StorageError):
            await AccessGate().run(ctx)


class TestAuthorized:
    async def test_active_account_passes_every_step(self):
        account = _make_account(1)
        ctx = _context(_bearer(1), _make_store(account=account))

        result = await AccessGate().run(ctx)

        assert result is account
        assert ctx.request.state.account is account
        assert ctx.account_id == 1
        assert ctx.passed == [step.__name__ for step in DEFAULT_STEPS]

    async def test_scheme_is_case_insensitive(self):
        account = _make_account(1)
        token = TokenService(secret_key=SECRET).issue(1)
        ctx = _context(f"bearer {token}", _make_store(account=account))
        assert await AccessGate().run(ctx) is account

    async def test_resolved_credentials_are_used_without_header(self):
        account = _make_account(1)
        token = TokenService(secret_key=SECRET).issue(1)
        ctx = _context(store=_make_store(account=account))
        ctx.credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

        assert await AccessGate().run(ctx) is account
        assert ctx.token == token

    async def test_custom_steps_run_in_order(self):
        calls = []

        async def first(ctx):
            calls.append("first")

        async def second(ctx):
            calls.append("second")
            raise AccountBlockedError()

        async def never(ctx):
            calls.append("never")

        with pytest.raises(AccountBlockedError):
            await AccessGate([first, second, never]).run(_context())
        assert calls == ["first", "second"]
