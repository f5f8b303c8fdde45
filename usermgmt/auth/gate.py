"""Access gate guarding the user-management endpoints.

The gate is an ordered pipeline of steps run before every protected handler:

    extract_bearer_token -> verify_session_token -> resolve_account -> reject_blocked

Each step reads and fills a shared ``GateContext``. A step either returns,
letting the next one run, or raises an ``AppError`` which ends the request
with that error. The status check runs on every request, so a token issued
before its account was blocked stops working as soon as the block commits.
"""

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Sequence

from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.requests import Request

from ..errors import AccountBlockedError, AccountNotFoundError, AppError, MissingTokenError
from ..models.account import Account
from ..store import AccountStore
from ..utils.logging import get_logger
from .tokens import TokenService

logger = get_logger("usermgmt.auth.gate")

security_scheme = HTTPBearer(auto_error=False)


@dataclass
class GateContext:
    request: Request
    store: AccountStore
    tokens: TokenService
    credentials: Optional[HTTPAuthorizationCredentials] = None
    token: Optional[str] = None
    account_id: Optional[int] = None
    account: Optional[Account] = None
    passed: list[str] = field(default_factory=list)


GateStep = Callable[[GateContext], Awaitable[None]]


async def extract_bearer_token(ctx: GateContext) -> None:
    credentials = ctx.credentials or await security_scheme(ctx.request)
    if credentials is None:
        raise MissingTokenError()
    ctx.credentials = credentials
    ctx.token = credentials.credentials


async def verify_session_token(ctx: GateContext) -> None:
    ctx.account_id = ctx.tokens.verify(ctx.token)


async def resolve_account(ctx: GateContext) -> None:
    account = await ctx.store.get_by_id(ctx.account_id)
    if account is None:
        raise AccountNotFoundError()
    ctx.account = account


async def reject_blocked(ctx: GateContext) -> None:
    if ctx.account.is_blocked:
        raise AccountBlockedError()


DEFAULT_STEPS: tuple[GateStep, ...] = (
    extract_bearer_token,
    verify_session_token,
    resolve_account,
    reject_blocked,
)


class AccessGate:
    """Runs gate steps in order and returns the authorized account."""

    def __init__(self, steps: Sequence[GateStep] = DEFAULT_STEPS):
        self.steps = tuple(steps)

    async def run(self, ctx: GateContext) -> Account:
        for step in self.steps:
            try:
                await step(ctx)
            except AppError as e:
                logger.info(
                    "gate_rejected",
                    step=step.__name__,
                    reason=type(e).__name__,
                    account_id=ctx.account_id,
                    path=ctx.request.url.path,
                )
                raise
            ctx.passed.append(step.__name__)

        ctx.request.state.account = ctx.account
        return ctx.account
