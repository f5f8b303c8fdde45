"""FastAPI dependency injection providers."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from .auth.gate import AccessGate, GateContext, security_scheme
from .auth.tokens import TokenService
from .config import UserMgmtConfig, get_config
from .database import get_session
from .models.account import Account
from .store import AccountStore

_config_instance: UserMgmtConfig | None = None
_access_gate = AccessGate()


def get_app_config() -> UserMgmtConfig:
    """Get the application config singleton."""
    global _config_instance
    if _config_instance is None:
        _config_instance = get_config()
    return _config_instance


async def get_db(config: UserMgmtConfig = Depends(get_app_config)):
    """Get an async database session."""
    async for session in get_session(config):
        yield session


def get_account_store(db: AsyncSession = Depends(get_db)) -> AccountStore:
    """Account store bound to this request's session."""
    return AccountStore(db)


def get_token_service(config: UserMgmtConfig = Depends(get_app_config)) -> TokenService:
    return TokenService.from_config(config)


def get_access_gate() -> AccessGate:
    return _access_gate


async def require_active_account(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    store: AccountStore = Depends(get_account_store),
    tokens: TokenService = Depends(get_token_service),
    gate: AccessGate = Depends(get_access_gate),
) -> Account:
    """Run the access gate and return the acting account."""
    ctx = GateContext(request=request, store=store, tokens=tokens, credentials=credentials)
    return await gate.run(ctx)
