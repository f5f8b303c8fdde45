"""Registration and login routes."""

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from ...auth.tokens import TokenService
from ...config import UserMgmtConfig
from ...dependencies import get_account_store, get_app_config, get_token_service
from ...errors import (
    EmailExistsError,
    IncorrectPasswordError,
    LoginBlockedError,
    RequestValidationFailed,
    StorageError,
    UnknownEmailError,
)
from ...store import AccountStore
from ...utils.logging import get_logger
from ...utils.security import hash_password, verify_password

logger = get_logger("usermgmt.api.auth")

router = APIRouter(tags=["auth"])


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class LoginResponse(BaseModel):
    message: str
    token: str


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: Optional[RegisterRequest] = None,
    store: AccountStore = Depends(get_account_store),
    config: UserMgmtConfig = Depends(get_app_config),
):
    """Create an active account. Email must be unused."""
    body = body or RegisterRequest()
    if not body.name or not body.email or not body.password:
        raise RequestValidationFailed("Please provide all required fields")

    if await store.get_by_email(body.email) is not None:
        raise EmailExistsError()

    account = await store.create(
        name=body.name,
        email=body.email,
        password_digest=hash_password(body.password, rounds=config.bcrypt_rounds),
    )
    logger.info("account_registered", account_id=account.id)
    return {"message": "User registered successfully"}


@router.post("/login", response_model=LoginResponse)
async def login(
    body: Optional[LoginRequest] = None,
    store: AccountStore = Depends(get_account_store),
    tokens: TokenService = Depends(get_token_service),
):
    """Check credentials and issue a session token."""
    body = body or LoginRequest()
    if not body.email or not body.password:
        raise RequestValidationFailed("Please provide both email and password")

    account = await store.get_by_email(body.email)
    if account is None:
        raise UnknownEmailError()

    # Blocked accounts are refused before the password is even compared
    if account.is_blocked:
        logger.info("login_refused_blocked", account_id=account.id)
        raise LoginBlockedError()

    if not verify_password(body.password, account.password):
        logger.info("login_failed", account_id=account.id)
        raise IncorrectPasswordError()

    token = tokens.issue(account.id)

    try:
        await store.touch_last_login(account.id)
    except StorageError:
        # The credentials were valid; a missed timestamp does not fail the login
        logger.warning("last_login_not_recorded", account_id=account.id)

    logger.info("login_succeeded", account_id=account.id)
    return {"message": "Login successful", "token": token}
