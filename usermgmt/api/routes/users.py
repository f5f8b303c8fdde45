"""User management routes: listing and bulk block / unblock / delete.

Every route here runs behind the access gate (``require_active_account``).
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from ...dependencies import get_account_store, require_active_account
from ...errors import RequestValidationFailed
from ...models.account import Account, AccountStatus
from ...store import AccountStore
from ...utils.logging import get_logger

logger = get_logger("usermgmt.api.users")

router = APIRouter(prefix="/users", tags=["users"])

# Ids outside the SQLite INTEGER range can never match a row
AccountId = Annotated[int, Field(ge=1, le=2**63 - 1)]


class UserIdsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_ids: Optional[list[AccountId]] = Field(default=None, alias="userIds")


class AccountResponse(BaseModel):
    id: int
    name: str
    email: str
    status: str
    last_login: Optional[str] = None


class BlockResponse(BaseModel):
    message: str
    logout: Optional[bool] = None


def _require_ids(body: Optional[UserIdsRequest], error_message: str) -> list[int]:
    """Reject an absent or empty id set before anything touches storage."""
    if body is None or not body.user_ids:
        raise RequestValidationFailed(error_message)
    return body.user_ids


@router.get("", response_model=list[AccountResponse])
async def list_users(
    store: AccountStore = Depends(get_account_store),
    current: Account = Depends(require_active_account),
):
    """List every account, most recent login first."""
    accounts = await store.list_all()
    return [a.to_dict() for a in accounts]


@router.post("/block", response_model=BlockResponse, response_model_exclude_none=True)
async def block_users(
    body: Optional[UserIdsRequest] = None,
    store: AccountStore = Depends(get_account_store),
    current: Account = Depends(require_active_account),
):
    """Block accounts. Tells the caller to log out if it blocked itself."""
    ids = _require_ids(body, "No users selected")
    await store.set_status(ids, AccountStatus.BLOCKED, failure_message="Failed to block users")
    logger.info("users_blocked", actor=current.id, ids=ids)

    if current.id in ids:
        return {"message": "You have been blocked and logged out", "logout": True}
    return {"message": "Users blocked successfully"}


@router.post("/unblock", response_model=BlockResponse, response_model_exclude_none=True)
async def unblock_users(
    body: Optional[UserIdsRequest] = None,
    store: AccountStore = Depends(get_account_store),
    current: Account = Depends(require_active_account),
):
    ids = _require_ids(body, "No valid user IDs provided for unblocking")
    await store.set_status(ids, AccountStatus.ACTIVE, failure_message="Failed to unblock users")
    logger.info("users_unblocked", actor=current.id, ids=ids)
    return {"message": "Users unblocked successfully"}


@router.post("/delete", response_model=BlockResponse, response_model_exclude_none=True)
async def delete_users(
    body: Optional[UserIdsRequest] = None,
    store: AccountStore = Depends(get_account_store),
    current: Account = Depends(require_active_account),
):
    """Hard-delete accounts."""
    ids = _require_ids(body, "No users selected for deletion")
    await store.delete(ids, failure_message="Error deleting users")
    logger.info("users_deleted", actor=current.id, ids=ids)
    return {"message": "Users deleted successfully"}
