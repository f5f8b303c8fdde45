"""Account store: all reads and writes against the ``users`` table."""

from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import EmailExistsError, StorageError
from .models.account import Account, AccountStatus
from .utils.logging import get_logger

logger = get_logger("usermgmt.store")


class AccountStore:
    """Thin repository over an injected session.

    Store failures are rolled back, logged and raised as StorageError with
    the public message for the failed operation.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _fail(self, operation: str, exc: Exception, public_message: str) -> StorageError:
        logger.error("storage_error", operation=operation, error=str(exc))
        await self.session.rollback()
        return StorageError(public_message)

    async def get_by_email(self, email: str) -> Optional[Account]:
        try:
            result = await self.session.execute(select(Account).where(Account.email == email))
        except SQLAlchemyError as e:
            raise await self._fail("get_by_email", e, "Database error") from e
        return result.scalar_one_or_none()

    async def get_by_id(self, account_id: int) -> Optional[Account]:
        try:
            result = await self.session.execute(select(Account).where(Account.id == account_id))
        except SQLAlchemyError as e:
            raise await self._fail("get_by_id", e, "Database error") from e
        return result.scalar_one_or_none()

    async def create(self, name: str, email: str, password_digest: str) -> Account:
        account = Account(
            name=name,
            email=email,
            password=password_digest,
            status=AccountStatus.ACTIVE.value,
        )
        self.session.add(account)
        try:
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email
            await self.session.rollback()
            raise EmailExistsError() from e
        except SQLAlchemyError as e:
            raise await self._fail("create", e, "Error creating user") from e
        await self.session.refresh(account)
        return account

    async def list_all(self) -> list[Account]:
        """All accounts, most recently logged in first, never-logged-in last."""
        stmt = select(Account).order_by(
            Account.last_login.is_(None),
            Account.last_login.desc(),
            Account.id,
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise await self._fail("list_all", e, "Database error") from e
        return list(result.scalars().all())

    async def touch_last_login(self, account_id: int) -> None:
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(last_login=datetime.now(timezone.utc))
        )
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("touch_last_login", e, "Database error") from e

    async def set_status(
        self,
        account_ids: Iterable[int],
        new_status: AccountStatus,
        failure_message: str = "Database error",
    ) -> int:
        """Bulk status update. Unknown ids are ignored. Returns rows matched."""
        ids = list(account_ids)
        stmt = (
            update(Account)
            .where(Account.id.in_(ids))
            .values(status=new_status.value)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("set_status", e, failure_message) from e
        logger.info("status_updated", status=new_status.value, ids=ids, rows=result.rowcount)
        return result.rowcount

    async def delete(self, account_ids: Iterable[int], failure_message: str = "Database error") -> int:
        """Bulk hard delete. Unknown ids are ignored. Returns rows removed."""
        ids = list(account_ids)
        stmt = (
            delete(Account)
            .where(Account.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("delete", e, failure_message) from e
        logger.info("accounts_deleted", ids=ids, rows=result.rowcount)
        return result.rowcount
