"""
Account repository implementation following the Repository pattern.
Each call runs in its own short transaction on the shared engine.
"""

from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
import structlog

from ..core.database import Database
from ..core.decorators import storage_operation
from ..core.exceptions import DuplicateAccountError, NotFoundError
from ..interfaces.repository_interface import IAccountRepository
from ..models.account import Account

logger = structlog.get_logger()

_WRITABLE_FIELDS = frozenset({
    "email",
    "password_hash",
    "firstname",
    "lastname",
    "roles",
    "email_validated",
})


class AccountRepository(IAccountRepository):
    """Repository for account data access operations."""

    def __init__(self, database: Database, timeout: float = 5.0):
        self._database = database
        self.timeout = timeout

    @storage_operation("account.find_by_email")
    async def find_by_email(self, email: str) -> Optional[Account]:
        async with self._database.session_factory() as session:
            result = await session.execute(select(Account).where(Account.email == email))
            return result.scalar_one_or_none()

    @storage_operation("account.find_by_id")
    async def find_by_id(self, account_id: str) -> Optional[Account]:
        async with self._database.session_factory() as session:
            return await session.get(Account, account_id)

    @storage_operation("account.create")
    async def create(self, fields: Dict[str, Any]) -> Account:
        """
        Create a new account.

        Args:
            fields: Column values; ``email`` and ``password_hash`` are required

        Returns:
            Created account instance
        """
        self._check_fields(fields)
        account = Account(**fields)

        async with self._database.session_factory() as session:
            session.add(account)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateAccountError() from e

        logger.info("Account created successfully", account_id=account.id)
        return account

    @storage_operation("account.update")
    async def update(self, account_id: str, fields: Dict[str, Any]) -> Account:
        self._check_fields(fields)

        async with self._database.session_factory() as session:
            account = await session.get(Account, account_id)
            if account is None:
                raise NotFoundError()

            for key, value in fields.items():
                setattr(account, key, value)

            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateAccountError() from e

        logger.debug("Account updated", account_id=account_id, fields=sorted(fields))
        return account

    @staticmethod
    def _check_fields(fields: Dict[str, Any]) -> None:
        unknown = set(fields) - _WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown account fields: {sorted(unknown)}")
