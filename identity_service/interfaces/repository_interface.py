"""
Repository interfaces for dependency abstraction.
Defines the account directory contract consumed by the credential workflows.
"""

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from ..models.account import Account


@runtime_checkable
class IAccountRepository(Protocol):
    """Protocol for account directory operations."""

    async def find_by_email(self, email: str) -> Optional[Account]:
        """
        Get account by email (exact, case-sensitive match).

        Args:
            email: Account email

        Returns:
            Account instance or None if not found
        """
        ...

    async def find_by_id(self, account_id: str) -> Optional[Account]:
        """
        Get account by ID.

        Args:
            account_id: Opaque account identifier

        Returns:
            Account instance or None if not found
        """
        ...

    async def create(self, fields: Dict[str, Any]) -> Account:
        """
        Create a new account.

        Args:
            fields: Column values; ``email`` and ``password_hash`` are required

        Returns:
            Created account instance

        Raises:
            DuplicateAccountError: If the email is already taken
        """
        ...

    async def update(self, account_id: str, fields: Dict[str, Any]) -> Account:
        """
        Update account fields.

        Args:
            account_id: Account to update
            fields: Column values to set

        Returns:
            Updated account instance

        Raises:
            NotFoundError: If no account has this ID
        """
        ...
