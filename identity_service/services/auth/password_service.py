"""
Password service focused solely on password operations.
Handles password change and the code-based reset flow.
"""

from typing import Optional

import structlog

from ...core.exceptions import CredentialError, DeliveryError, NotFoundError
from ...core.security import PasswordHasher
from ...interfaces.notifier_interface import INotifier
from ...interfaces.repository_interface import IAccountRepository
from ..notification_service import deliver, reset_email
from .single_use_token_service import SingleUseTokenService

logger = structlog.get_logger()


class PasswordService:
    """Service responsible for password operations."""

    def __init__(
        self,
        account_repository: IAccountRepository,
        hasher: PasswordHasher,
        tokens: SingleUseTokenService,
        notifier: INotifier,
        reset_url: str
    ):
        self.account_repository = account_repository
        self.hasher = hasher
        self.tokens = tokens
        self.notifier = notifier
        self.reset_url = reset_url

    async def update_password(self, account_id: str, old_password: str, new_password: str) -> None:
        """
        Change password after checking the current one.

        Args:
            account_id: Account to update
            old_password: Current password
            new_password: Replacement password

        Raises:
            NotFoundError: If the account does not exist
            CredentialError: If ``old_password`` does not match
        """
        account = await self.account_repository.find_by_id(account_id)
        if account is None:
            raise NotFoundError()

        if not await self.hasher.verify(old_password, account.password_hash):
            logger.info("Password change rejected", account_id=account_id, reason="invalid_old_password")
            raise CredentialError()

        password_hash = await self.hasher.hash(new_password)
        await self.account_repository.update(account_id, {"password_hash": password_hash})

        logger.info("Password changed", account_id=account_id)

    async def request_reset(self, email: str, deadline: Optional[float] = None) -> None:
        """
        Issue a reset code for an existing account and mail it.

        Raises:
            NotFoundError: If no account has this email
            ThrottledError: If a code was issued within the throttle window
            DeliveryError: If the message could not be sent; the code is kept
        """
        account = await self.account_repository.find_by_email(email)
        if account is None:
            raise NotFoundError()

        code = await self.tokens.issue(email)

        subject, body = reset_email(code, self.reset_url)
        try:
            await deliver(self.notifier, email, subject, body, deadline=deadline)
        except DeliveryError:
            logger.warning("Password reset email not delivered, code kept", account_id=account.id)
            raise

        logger.info("Password reset requested", account_id=account.id)

    async def complete_reset(self, code: str, new_password: str) -> None:
        """
        Redeem a reset code and set a new password.

        Raises:
            TokenInvalidError: If the code is unknown or already used
            NotFoundError: If no account has the code's email any more
        """
        email = await self.tokens.consume(code)

        account = await self.account_repository.find_by_email(email)
        if account is None:
            logger.warning("Reset code redeemed for missing account")
            raise NotFoundError()

        password_hash = await self.hasher.hash(new_password)
        await self.account_repository.update(account.id, {"password_hash": password_hash})

        logger.info("Password reset completed", account_id=account.id)
