"""
Email verification service focused solely on email verification operations.
Issues verification codes, mails them and marks accounts as validated.
"""

from typing import Optional

import structlog

from ...core.exceptions import DeliveryError, NotFoundError
from ...interfaces.notifier_interface import INotifier
from ...interfaces.repository_interface import IAccountRepository
from ..notification_service import deliver, verification_email
from .single_use_token_service import SingleUseTokenService

logger = structlog.get_logger()


class EmailVerificationService:
    """Service responsible for email verification operations."""

    def __init__(
        self,
        account_repository: IAccountRepository,
        tokens: SingleUseTokenService,
        notifier: INotifier,
        verify_url: str
    ):
        self.account_repository = account_repository
        self.tokens = tokens
        self.notifier = notifier
        self.verify_url = verify_url

    async def request_verification(self, email: str, deadline: Optional[float] = None) -> None:
        """
        Issue a verification code for ``email`` and mail it.

        The issued code is kept when delivery fails, so it stays redeemable
        until it is consumed or superseded after the throttle window.

        Args:
            email: Address to verify
            deadline: Absolute event loop time for delivery (optional)

        Raises:
            ThrottledError: If a code was issued within the throttle window
            DeliveryError: If the message could not be sent
        """
        code = await self.tokens.issue(email)

        subject, body = verification_email(code, self.verify_url)
        try:
            await deliver(self.notifier, email, subject, body, deadline=deadline)
        except DeliveryError:
            logger.warning("Verification email not delivered, code kept")
            raise

        logger.info("Email verification requested")

    async def complete_verification(self, code: str) -> None:
        """
        Redeem a verification code and mark the account's email as validated.

        Raises:
            TokenInvalidError: If the code is unknown or already used
            NotFoundError: If no account has the code's email any more
        """
        email = await self.tokens.consume(code)

        account = await self.account_repository.find_by_email(email)
        if account is None:
            logger.warning("Verified email has no account")
            raise NotFoundError()

        await self.account_repository.update(account.id, {"email_validated": True})
        logger.info("Email verified", account_id=account.id)
