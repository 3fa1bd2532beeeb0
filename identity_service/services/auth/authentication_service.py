"""
Authentication service focused solely on registration and login.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from ...core.exceptions import CredentialError, DeliveryError, GenericError, ThrottledError
from ...core.security import PasswordHasher
from ...interfaces.repository_interface import IAccountRepository
from ...models.account import Role
from .email_verification_service import EmailVerificationService
from .token_service import TokenPair, TokenService

logger = structlog.get_logger()


@dataclass(frozen=True)
class Registration:
    account_id: str
    verification_sent: bool


class AuthenticationService:
    """Service responsible for account registration and login."""

    def __init__(
        self,
        account_repository: IAccountRepository,
        hasher: PasswordHasher,
        token_service: TokenService,
        email_verification_service: EmailVerificationService
    ):
        self.account_repository = account_repository
        self.hasher = hasher
        self.token_service = token_service
        self.email_verification_service = email_verification_service

    async def register(
        self,
        email: str,
        password: str,
        firstname: Optional[str] = None,
        lastname: Optional[str] = None,
        deadline: Optional[float] = None
    ) -> Registration:
        """
        Create an account and send the first verification code.

        The account is kept when the verification request fails after it was
        created; the result reports whether the email went out.

        Returns:
            Registration with the new account id

        Raises:
            DuplicateAccountError: If the email is already registered
        """
        password_hash = await self.hasher.hash(password)
        account = await self.account_repository.create({
            "email": email,
            "password_hash": password_hash,
            "firstname": firstname,
            "lastname": lastname,
            "roles": [Role.USER.value],
            "email_validated": False,
        })

        verification_sent = True
        try:
            await self.email_verification_service.request_verification(email, deadline=deadline)
        except (DeliveryError, ThrottledError, GenericError) as e:
            logger.warning("Verification not sent after registration", account_id=account.id, error=e.message)
            verification_sent = False

        logger.info("Account registered", account_id=account.id)
        return Registration(account_id=account.id, verification_sent=verification_sent)

    async def login(self, email: str, password: str) -> TokenPair:
        """
        Check credentials and issue an access/refresh token pair.

        Unknown email and wrong password cost the same hashing work and raise
        the same error.

        Raises:
            CredentialError: If the credentials do not match an account
        """
        account = await self.account_repository.find_by_email(email)

        if account is None:
            await self.hasher.verify_placeholder(password)
            logger.info("Login failed", reason="invalid_credentials")
            raise CredentialError()

        if not await self.hasher.verify(password, account.password_hash):
            logger.info("Login failed", reason="invalid_credentials")
            raise CredentialError()

        pair = self.token_service.issue_token_pair(account)
        logger.info("Account authenticated", account_id=account.id)
        return pair
