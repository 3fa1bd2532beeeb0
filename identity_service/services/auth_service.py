"""
Authentication service facade.
Gathers the credential, verification and reset workflows behind one object
that transports call into.
"""
from typing import Optional

from ..core.security import TokenClaims
from .auth.authentication_service import AuthenticationService, Registration
from .auth.email_verification_service import EmailVerificationService
from .auth.password_service import PasswordService
from .auth.token_service import TokenPair, TokenService


class AuthService:
    """Single entry point for every credential operation."""

    def __init__(
        self,
        authentication_service: AuthenticationService,
        token_service: TokenService,
        password_service: PasswordService,
        email_verification_service: EmailVerificationService
    ):
        self.authentication_service = authentication_service
        self.token_service = token_service
        self.password_service = password_service
        self.email_verification_service = email_verification_service

    async def register(
        self,
        email: str,
        password: str,
        firstname: Optional[str] = None,
        lastname: Optional[str] = None,
        deadline: Optional[float] = None
    ) -> Registration:
        return await self.authentication_service.register(
            email,
            password,
            firstname=firstname,
            lastname=lastname,
            deadline=deadline,
        )

    async def login(self, email: str, password: str) -> TokenPair:
        return await self.authentication_service.login(email, password)

    async def refresh_access_token(self, refresh_token: str) -> Optional[str]:
        return await self.token_service.refresh_access_token(refresh_token)

    async def authenticate(self, access_token: str) -> Optional[TokenClaims]:
        """Claims of a valid access token, None otherwise."""
        return self.token_service.validate_access_token(access_token)

    async def update_password(self, account_id: str, old_password: str, new_password: str) -> None:
        await self.password_service.update_password(account_id, old_password, new_password)

    async def request_verification(self, email: str, deadline: Optional[float] = None) -> None:
        await self.email_verification_service.request_verification(email, deadline=deadline)

    async def complete_verification(self, code: str) -> None:
        await self.email_verification_service.complete_verification(code)

    async def request_reset(self, email: str, deadline: Optional[float] = None) -> None:
        await self.password_service.request_reset(email, deadline=deadline)

    async def complete_reset(self, code: str, new_password: str) -> None:
        await self.password_service.complete_reset(code, new_password)
