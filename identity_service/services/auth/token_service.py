"""
Token service focused solely on JWT token operations.
Handles access/refresh pair issuance, access token refresh and validation.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from ...core.exceptions import IdentityError, TokenInvalidError
from ...core.security import TokenClaims, TokenProfile, TokenSigner
from ...interfaces.repository_interface import IAccountRepository
from ...models.account import Account

logger = structlog.get_logger()


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


def claims_for(account: Account) -> TokenClaims:
    """Claim set shared by both token kinds."""
    return TokenClaims(
        account_id=account.id,
        email=account.email,
        roles=list(account.roles or []),
        subject=account.id,
    )


class TokenService:
    """Service responsible for JWT token operations."""

    def __init__(
        self,
        account_repository: IAccountRepository,
        signer: TokenSigner,
        access_profile: TokenProfile,
        refresh_profile: TokenProfile
    ):
        self.account_repository = account_repository
        self.signer = signer
        self.access_profile = access_profile
        self.refresh_profile = refresh_profile

    def issue_token_pair(self, account: Account) -> TokenPair:
        """Sign an access and a refresh token from the same claims."""
        claims = claims_for(account)
        return TokenPair(
            access_token=self.signer.sign(claims, self.access_profile),
            refresh_token=self.signer.sign(claims, self.refresh_profile),
        )

    async def refresh_access_token(self, refresh_token: str) -> Optional[str]:
        """
        Mint a new access token from a refresh token.

        The account is re-read so role changes show up in the new token.
        Refresh tokens are neither rotated nor revoked here.

        Returns:
            New access token, or None if the refresh token is invalid, the
            account no longer exists or storage is unavailable
        """
        try:
            claims = self.signer.verify(refresh_token, self.refresh_profile)
        except TokenInvalidError:
            logger.debug("Refresh token rejected")
            return None

        try:
            account = await self.account_repository.find_by_id(claims.account_id)
        except IdentityError as e:
            logger.warning("Account lookup failed during refresh", account_id=claims.account_id, error=e.message)
            return None

        if account is None:
            logger.info("Refresh token for unknown account", account_id=claims.account_id)
            return None

        logger.debug("Access token refreshed", account_id=account.id)
        return self.signer.sign(claims_for(account), self.access_profile)

    def validate_access_token(self, token: str) -> Optional[TokenClaims]:
        """Verify an access token. Returns None instead of raising."""
        try:
            return self.signer.verify(token, self.access_profile)
        except TokenInvalidError:
            return None
