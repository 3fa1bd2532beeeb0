"""
Credential workflows split by responsibility.
Each service handles one aspect of the credential lifecycle.
"""

from .authentication_service import AuthenticationService, Registration
from .email_verification_service import EmailVerificationService
from .password_service import PasswordService
from .single_use_token_service import SingleUseTokenService
from .token_service import TokenPair, TokenService

__all__ = [
    "AuthenticationService",
    "EmailVerificationService",
    "PasswordService",
    "Registration",
    "SingleUseTokenService",
    "TokenPair",
    "TokenService",
]
