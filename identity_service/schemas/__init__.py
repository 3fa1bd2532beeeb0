"""
Pydantic schemas for the HTTP adapter.
"""

from .auth_schemas import (
    AccessTokenResponse,
    AuthenticateResponse,
    CodeRequest,
    CompleteResetRequest,
    EmailRequest,
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    RegisterResponse,
    TokenPairResponse,
    UpdatePasswordRequest,
)

__all__ = [
    "AccessTokenResponse",
    "AuthenticateResponse",
    "CodeRequest",
    "CompleteResetRequest",
    "EmailRequest",
    "ErrorResponse",
    "LoginRequest",
    "MessageResponse",
    "RefreshTokenRequest",
    "RegisterRequest",
    "RegisterResponse",
    "TokenPairResponse",
    "UpdatePasswordRequest",
]
