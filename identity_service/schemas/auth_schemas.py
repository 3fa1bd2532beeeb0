"""
Authentication-related Pydantic schemas for request/response validation.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    """Registration request schema."""

    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., min_length=1, max_length=128, description="Account password")
    firstname: Optional[str] = Field(None, max_length=100, description="First name")
    lastname: Optional[str] = Field(None, max_length=100, description="Last name")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "alice@example.com",
                "password": "secret123",
                "firstname": "Alice",
                "lastname": "Liddell",
            }
        }
    )


class RegisterResponse(BaseModel):
    """Registration response schema."""

    account_id: str = Field(..., description="Identifier of the new account")
    verification_sent: bool = Field(..., description="Whether the verification email went out")


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., min_length=1, max_length=128, description="Account password")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "alice@example.com",
                "password": "secret123",
            }
        }
    )


class TokenPairResponse(BaseModel):
    """Login response schema."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field("bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str = Field(..., min_length=1, description="JWT refresh token")


class AccessTokenResponse(BaseModel):
    """Refresh token response schema."""

    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field("bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class AuthenticateResponse(BaseModel):
    """Claims of a valid access token."""

    account_id: str
    email: str
    roles: List[str]
    expires_at: Optional[datetime] = None


class UpdatePasswordRequest(BaseModel):
    """Password change request schema."""

    old_password: str = Field(..., min_length=1, max_length=128, description="Current password")
    new_password: str = Field(..., min_length=1, max_length=128, description="New password")


class EmailRequest(BaseModel):
    """Verification or reset code request schema."""

    email: EmailStr = Field(..., description="Email address to send the code to")


class CodeRequest(BaseModel):
    """Verification code submission schema."""

    code: str = Field(..., min_length=1, max_length=16, description="Code received by email")


class CompleteResetRequest(BaseModel):
    """Password reset completion schema."""

    code: str = Field(..., min_length=1, max_length=16, description="Code received by email")
    new_password: str = Field(..., min_length=1, max_length=128, description="New password")


class MessageResponse(BaseModel):
    """Generic success response."""

    message: str


class ErrorResponse(BaseModel):
    """Error body returned for every handled failure."""

    error_code: str
    message: str
