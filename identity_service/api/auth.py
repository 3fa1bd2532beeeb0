"""
Authentication endpoints for the identity service.
Implements registration, login, token refresh and validation, password
change and reset, and email verification.
"""
from fastapi import APIRouter, Depends, HTTPException, status

from ..core.config import Settings
from ..core.security import TokenClaims
from ..schemas.auth_schemas import (
    AccessTokenResponse, AuthenticateResponse, CodeRequest, CompleteResetRequest,
    EmailRequest, ErrorResponse, LoginRequest, MessageResponse, RefreshTokenRequest,
    RegisterRequest, RegisterResponse, TokenPairResponse, UpdatePasswordRequest
)
from ..services.auth_service import AuthService
from .deps import check_password_policy, get_auth_service, get_current_claims, get_settings

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse}
    }
)
async def register(
    registration_data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings)
):
    """
    Register a new account and send the first verification code.

    - **email**: Account email address
    - **password**: Account password
    - **firstname** / **lastname**: Optional names
    """
    check_password_policy(registration_data.password, settings)

    registration = await auth_service.register(
        email=registration_data.email,
        password=registration_data.password,
        firstname=registration_data.firstname,
        lastname=registration_data.lastname,
    )
    return RegisterResponse(
        account_id=registration.account_id,
        verification_sent=registration.verification_sent,
    )


@router.post(
    "/login",
    response_model=TokenPairResponse,
    responses={
        401: {"model": ErrorResponse}
    }
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings)
):
    """
    Authenticate with email and password.

    Returns an access token and a refresh token.
    """
    pair = await auth_service.login(login_data.email, login_data.password)
    return TokenPairResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        token_type=pair.token_type,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
    )


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    responses={
        401: {"model": ErrorResponse}
    }
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings)
):
    """Exchange a refresh token for a new access token."""
    access_token = await auth_service.refresh_access_token(refresh_data.refresh_token)
    if access_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token"
        )

    return AccessTokenResponse(
        access_token=access_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
    )


@router.get(
    "/authenticate",
    response_model=AuthenticateResponse,
    responses={
        401: {"model": ErrorResponse}
    }
)
async def authenticate(claims: TokenClaims = Depends(get_current_claims)):
    """Return the claims of the bearer access token."""
    return AuthenticateResponse(
        account_id=claims.account_id,
        email=claims.email,
        roles=list(claims.roles),
        expires_at=claims.expires_at,
    )


@router.post(
    "/password",
    response_model=MessageResponse,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse}
    }
)
async def update_password(
    password_data: UpdatePasswordRequest,
    claims: TokenClaims = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings)
):
    """Change the password of the account owning the bearer token."""
    check_password_policy(password_data.new_password, settings)

    await auth_service.update_password(
        claims.account_id,
        password_data.old_password,
        password_data.new_password,
    )
    return MessageResponse(message="Password updated")


@router.post(
    "/verification",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse}
    }
)
async def request_verification(
    email_data: EmailRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Send a new email verification code."""
    await auth_service.request_verification(email_data.email)
    return MessageResponse(message="Verification email sent")


@router.post(
    "/verification/confirm",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse}
    }
)
async def complete_verification(
    code_data: CodeRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Redeem an email verification code."""
    await auth_service.complete_verification(code_data.code)
    return MessageResponse(message="Email verified")


@router.post(
    "/password-reset",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        404: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse}
    }
)
async def request_password_reset(
    email_data: EmailRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Send a password reset code to an existing account."""
    await auth_service.request_reset(email_data.email)
    return MessageResponse(message="Password reset email sent")


@router.post(
    "/password-reset/confirm",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse}
    }
)
async def complete_password_reset(
    reset_data: CompleteResetRequest,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings)
):
    """Redeem a password reset code and set a new password."""
    check_password_policy(reset_data.new_password, settings)

    await auth_service.complete_reset(reset_data.code, reset_data.new_password)
    return MessageResponse(message="Password reset")
