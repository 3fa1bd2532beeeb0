"""
Dependency injection for FastAPI endpoints.
Resolves services from the application container and the current token claims.
"""
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..container.container import Container
from ..core.config import Settings
from ..core.exceptions import ValidationError
from ..core.security import MAX_PASSWORD_BYTES, TokenClaims, password_too_long
from ..services.auth_service import AuthService

security = HTTPBearer(auto_error=False)


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_settings(container: Container = Depends(get_container)) -> Settings:
    return container.settings


def get_auth_service(container: Container = Depends(get_container)) -> AuthService:
    return container.get(AuthService)


async def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> TokenClaims:
    """
    Claims of the bearer access token.

    Raises:
        HTTPException: 401 if the header is missing or the token is invalid
    """
    claims = None
    if credentials is not None:
        claims = await auth_service.authenticate(credentials.credentials)

    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return claims


def check_password_policy(password: str, settings: Settings) -> None:
    """Reject new passwords shorter than PASSWORD_MIN_LENGTH or too long for bcrypt."""
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")
    if password_too_long(password):
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")
