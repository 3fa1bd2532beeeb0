from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator, model_validator, ValidationError
from datetime import timedelta
from typing import Literal, Optional
import sys
from functools import lru_cache
import structlog

from .security import TokenProfile

logger = structlog.get_logger()


class Settings(BaseSettings):
    """
    Identity Service Configuration

    Built once at startup and handed to every component; the instance is
    frozen so secrets, TTLs and the throttle window cannot drift at runtime.
    Token secrets MUST be provided via environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        frozen=True,
        extra="ignore",
    )

    # Application settings
    APP_NAME: str = "Identity Service"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"
    API_V1_STR: str = "/api/v1"

    # Token signing - REQUIRED, NO DEFAULTS
    ACCESS_TOKEN_SECRET: str = Field(..., min_length=32)
    REFRESH_TOKEN_SECRET: str = Field(..., min_length=32)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = Field(default=120, ge=30, le=3600)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default=7, ge=1, le=30)

    # Password hashing
    BCRYPT_ROUNDS: int = Field(default=10, ge=4, le=31)
    HASHING_MAX_WORKERS: int = Field(default=4, ge=1, le=64)
    PASSWORD_MIN_LENGTH: int = Field(default=8, ge=1, le=128)

    # Single-use tokens (email verification, password reset)
    SINGLE_USE_TOKEN_THROTTLE_MINUTES: int = Field(default=15, ge=1, le=1440)
    TOKEN_STORE_BACKEND: Literal["database", "redis"] = "database"

    # Database - REQUIRED
    DATABASE_URL: str = Field(...)
    DATABASE_POOL_SIZE: int = Field(default=20, ge=1, le=200)
    DATABASE_MAX_OVERFLOW: int = Field(default=40, ge=0, le=200)
    DATABASE_POOL_TIMEOUT: int = Field(default=30, ge=1, le=60)
    DATABASE_POOL_RECYCLE: int = Field(default=1800, ge=300, le=3600)
    DATABASE_CREATE_SCHEMA: bool = False  # tests and local dev only; production uses alembic

    # Redis - only needed for the redis token store
    REDIS_URL: Optional[str] = None
    REDIS_KEY_PREFIX: str = "identity:"
    REDIS_POOL_SIZE: int = Field(default=20, ge=1, le=100)

    # Upper bound for every storage round trip
    STORAGE_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0, le=60)

    # Email settings - SMTP_HOST unset means messages are only logged
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 465
    SMTP_SSL: bool = True
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    EMAILS_FROM_EMAIL: str = "no-reply@example.com"
    EMAILS_FROM_NAME: str = "Identity Service"
    VERIFY_EMAIL_URL: str = "http://localhost:3000/verify-email"
    RESET_PASSWORD_URL: str = "http://localhost:3000/reset-password"
    NOTIFIER_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0, le=120)

    @field_validator("ACCESS_TOKEN_SECRET", "REFRESH_TOKEN_SECRET")
    @classmethod
    def validate_secrets(cls, v: str, info) -> str:
        """Validate that signing secrets are not obvious placeholders"""
        bad_values = ["your-secret-key", "change-me", "changeme", "password", "12345"]
        if any(bad in v.lower() for bad in bad_values):
            raise ValueError(f"{info.field_name} contains weak or default values")
        return v

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid_envs = ["development", "staging", "production", "test"]
        if v not in valid_envs:
            raise ValueError(f"ENVIRONMENT must be one of: {valid_envs}")
        return v

    @model_validator(mode="after")
    def validate_secret_separation(self) -> "Settings":
        """A refresh token must never verify as an access token."""
        if self.ACCESS_TOKEN_SECRET == self.REFRESH_TOKEN_SECRET:
            raise ValueError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ")
        if self.TOKEN_STORE_BACKEND == "redis" and not self.REDIS_URL:
            raise ValueError("REDIS_URL is required when TOKEN_STORE_BACKEND is 'redis'")
        return self

    @property
    def access_token_profile(self) -> TokenProfile:
        return TokenProfile(
            name="access",
            secret=self.ACCESS_TOKEN_SECRET,
            ttl=timedelta(seconds=self.ACCESS_TOKEN_EXPIRE_SECONDS),
            algorithm=self.ALGORITHM,
        )

    @property
    def refresh_token_profile(self) -> TokenProfile:
        return TokenProfile(
            name="refresh",
            secret=self.REFRESH_TOKEN_SECRET,
            ttl=timedelta(days=self.REFRESH_TOKEN_EXPIRE_DAYS),
            algorithm=self.ALGORITHM,
        )

    @property
    def throttle_window(self) -> timedelta:
        return timedelta(minutes=self.SINGLE_USE_TOKEN_THROTTLE_MINUTES)


def validate_required_settings(settings: Settings) -> None:
    """
    Validate that all required settings are properly configured.
    Fail fast if critical settings are missing or invalid.
    """
    errors = []

    if settings.ENVIRONMENT == "production":
        if settings.DEBUG:
            errors.append("DEBUG must be False in production")

        if settings.DATABASE_URL.startswith("sqlite"):
            errors.append("DATABASE_URL cannot use SQLite in production")

        if not settings.SMTP_HOST:
            errors.append("SMTP_HOST is required in production to deliver verification and reset emails")

        if settings.DATABASE_CREATE_SCHEMA:
            errors.append("DATABASE_CREATE_SCHEMA must be False in production, run `alembic upgrade head` instead")

    if settings.SMTP_HOST and settings.SMTP_USER and not settings.SMTP_PASSWORD:
        errors.append("SMTP_PASSWORD required when SMTP_USER is set")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        logger.error(error_msg)
        raise ValueError(error_msg)

    logger.info(
        "Configuration validated successfully",
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
        token_store_backend=settings.TOKEN_STORE_BACKEND,
        smtp_configured=bool(settings.SMTP_HOST),
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Fails fast if required environment variables are missing.
    """
    try:
        settings = Settings()
        validate_required_settings(settings)
        return settings
    except ValidationError as e:
        logger.error("Failed to load settings", errors=e.errors())
        print("\n" + "=" * 60)
        print("CONFIGURATION ERROR")
        print("=" * 60)
        print("\nRequired environment variables are missing or invalid:")
        for error in e.errors():
            field = error.get("loc", ["unknown"])[0] if error.get("loc") else "settings"
            msg = error.get("msg", "Invalid value")
            print(f"  - {field}: {msg}")
        print("\nPlease check your environment variables and .env file")
        print("=" * 60 + "\n")
        sys.exit(1)
    except ValueError as e:
        logger.error("Invalid configuration", error=str(e))
        sys.exit(1)
