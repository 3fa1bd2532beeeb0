"""
Dependency injection container implementation.
Builds every component from one Settings value and owns the long-lived
clients (database engine, Redis pool, hashing pool).
"""

from typing import Any, Dict, Optional, Type, TypeVar

import redis.asyncio as redis
import structlog

from ..core.config import Settings
from ..core.database import Database
from ..core.redis import RedisManager
from ..core.security import Clock, PasswordHasher, TokenSigner, utcnow
from ..interfaces.notifier_interface import INotifier
from ..interfaces.repository_interface import IAccountRepository
from ..interfaces.token_store_interface import ISingleUseTokenStore
from ..models.single_use_token import TokenKind
from ..repositories.account_repository import AccountRepository
from ..repositories.redis_token_store import RedisSingleUseTokenStore
from ..repositories.token_store import SqlSingleUseTokenStore
from ..services.auth.authentication_service import AuthenticationService
from ..services.auth.email_verification_service import EmailVerificationService
from ..services.auth.password_service import PasswordService
from ..services.auth.single_use_token_service import SingleUseTokenService
from ..services.auth.token_service import TokenService
from ..services.auth_service import AuthService
from ..services.notification_service import LoggingNotifier, SmtpNotifier

logger = structlog.get_logger()

T = TypeVar("T")


class Container:
    """Dependency injection container."""

    def __init__(
        self,
        settings: Settings,
        clock: Clock = utcnow,
        notifier: Optional[INotifier] = None,
        redis_client: Optional[redis.Redis] = None
    ):
        """
        Args:
            settings: Immutable configuration for every component
            clock: Time source for token expiry and throttling
            notifier: Notifier to use instead of the configured one
            redis_client: Redis client to use instead of opening a pool
        """
        self.settings = settings
        self.clock = clock
        self._notifier_override = notifier
        self._redis_override = redis_client
        self._instances: Dict[str, Any] = {}
        self._database: Optional[Database] = None
        self._redis_manager: Optional[RedisManager] = None
        self._hasher: Optional[PasswordHasher] = None
        self._initialized = False

    def register_instance(self, interface: Type[T], instance: T) -> None:
        """
        Register a specific instance for an interface.

        Args:
            interface: Interface type
            instance: Instance to register
        """
        key = interface.__name__
        self._instances[key] = instance
        logger.debug("Registered instance", interface=key, instance=type(instance).__name__)

    def get(self, interface: Type[T]) -> T:
        """
        Get service instance by interface type.

        Raises:
            ValueError: If service is not registered
        """
        key = interface.__name__
        if key not in self._instances:
            raise ValueError(f"Service not registered: {key}")
        return self._instances[key]

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def database(self) -> Database:
        if self._database is None:
            raise RuntimeError("Container not initialized")
        return self._database

    async def initialize(self) -> None:
        """Open storage clients and wire the services."""
        if self._initialized:
            return

        settings = self.settings
        try:
            self._database = Database.from_settings(settings)
            if settings.DATABASE_CREATE_SCHEMA:
                await self._database.create_all()
            self.register_instance(Database, self._database)

            account_repository = AccountRepository(self._database, timeout=settings.STORAGE_TIMEOUT_SECONDS)
            self.register_instance(IAccountRepository, account_repository)

            token_store = await self._create_token_store()
            self.register_instance(ISingleUseTokenStore, token_store)

            notifier = self._create_notifier()
            self.register_instance(INotifier, notifier)

            self._hasher = PasswordHasher(
                rounds=settings.BCRYPT_ROUNDS,
                max_workers=settings.HASHING_MAX_WORKERS,
            )
            self.register_instance(PasswordHasher, self._hasher)

            signer = TokenSigner(clock=self.clock)
            self.register_instance(TokenSigner, signer)

            verification_tokens = SingleUseTokenService(
                TokenKind.VERIFICATION, token_store, settings.throttle_window, clock=self.clock
            )
            reset_tokens = SingleUseTokenService(
                TokenKind.RESET, token_store, settings.throttle_window, clock=self.clock
            )

            token_service = TokenService(
                account_repository,
                signer,
                settings.access_token_profile,
                settings.refresh_token_profile,
            )
            email_verification_service = EmailVerificationService(
                account_repository,
                verification_tokens,
                notifier,
                settings.VERIFY_EMAIL_URL,
            )
            password_service = PasswordService(
                account_repository,
                self._hasher,
                reset_tokens,
                notifier,
                settings.RESET_PASSWORD_URL,
            )
            authentication_service = AuthenticationService(
                account_repository,
                self._hasher,
                token_service,
                email_verification_service,
            )

            self.register_instance(TokenService, token_service)
            self.register_instance(EmailVerificationService, email_verification_service)
            self.register_instance(PasswordService, password_service)
            self.register_instance(AuthenticationService, authentication_service)
            self.register_instance(
                AuthService,
                AuthService(authentication_service, token_service, password_service, email_verification_service),
            )

            self._initialized = True
            logger.info(
                "Dependency injection container initialized successfully",
                token_store_backend=settings.TOKEN_STORE_BACKEND,
                notifier=type(notifier).__name__,
            )

        except Exception as e:
            logger.error("Failed to initialize container", error=str(e))
            await self.cleanup()
            raise

    async def _create_token_store(self) -> ISingleUseTokenStore:
        settings = self.settings
        if settings.TOKEN_STORE_BACKEND == "redis":
            client = self._redis_override
            if client is None:
                self._redis_manager = RedisManager(settings)
                await self._redis_manager.initialize()
                client = self._redis_manager.client
            return RedisSingleUseTokenStore(
                client,
                key_prefix=settings.REDIS_KEY_PREFIX,
                timeout=settings.STORAGE_TIMEOUT_SECONDS,
            )

        return SqlSingleUseTokenStore(self._database, timeout=settings.STORAGE_TIMEOUT_SECONDS)

    def _create_notifier(self) -> INotifier:
        if self._notifier_override is not None:
            return self._notifier_override
        if self.settings.SMTP_HOST:
            return SmtpNotifier.from_settings(self.settings)
        logger.warning("SMTP_HOST not set, emails will only be logged")
        return LoggingNotifier()

    async def health_check(self) -> Dict[str, bool]:
        """Report reachability of each storage backend in use."""
        status = {"database": await self.database.check_connection()}
        if self._redis_manager is not None:
            status["redis"] = await self._redis_manager.health_check()
        return status

    async def cleanup(self) -> None:
        """Release pools and connections."""
        if self._hasher is not None:
            self._hasher.shutdown()
            self._hasher = None

        if self._redis_manager is not None:
            try:
                await self._redis_manager.close()
            except Exception as e:
                logger.error("Failed to close Redis connections", error=str(e))
            self._redis_manager = None

        if self._database is not None:
            try:
                await self._database.close()
            except Exception as e:
                logger.error("Failed to close database connections", error=str(e))
            self._database = None

        self._instances.clear()
        self._initialized = False
        logger.info("Container cleanup completed")
