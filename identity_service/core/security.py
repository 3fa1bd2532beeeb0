import asyncio
import math
import secrets
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
import structlog

from .exceptions import HashingError, TokenInvalidError, ValidationError

logger = structlog.get_logger()

Clock = Callable[[], datetime]

# bcrypt ignores everything past this many bytes
MAX_PASSWORD_BYTES = 72


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def password_too_long(plaintext: str) -> bool:
    return len(plaintext.encode("utf-8")) > MAX_PASSWORD_BYTES


class PasswordHasher:
    """
    Salted bcrypt hashing with constant-time verification.

    bcrypt is deliberately slow, so every hash and verify is pushed onto a
    bounded thread pool instead of running on the event loop. A burst of
    logins then queues on the pool while cheap token verification keeps
    flowing.
    """

    def __init__(self, rounds: int = 10, max_workers: int = 4):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="password-hasher",
        )
        # Compared against when the account does not exist
        self._placeholder_hash = self._context.hash(secrets.token_urlsafe(32))

    def hash_sync(self, plaintext: str) -> str:
        """Generate password hash"""
        if password_too_long(plaintext):
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")
        try:
            return self._context.hash(plaintext)
        except MemoryError as e:
            logger.error("Password hashing ran out of memory")
            raise HashingError() from e

    def verify_sync(self, plaintext: str, digest: Optional[str]) -> bool:
        """Verify a password against its hash. Never raises on mismatch."""
        if password_too_long(plaintext):
            # Could never have been hashed, so it cannot match
            return False
        try:
            return self._context.verify(plaintext, digest)
        except (ValueError, TypeError):
            logger.warning("Stored password digest could not be identified")
            return False
        except MemoryError as e:
            logger.error("Password verification ran out of memory")
            raise HashingError() from e

    async def hash(self, plaintext: str) -> str:
        return await self._run(self.hash_sync, plaintext)

    async def verify(self, plaintext: str, digest: Optional[str]) -> bool:
        return await self._run(self.verify_sync, plaintext, digest)

    async def verify_placeholder(self, plaintext: str) -> bool:
        """
        Spend the same work as a real verification and report a mismatch.

        Used when the account is unknown so that "no such email" and "wrong
        password" cost the same time.
        """
        await self._run(self.verify_sync, plaintext, self._placeholder_hash)
        return False

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, func, *args)
        except RuntimeError as e:
            # Executor already shut down
            logger.error("Password hashing pool unavailable", error=str(e))
            raise HashingError() from e

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)


@dataclass(frozen=True)
class TokenProfile:
    """Secret and lifetime for one family of signed tokens."""

    name: str
    secret: str
    ttl: timedelta
    algorithm: str = "HS256"

    def __repr__(self) -> str:
        return f"TokenProfile(name={self.name!r}, ttl={self.ttl!r}, algorithm={self.algorithm!r})"


@dataclass(frozen=True)
class TokenClaims:
    """Claims carried by access and refresh tokens."""

    account_id: str
    email: str
    roles: List[str] = field(default_factory=list)
    subject: Optional[str] = None
    expires_at: Optional[datetime] = None

    def __post_init__(self):
        if self.subject is None:
            object.__setattr__(self, "subject", self.account_id)


class TokenSigner:
    """Signs and verifies HS256 JWTs against a TokenProfile."""

    _REQUIRED_CLAIMS = ("id", "email", "roles", "sub", "type", "exp")

    def __init__(self, clock: Clock = utcnow):
        self._clock = clock

    def sign(self, claims: TokenClaims, profile: TokenProfile) -> str:
        """Create a JWT that expires ``profile.ttl`` from now."""
        now = self._clock()
        expire = now + profile.ttl

        to_encode: Dict[str, Any] = {
            "id": claims.account_id,
            "email": claims.email,
            "roles": list(claims.roles),
            "sub": claims.subject,
            "type": profile.name,
            "iat": int(now.timestamp()),
            "exp": math.ceil(expire.timestamp()),
        }
        return jwt.encode(to_encode, profile.secret, algorithm=profile.algorithm)

    def verify(self, token: str, profile: TokenProfile) -> TokenClaims:
        """
        Decode and validate a JWT issued under ``profile``.

        Raises:
            TokenInvalidError: bad signature, malformed token, wrong token
                type, or expired.
        """
        if not isinstance(token, str) or not token:
            raise TokenInvalidError()

        try:
            # Expiry is checked below against the injected clock
            payload = jwt.decode(
                token,
                profile.secret,
                algorithms=[profile.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            logger.debug("Token signature check failed", profile=profile.name, error=str(e))
            raise TokenInvalidError() from e

        if any(name not in payload for name in self._REQUIRED_CLAIMS):
            raise TokenInvalidError()

        if payload["type"] != profile.name:
            raise TokenInvalidError()

        try:
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as e:
            raise TokenInvalidError() from e

        if self._clock() > expires_at:
            raise TokenInvalidError()

        return TokenClaims(
            account_id=payload["id"],
            email=payload["email"],
            roles=list(payload["roles"]),
            subject=payload["sub"],
            expires_at=expires_at,
        )
