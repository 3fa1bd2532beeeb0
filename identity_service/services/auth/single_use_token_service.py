"""
Single-use token service shared by email verification and password reset.
One instance per TokenKind; throttling and single use are enforced by the
store's atomic primitives, this service only generates codes and maps
outcomes onto the error taxonomy.
"""

import secrets
from datetime import timedelta

import structlog

from ...core.exceptions import GenericError, ThrottledError, TokenInvalidError
from ...core.security import Clock, utcnow
from ...interfaces.token_store_interface import CodeCollisionError, ISingleUseTokenStore
from ...models.single_use_token import TokenKind

logger = structlog.get_logger()

CODE_MIN = 1_000_000
CODE_MAX = 9_999_999
MAX_CODE_ATTEMPTS = 5


def generate_code() -> str:
    """Random 7-digit numeric code from the system CSPRNG."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


class SingleUseTokenService:
    """Service responsible for throttled issue and single-use consumption of codes."""

    def __init__(
        self,
        kind: TokenKind,
        store: ISingleUseTokenStore,
        throttle_window: timedelta,
        clock: Clock = utcnow
    ):
        self.kind = kind
        self.store = store
        self.throttle_window = throttle_window
        self._clock = clock

    async def issue(self, email: str) -> str:
        """
        Issue a fresh code for ``email``, replacing any earlier one.

        Args:
            email: Email the code is bound to

        Returns:
            The new 7-digit code

        Raises:
            ThrottledError: If the previous code is younger than the throttle window
            GenericError: On storage failure
        """
        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            code = generate_code()
            try:
                stored = await self.store.upsert_if_not_throttled(
                    self.kind,
                    email,
                    code,
                    self._clock(),
                    self.throttle_window,
                )
            except CodeCollisionError:
                logger.debug("Single-use code collision, retrying", kind=self.kind.value, attempt=attempt)
                continue

            if not stored:
                logger.info("Single-use token request throttled", kind=self.kind.value)
                raise ThrottledError()

            logger.info("Single-use token issued", kind=self.kind.value)
            return code

        logger.error("Could not find a free single-use code", kind=self.kind.value, attempts=MAX_CODE_ATTEMPTS)
        raise GenericError()

    async def consume(self, code: str) -> str:
        """
        Redeem ``code`` once.

        Returns:
            Email the code was issued for

        Raises:
            TokenInvalidError: If the code is unknown, superseded or already used
        """
        if not isinstance(code, str) or not code:
            raise TokenInvalidError()

        email = await self.store.take_by_code(self.kind, code)
        if email is None:
            raise TokenInvalidError()

        logger.info("Single-use token consumed", kind=self.kind.value)
        return email
