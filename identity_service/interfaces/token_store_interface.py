"""
Single-use token store interface.
Storage contract for verification and reset codes; atomicity lives here.
"""

from datetime import datetime, timedelta
from typing import Optional, Protocol, runtime_checkable

from ..core.exceptions import GenericError
from ..models.single_use_token import SingleUseTokenRecord, TokenKind


class CodeCollisionError(GenericError):
    """The generated code is already live for another email of the same kind."""


@runtime_checkable
class ISingleUseTokenStore(Protocol):
    """Protocol for per-kind single-use token storage."""

    async def upsert_if_not_throttled(
        self,
        kind: TokenKind,
        email: str,
        code: str,
        now: datetime,
        window: timedelta
    ) -> bool:
        """
        Atomically store ``code`` for ``email`` unless the live token for
        that email was issued less than ``window`` before ``now``.

        A stored token replaces any previous one for the same email and kind.

        Args:
            kind: Token kind
            email: Email the code is bound to
            code: Freshly generated code
            now: Issue time (timezone-aware UTC)
            window: Throttle window

        Returns:
            True if stored, False if throttled

        Raises:
            CodeCollisionError: If ``code`` is live for another email
        """
        ...

    async def find_by_code(self, kind: TokenKind, code: str) -> Optional[SingleUseTokenRecord]:
        """
        Look up a live token by code.

        Returns:
            Token record or None if not found
        """
        ...

    async def delete_by_code(self, kind: TokenKind, code: str) -> bool:
        """
        Delete a token by code.

        Returns:
            True if a token was deleted
        """
        ...

    async def take_by_code(self, kind: TokenKind, code: str) -> Optional[str]:
        """
        Atomically delete a token by code and return its email.

        Of two concurrent calls with the same code at most one gets the email.

        Returns:
            Email the code was bound to, or None if not found
        """
        ...
