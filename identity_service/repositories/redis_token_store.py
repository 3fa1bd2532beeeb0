"""
Redis-backed single-use token store.

Layout per kind:
    <prefix>single_use:<kind>:email:<email>  hash {code, issued_at}
    <prefix>single_use:<kind>:code:<code>    string holding the email

Issuing runs in a WATCH/MULTI transaction on both keys; a concurrent issuer
that changes either key first makes ours fail, which is reported as
throttled. Consumption uses GETDEL so a code is handed out at most once.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import WatchError
import structlog

from ..core.decorators import storage_operation
from ..interfaces.token_store_interface import CodeCollisionError, ISingleUseTokenStore
from ..models.single_use_token import SingleUseTokenRecord, TokenKind

logger = structlog.get_logger()


class RedisSingleUseTokenStore(ISingleUseTokenStore):
    """Single-use token store on Redis."""

    def __init__(self, redis_client: redis.Redis, key_prefix: str = "identity:", timeout: float = 5.0):
        self.redis = redis_client
        self.key_prefix = key_prefix
        self.timeout = timeout

    def _email_key(self, kind: TokenKind, email: str) -> str:
        return f"{self.key_prefix}single_use:{kind.value}:email:{email}"

    def _code_key(self, kind: TokenKind, code: str) -> str:
        return f"{self.key_prefix}single_use:{kind.value}:code:{code}"

    @storage_operation("single_use_token.upsert")
    async def upsert_if_not_throttled(
        self,
        kind: TokenKind,
        email: str,
        code: str,
        now: datetime,
        window: timedelta
    ) -> bool:
        email_key = self._email_key(kind, email)
        code_key = self._code_key(kind, code)

        async with self.redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(email_key, code_key)

                existing = await pipe.hgetall(email_key)
                if existing:
                    issued_at = datetime.fromtimestamp(float(existing["issued_at"]), tz=timezone.utc)
                    if now - issued_at < window:
                        return False

                owner = await pipe.get(code_key)
                if owner is not None and owner != email:
                    raise CodeCollisionError()

                pipe.multi()
                previous_code = existing.get("code") if existing else None
                if previous_code and previous_code != code:
                    pipe.delete(self._code_key(kind, previous_code))
                pipe.hset(email_key, mapping={"code": code, "issued_at": repr(now.timestamp())})
                pipe.set(code_key, email)
                await pipe.execute()

            except WatchError:
                logger.info("Concurrent single-use token issue detected", kind=kind.value)
                return False

        return True

    @storage_operation("single_use_token.find_by_code")
    async def find_by_code(self, kind: TokenKind, code: str) -> Optional[SingleUseTokenRecord]:
        email = await self.redis.get(self._code_key(kind, code))
        if email is None:
            return None

        record = await self.redis.hgetall(self._email_key(kind, email))
        if not record or record.get("code") != code:
            return None

        return SingleUseTokenRecord(
            kind=kind,
            email=email,
            code=code,
            issued_at=datetime.fromtimestamp(float(record["issued_at"]), tz=timezone.utc),
        )

    @storage_operation("single_use_token.delete_by_code")
    async def delete_by_code(self, kind: TokenKind, code: str) -> bool:
        return await self._take(kind, code) is not None

    @storage_operation("single_use_token.take_by_code")
    async def take_by_code(self, kind: TokenKind, code: str) -> Optional[str]:
        return await self._take(kind, code)

    async def _take(self, kind: TokenKind, code: str) -> Optional[str]:
        email = await self.redis.getdel(self._code_key(kind, code))
        if email is None:
            return None

        email_key = self._email_key(kind, email)
        async with self.redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(email_key)
                # Leave the record alone if a newer code already replaced ours
                if await pipe.hget(email_key, "code") == code:
                    pipe.multi()
                    pipe.delete(email_key)
                    await pipe.execute()
            except WatchError:
                logger.info("Single-use token replaced while being consumed", kind=kind.value)

        return email
