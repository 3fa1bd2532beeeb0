"""
Redis connection management for the Redis-backed single-use token store.
Implements connection pooling and health checks.
"""
import asyncio
from typing import Optional

import redis.asyncio as redis
from redis.asyncio import ConnectionPool
import structlog

from .config import Settings

logger = structlog.get_logger()


class RedisManager:
    """Redis connection manager with connection pooling."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    async def initialize(self) -> None:
        """Initialize Redis connection pool and check it answers."""
        try:
            self._pool = ConnectionPool.from_url(
                self._settings.REDIS_URL,
                max_connections=self._settings.REDIS_POOL_SIZE,
                socket_timeout=self._settings.STORAGE_TIMEOUT_SECONDS,
                socket_connect_timeout=self._settings.STORAGE_TIMEOUT_SECONDS,
                decode_responses=True,
            )
            self._client = redis.Redis(connection_pool=self._pool)

            try:
                await asyncio.wait_for(self._client.ping(), timeout=self._settings.STORAGE_TIMEOUT_SECONDS)
                logger.info("Redis connection initialized and tested successfully")
            except asyncio.TimeoutError:
                logger.error("Redis connection test timed out")
                raise ConnectionError("Redis connection test timed out")

        except Exception as e:
            logger.error("Failed to initialize Redis connection", error=str(e))
            raise

    async def close(self) -> None:
        """Close Redis connections."""
        if self._client:
            await self._client.aclose()
        if self._pool:
            await self._pool.disconnect()
        logger.info("Redis connections closed")

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance."""
        if not self._client:
            raise RuntimeError("Redis client not initialized")
        return self._client

    async def health_check(self) -> bool:
        """Check Redis connection health."""
        try:
            if not self._client:
                logger.warning("Redis health check skipped - client not initialized")
                return False
            return bool(await self._client.ping())
        except Exception as e:
            logger.error("Redis health check failed", error=str(e))
            return False
