"""
Database configuration and connection management for the identity service.
Async SQLAlchemy engine and session factory, built from Settings.
"""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
import structlog

from .config import Settings

logger = structlog.get_logger()


class Database:
    """Owns the async engine and hands out sessions."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Create the engine with pooling suited to the configured backend."""
        url = settings.DATABASE_URL

        if url.startswith("sqlite"):
            # Single shared connection so in-memory databases survive across sessions
            engine = create_async_engine(
                url,
                echo=settings.DEBUG,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_async_engine(
                url,
                echo=settings.DEBUG,
                pool_size=settings.DATABASE_POOL_SIZE,
                max_overflow=settings.DATABASE_MAX_OVERFLOW,
                pool_timeout=settings.DATABASE_POOL_TIMEOUT,
                pool_pre_ping=True,  # Validate connections before use
                pool_recycle=settings.DATABASE_POOL_RECYCLE,
            )

        return cls(engine)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    async def create_all(self) -> None:
        """Create tables for every registered model."""
        from ..models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def check_connection(self) -> bool:
        """Check if database connection is healthy."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                return result.scalar() == 1
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close all database connections on shutdown."""
        await self.engine.dispose()
        logger.info("Database connections closed")
