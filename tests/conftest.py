"""
Pytest configuration and fixtures for identity service testing.
Provides settings, in-memory SQLite, fake Redis, and service fixtures with
proper cleanup. Time is driven by a controllable clock.
"""
from datetime import datetime, timedelta, timezone

import fakeredis.aioredis
import pytest
import pytest_asyncio

from identity_service.container.container import Container
from identity_service.core.config import Settings
from identity_service.core.database import Database
from identity_service.core.security import PasswordHasher, TokenSigner
from identity_service.repositories.account_repository import AccountRepository
from identity_service.repositories.redis_token_store import RedisSingleUseTokenStore
from identity_service.repositories.token_store import SqlSingleUseTokenStore
from identity_service.services.auth_service import AuthService

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_ACCESS_SECRET = "access-signing-secret-for-the-test-suite-only"
TEST_REFRESH_SECRET = "refresh-signing-secret-for-the-test-suite-only"


class RecordingNotifier:
    """Notifier that keeps every message so tests can read the codes back."""

    def __init__(self):
        self.sent = []

    async def send(self, to, subject, html_body, timeout=None):
        self.sent.append((to, subject, html_body))
        return True


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_settings(**overrides) -> Settings:
    values = {
        "ENVIRONMENT": "test",
        "DATABASE_URL": TEST_DATABASE_URL,
        "DATABASE_CREATE_SCHEMA": True,
        "ACCESS_TOKEN_SECRET": TEST_ACCESS_SECRET,
        "REFRESH_TOKEN_SECRET": TEST_REFRESH_SECRET,
        "BCRYPT_ROUNDS": 4,
        "HASHING_MAX_WORKERS": 2,
        "STORAGE_TIMEOUT_SECONDS": 5.0,
        "VERIFY_EMAIL_URL": "https://app.example.com/verify-email",
        "RESET_PASSWORD_URL": "https://app.example.com/reset-password",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture
async def database(settings):
    """Fresh in-memory database with all tables."""
    db = Database.from_settings(settings)
    await db.create_all()
    yield db
    await db.close()


@pytest.fixture
def account_repository(database) -> AccountRepository:
    return AccountRepository(database, timeout=5.0)


@pytest.fixture
def sql_token_store(database) -> SqlSingleUseTokenStore:
    return SqlSingleUseTokenStore(database, timeout=5.0)


@pytest_asyncio.fixture
async def fake_redis():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def redis_token_store(fake_redis) -> RedisSingleUseTokenStore:
    return RedisSingleUseTokenStore(fake_redis, key_prefix="test:", timeout=5.0)


@pytest.fixture
def hasher():
    password_hasher = PasswordHasher(rounds=4, max_workers=2)
    yield password_hasher
    password_hasher.shutdown()


@pytest.fixture
def signer(clock) -> TokenSigner:
    return TokenSigner(clock=clock)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def container(settings, clock, notifier):
    """Fully wired container on the SQL token store."""
    c = Container(settings, clock=clock, notifier=notifier)
    await c.initialize()
    yield c
    await c.cleanup()


@pytest.fixture
def auth_service(container) -> AuthService:
    return container.get(AuthService)
