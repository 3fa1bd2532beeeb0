"""
Repository implementations for the account directory and single-use tokens.
"""

from .account_repository import AccountRepository
from .redis_token_store import RedisSingleUseTokenStore
from .token_store import SqlSingleUseTokenStore

__all__ = [
    "AccountRepository",
    "RedisSingleUseTokenStore",
    "SqlSingleUseTokenStore",
]
