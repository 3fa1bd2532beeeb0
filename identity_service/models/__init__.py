"""
SQLAlchemy models for the identity service.
"""

from .base import Base
from .account import Account, Role
from .single_use_token import SingleUseToken, SingleUseTokenRecord, TokenKind

__all__ = [
    "Base",
    "Account",
    "Role",
    "SingleUseToken",
    "SingleUseTokenRecord",
    "TokenKind",
]
