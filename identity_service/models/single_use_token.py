"""
Single-use token model shared by email verification and password reset.

One table holds both kinds; ``(kind, email)`` and ``(kind, code)`` are
unique so there is at most one live code per email per kind and a code
resolves to exactly one email.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from .base import Base


class TokenKind(str, Enum):
    VERIFICATION = "verification"
    RESET = "reset"


class SingleUseToken(Base):
    __tablename__ = "single_use_token"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(20), nullable=False)
    email = Column(String(255), nullable=False)
    code = Column(String(16), nullable=False)
    issued_at = Column(DateTime, nullable=False)  # naive UTC

    __table_args__ = (
        UniqueConstraint("kind", "email", name="uq_single_use_token_kind_email"),
        UniqueConstraint("kind", "code", name="uq_single_use_token_kind_code"),
    )

    def __repr__(self) -> str:
        return f"<SingleUseToken(kind={self.kind}, id={self.id})>"


@dataclass(frozen=True)
class SingleUseTokenRecord:
    """Backend-independent view of a live single-use token."""

    kind: TokenKind
    email: str
    code: str
    issued_at: datetime
