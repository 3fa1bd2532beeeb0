"""
Account model: the identity record owned by the account directory.
"""
import uuid
from enum import Enum

from sqlalchemy import Boolean, Column, JSON, String

from .base import Base, TimestampMixin


class Role(str, Enum):
    """Role tags carried in tokens."""

    USER = "user"
    ADMIN = "admin"


def _new_account_id() -> str:
    return str(uuid.uuid4())


class Account(Base, TimestampMixin):
    """Account with a bcrypt digest in place of the password."""

    __tablename__ = "account"

    id = Column(String(36), primary_key=True, default=_new_account_id)

    # Unique and case-sensitive as stored
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)

    firstname = Column(String(100), nullable=True)
    lastname = Column(String(100), nullable=True)

    roles = Column(JSON, nullable=False, default=lambda: [Role.USER.value])
    email_validated = Column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<Account(id={self.id})>"
