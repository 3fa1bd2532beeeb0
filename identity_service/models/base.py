"""
Base model class with common fields and functionality.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    """Normalise a datetime to naive UTC for storage."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    created_at = Column(
        DateTime,
        default=lambda: to_naive_utc(datetime.now(timezone.utc)),
        server_default=func.now(),
        nullable=False,
        index=True
    )
    updated_at = Column(
        DateTime,
        default=lambda: to_naive_utc(datetime.now(timezone.utc)),
        onupdate=lambda: to_naive_utc(datetime.now(timezone.utc)),
        server_default=func.now(),
        nullable=False
    )
