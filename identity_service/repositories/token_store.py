"""
SQL-backed single-use token store.

Throttling and replacement happen in one ``INSERT ... ON CONFLICT DO UPDATE
... WHERE`` statement and consumption in one ``DELETE ... RETURNING``, so the
database serializes concurrent issue and consume calls per (kind, email).
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
import structlog

from ..core.database import Database
from ..core.decorators import storage_operation
from ..interfaces.token_store_interface import CodeCollisionError, ISingleUseTokenStore
from ..models.base import as_utc, to_naive_utc
from ..models.single_use_token import SingleUseToken, SingleUseTokenRecord, TokenKind

logger = structlog.get_logger()

_UPSERT_DIALECTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class SqlSingleUseTokenStore(ISingleUseTokenStore):
    """Single-use token store on the service database."""

    def __init__(self, database: Database, timeout: float = 5.0):
        if database.dialect_name not in _UPSERT_DIALECTS:
            raise ValueError(f"Unsupported database dialect for token store: {database.dialect_name}")
        self._database = database
        self._insert = _UPSERT_DIALECTS[database.dialect_name]
        self.timeout = timeout

    @storage_operation("single_use_token.upsert")
    async def upsert_if_not_throttled(
        self,
        kind: TokenKind,
        email: str,
        code: str,
        now: datetime,
        window: timedelta
    ) -> bool:
        cutoff = to_naive_utc(now - window)

        stmt = self._insert(SingleUseToken).values(
            kind=kind.value,
            email=email,
            code=code,
            issued_at=to_naive_utc(now),
        )
        # The update only fires once the previous token is outside the window
        stmt = stmt.on_conflict_do_update(
            index_elements=[SingleUseToken.kind, SingleUseToken.email],
            set_={
                "code": stmt.excluded.code,
                "issued_at": stmt.excluded.issued_at,
            },
            where=SingleUseToken.issued_at <= cutoff,
        ).returning(SingleUseToken.id)

        async with self._database.session_factory() as session:
            try:
                result = await session.execute(stmt)
                stored = result.first() is not None
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise CodeCollisionError() from e

        return stored

    @storage_operation("single_use_token.find_by_code")
    async def find_by_code(self, kind: TokenKind, code: str) -> Optional[SingleUseTokenRecord]:
        async with self._database.session_factory() as session:
            result = await session.execute(
                select(SingleUseToken).where(
                    SingleUseToken.kind == kind.value,
                    SingleUseToken.code == code,
                )
            )
            token = result.scalar_one_or_none()

        if token is None:
            return None

        return SingleUseTokenRecord(
            kind=TokenKind(token.kind),
            email=token.email,
            code=token.code,
            issued_at=as_utc(token.issued_at),
        )

    @storage_operation("single_use_token.delete_by_code")
    async def delete_by_code(self, kind: TokenKind, code: str) -> bool:
        async with self._database.session_factory() as session:
            result = await session.execute(
                delete(SingleUseToken).where(
                    SingleUseToken.kind == kind.value,
                    SingleUseToken.code == code,
                )
            )
            await session.commit()
        return result.rowcount > 0

    @storage_operation("single_use_token.take_by_code")
    async def take_by_code(self, kind: TokenKind, code: str) -> Optional[str]:
        async with self._database.session_factory() as session:
            result = await session.execute(
                delete(SingleUseToken)
                .where(
                    SingleUseToken.kind == kind.value,
                    SingleUseToken.code == code,
                )
                .returning(SingleUseToken.email)
            )
            email = result.scalar_one_or_none()
            await session.commit()
        return email
