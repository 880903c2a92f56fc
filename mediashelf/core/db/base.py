"""
Shared repository plumbing.

Each repository owns one parameterized insert statement. The statement runs on a
cursor that is created lazily on first use and kept for the repository's
lifetime; `sqlite3` caches the compiled statement, so repeated inserts reuse it.
`close()` releases the cursor and may be called any number of times.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Mapping

import aiosqlite

if TYPE_CHECKING:
    from mediashelf.core.db.session import Session


class PreparedInsert:
    """Lazily allocated cursor bound to a single insert statement."""

    def __init__(self, session: Session, sql: str) -> None:
        self._session = session
        self._sql = sql
        self._cursor: aiosqlite.Cursor | None = None

    @property
    def is_prepared(self) -> bool:
        return self._cursor is not None

    async def execute(self, params: Mapping[str, Any]) -> None:
        self._session.require_transaction()
        if self._cursor is None:
            self._cursor = await self._session.cursor()
        await self._session.execute_on(self._cursor, self._sql, params)

    async def close(self) -> None:
        if self._cursor is None:
            return
        cursor, self._cursor = self._cursor, None
        await cursor.close()


class Repository:
    """
    Base for table-owning repositories.

    Subclasses provide the table name, its DDL and the insert statement.
    """

    table: ClassVar[str]
    create_sql: ClassVar[str]
    insert_sql: ClassVar[str]

    def __init__(self, session: Session) -> None:
        self._session = session
        self._insert = PreparedInsert(session, self.insert_sql)

    async def create_table(self) -> None:
        self._session.require_transaction()
        await self._session.execute(self.create_sql)

    async def drop_table(self) -> None:
        self._session.require_transaction()
        await self._session.execute(f"DROP TABLE IF EXISTS {self.table}")

    async def count(self) -> int:
        row = await self._session.fetchone(f"SELECT COUNT(*) AS c FROM {self.table};")
        return int(row["c"]) if row is not None else 0

    async def close(self) -> None:
        await self._insert.close()
