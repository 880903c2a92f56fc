"""
Connection and session management for the catalogue database.

A `Client` owns the single aiosqlite connection. `Client.connect()` hands out a
`Session`, the context object every repository executes through: it carries the
connection, the (single) current transaction and the logger.

Transactions are explicit. The connection is opened with `isolation_level=None`
so that `sqlite3` never begins or commits on its own; `BEGIN`/`COMMIT`/`ROLLBACK`
are issued by the session, which is what lets DDL participate in a transaction.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any, Mapping, Sequence

import aiosqlite

from mediashelf.core import SessionStateError, StorageError
from mediashelf.core.db.albums import AlbumRepository
from mediashelf.core.db.artists import ArtistRepository
from mediashelf.core.db.discographies import (
    AlbumDiscographyRepository,
    SongDiscographyRepository,
)
from mediashelf.core.db.genres import GenreRepository
from mediashelf.core.db.songs import SongRepository

logger = logging.getLogger(__name__)

Params = Sequence[Any] | Mapping[str, Any]


class Client:
    """
    Owner of the SQLite connection.

    Usage:
        client = Client("library.db")
        await client.open()
        session = client.connect()
        ...
        await client.close()
    """

    def __init__(self, db_path: str | Path, *, logger: logging.Logger | None = None) -> None:
        self._db_path = str(db_path)
        self._logger = logger
        self._conn: aiosqlite.Connection | None = None

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self) -> None:
        if self._conn is not None:
            return
        log = self._logger or logger
        try:
            conn = await aiosqlite.connect(self._db_path, isolation_level=None)
        except aiosqlite.Error as e:
            log.error("Cannot open database %s: %s", self._db_path, e)
            raise StorageError(str(e)) from e
        conn.row_factory = aiosqlite.Row

        # Pragmas: foreign keys are enforced, see `AlbumRepository`.
        try:
            for pragma in (
                "PRAGMA foreign_keys = ON;",
                "PRAGMA journal_mode = WAL;",
                "PRAGMA synchronous = NORMAL;",
                "PRAGMA temp_store = MEMORY;",
            ):
                cursor = await conn.execute(pragma)
                await cursor.close()
        except aiosqlite.Error as e:
            log.error("Cannot configure database %s: %s", self._db_path, e)
            await conn.close()
            raise StorageError(str(e)) from e
        self._conn = conn

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None

    def connect(self) -> Session:
        """Return a new session bound to the open connection."""
        if self._conn is None:
            raise SessionStateError("Client is not open. Call await client.open() first.")
        return Session(self._conn, logger=self._logger)


class Session:
    """
    One open connection plus at most one active transaction.

    Repositories are created per session and share its transaction. Nested or
    concurrent transactions are not supported: `begin()` while a transaction is
    active raises `SessionStateError`.
    """

    def __init__(
        self, conn: aiosqlite.Connection, *, logger: logging.Logger | None = None
    ) -> None:
        self._conn = conn
        self._in_transaction = False
        self.logger = logger or logging.getLogger("mediashelf.session")

        self.genres = GenreRepository(self)
        self.artists = ArtistRepository(self)
        self.albums = AlbumRepository(self)
        self.songs = SongRepository(self)
        self.album_discographies = AlbumDiscographyRepository(self)
        self.song_discographies = SongDiscographyRepository(self)

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    def require_transaction(self) -> None:
        if not self._in_transaction:
            raise SessionStateError("No active transaction. Call await session.begin() first.")

    # ---- Transactions ----

    async def begin(self) -> None:
        if self._in_transaction:
            raise SessionStateError("A transaction is already active in this session.")
        await self.execute("BEGIN;")
        self._in_transaction = True

    async def commit(self) -> None:
        self.require_transaction()
        await self.execute("COMMIT;")
        self._in_transaction = False

    async def rollback(self) -> None:
        self.require_transaction()
        try:
            # A failed COMMIT may already have ended the engine-side transaction.
            if self._conn.in_transaction:
                await self.execute("ROLLBACK;")
        finally:
            self._in_transaction = False

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[Session]:
        """Run the block in one transaction; roll back and re-raise on any failure."""
        await self.begin()
        try:
            yield self
            await self.commit()
        except BaseException:
            if self._in_transaction:
                await self.rollback()
            raise

    # ---- Statement execution ----

    # Cursors are closed eagerly: a pending SELECT keeps its table locked
    # against DROP TABLE.

    async def execute(self, sql: str, params: Params = ()) -> None:
        cursor = await self._run(sql, params)
        await cursor.close()

    async def fetchone(self, sql: str, params: Params = ()) -> aiosqlite.Row | None:
        cursor = await self._run(sql, params)
        try:
            return await cursor.fetchone()
        finally:
            await cursor.close()

    async def fetchall(self, sql: str, params: Params = ()) -> list[aiosqlite.Row]:
        cursor = await self._run(sql, params)
        try:
            return list(await cursor.fetchall())
        finally:
            await cursor.close()

    async def cursor(self) -> aiosqlite.Cursor:
        return await self._conn.cursor()

    async def execute_on(self, cursor: aiosqlite.Cursor, sql: str, params: Params = ()) -> None:
        """Execute `sql` on a cursor owned by a repository."""
        try:
            await cursor.execute(sql, params)
        except aiosqlite.Error as e:
            self.logger.error("Statement failed: %s", e)
            raise StorageError(str(e)) from e

    async def _run(self, sql: str, params: Params = ()) -> aiosqlite.Cursor:
        try:
            return await self._conn.execute(sql, params)
        except aiosqlite.Error as e:
            self.logger.error("Statement failed: %s", e)
            raise StorageError(str(e)) from e

    # ---- Resources ----

    async def close(self) -> None:
        """Release every repository's cached insert cursor."""
        for repository in self.repositories():
            await repository.close()

    def repositories(self) -> tuple[Any, ...]:
        """Repositories in table dependency order (parents before link tables)."""
        return (
            self.genres,
            self.artists,
            self.albums,
            self.songs,
            self.album_discographies,
            self.song_discographies,
        )

    async def table_names(self) -> list[str]:
        rows = await self.fetchall(
            "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name;"
        )
        return [r["name"] for r in rows]
