"""
Artist repository: the `artists` table.

Artists are deduplicated by (name, sort name). Listings join through the album
discography so that album and genre filters can be applied.
"""

from __future__ import annotations

from typing import Mapping

import aiosqlite

from mediashelf.core.db.base import Repository
from mediashelf.core.db.predicates import where
from mediashelf.core.models import Artist, ArtistAttributes

_SELECT = """
    SELECT DISTINCT
        artists.artist_id,
        artists.artist_name,
        artists.artist_sort
    FROM
        artists
        LEFT JOIN album_discographies ON album_discographies.artist_id = artists.artist_id
        LEFT JOIN albums ON album_discographies.album_id = albums.album_id
        LEFT JOIN genres ON albums.genre_id = genres.genre_id
"""


def _row_to_artist(row: aiosqlite.Row) -> Artist:
    return Artist(
        id=int(row["artist_id"]),
        attributes=ArtistAttributes(name=row["artist_name"], sort=row["artist_sort"] or ""),
    )


class ArtistRepository(Repository):
    table = "artists"

    create_sql = """
        CREATE TABLE IF NOT EXISTS artists (
            artist_id   INTEGER PRIMARY KEY,
            artist_name TEXT    NOT NULL,
            artist_sort TEXT,
            UNIQUE (artist_name, artist_sort)
        )
    """

    insert_sql = """
        INSERT INTO artists (artist_name, artist_sort)
        SELECT :name, :sort
        WHERE NOT EXISTS (
            SELECT 1
            FROM artists
            WHERE artist_name = :name
              AND artist_sort = :sort
        )
    """

    async def create_artist(self, attributes: ArtistAttributes) -> None:
        """Insert an artist unless one with the same name and sort name exists."""
        await self._insert.execute({"name": attributes.name, "sort": attributes.sort})

    async def artist(self, artist_id: int) -> Artist | None:
        row = await self._session.fetchone(
            """
            SELECT artist_id, artist_name, artist_sort
            FROM artists
            WHERE artist_id = ?
            """,
            (artist_id,),
        )
        if row is None:
            return None
        return _row_to_artist(row)

    async def artists(self, predicates: Mapping[str, str] | None = None) -> list[Artist]:
        query, args = where(_SELECT, predicates)
        rows = await self._session.fetchall(query + " ORDER BY artists.artist_id", args)
        return [_row_to_artist(r) for r in rows]
