"""Genre repository: the `genres` table."""

from __future__ import annotations

from typing import Mapping

import aiosqlite

from mediashelf.core.db.base import Repository
from mediashelf.core.db.predicates import where
from mediashelf.core.models import Genre, GenreAttributes

_SELECT = """
    SELECT DISTINCT
        genres.genre_id,
        genres.genre_name
    FROM
        genres
        LEFT JOIN albums ON albums.genre_id = genres.genre_id
        LEFT JOIN album_discographies ON album_discographies.album_id = albums.album_id
        LEFT JOIN artists ON album_discographies.artist_id = artists.artist_id
"""


def _row_to_genre(row: aiosqlite.Row) -> Genre:
    return Genre(id=int(row["genre_id"]), attributes=GenreAttributes(name=row["genre_name"]))


class GenreRepository(Repository):
    table = "genres"

    create_sql = """
        CREATE TABLE IF NOT EXISTS genres (
            genre_id   INTEGER PRIMARY KEY,
            genre_name TEXT    UNIQUE NOT NULL
        )
    """

    insert_sql = """
        INSERT INTO genres (genre_name)
        SELECT :name
        WHERE NOT EXISTS (SELECT 1 FROM genres WHERE genre_name = :name)
    """

    async def create_genre(self, attributes: GenreAttributes) -> None:
        """Insert a genre unless one with the same name exists."""
        await self._insert.execute({"name": attributes.name})

    async def genre(self, genre_id: int) -> Genre | None:
        row = await self._session.fetchone(
            "SELECT genre_id, genre_name FROM genres WHERE genre_id = ?",
            (genre_id,),
        )
        if row is None:
            return None
        return _row_to_genre(row)

    async def genres(self, predicates: Mapping[str, str] | None = None) -> list[Genre]:
        query, args = where(_SELECT, predicates)
        rows = await self._session.fetchall(query + " ORDER BY genres.genre_id", args)
        return [_row_to_genre(r) for r in rows]
