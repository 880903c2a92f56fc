"""
Album repository: the `albums` table.

The natural key is (name, sort name, release date, artist, genre). Artist and
genre are passed by name and resolved to ids by subqueries inside the insert;
with foreign keys enforced, an album whose artist or genre row is missing fails
the NOT NULL constraint instead of being stored with a dangling reference.

Reads go through `album_discographies`, so an album is only visible once its
artist link exists.
"""

from __future__ import annotations

from typing import Any, Mapping

import aiosqlite

from mediashelf.core.db.base import Repository
from mediashelf.core.db.predicates import where
from mediashelf.core.models import Album, AlbumAttributes

_SELECT = """
    SELECT
        albums.album_id,
        albums.album_name,
        albums.album_sort,
        artists.artist_name,
        artists.artist_sort,
        genres.genre_name,
        albums.release_date,
        albums.album_artist,
        albums.album_artist_sort,
        albums.track_total
    FROM
        album_discographies
        INNER JOIN artists ON album_discographies.artist_id = artists.artist_id
        INNER JOIN albums ON album_discographies.album_id = albums.album_id
        INNER JOIN genres ON albums.genre_id = genres.genre_id
"""


def _row_to_album(row: aiosqlite.Row) -> Album:
    return Album(
        id=int(row["album_id"]),
        attributes=AlbumAttributes(
            name=row["album_name"],
            sort=row["album_sort"] or "",
            artist_name=row["artist_name"],
            artist_sort=row["artist_sort"] or "",
            genre_name=row["genre_name"],
            release_date=row["release_date"] or "",
            album_artist=row["album_artist"] or "",
            album_artist_sort=row["album_artist_sort"] or "",
            track_total=row["track_total"],
        ),
    )


def album_key_params(attributes: AlbumAttributes) -> dict[str, Any]:
    """Named parameters identifying an album by its natural key."""
    return {
        "name": attributes.name,
        "sort": attributes.sort,
        "release_date": attributes.release_date,
        "artist_name": attributes.artist_name,
        "artist_sort": attributes.artist_sort,
        "genre_name": attributes.genre_name,
    }


class AlbumRepository(Repository):
    table = "albums"

    create_sql = """
        CREATE TABLE IF NOT EXISTS albums (
            album_id          INTEGER PRIMARY KEY,
            album_name        TEXT    NOT NULL,
            artist_id         INTEGER NOT NULL REFERENCES artists(artist_id),
            genre_id          INTEGER NOT NULL REFERENCES genres(genre_id),
            release_date      TEXT,
            track_total       INTEGER,
            album_sort        TEXT,
            album_artist      TEXT,
            album_artist_sort TEXT,
            UNIQUE (album_name, album_sort, release_date, artist_id, genre_id)
        )
    """

    insert_sql = """
        INSERT INTO albums (
            album_name,
            artist_id,
            genre_id,
            release_date,
            track_total,
            album_sort,
            album_artist,
            album_artist_sort
        )
        SELECT
            :name,
            (SELECT artist_id FROM artists
              WHERE artist_name = :artist_name AND artist_sort = :artist_sort),
            (SELECT genre_id FROM genres WHERE genre_name = :genre_name),
            :release_date,
            :track_total,
            :sort,
            :album_artist,
            :album_artist_sort
        WHERE NOT EXISTS (
            SELECT 1
            FROM albums
            WHERE album_name = :name
              AND album_sort = :sort
              AND release_date = :release_date
              AND artist_id = (SELECT artist_id FROM artists
                                WHERE artist_name = :artist_name AND artist_sort = :artist_sort)
              AND genre_id = (SELECT genre_id FROM genres WHERE genre_name = :genre_name)
        )
    """

    async def create_album(self, attributes: AlbumAttributes) -> None:
        """Insert an album unless one with the same natural key exists."""
        params = album_key_params(attributes)
        params.update(
            track_total=attributes.track_total,
            album_artist=attributes.album_artist,
            album_artist_sort=attributes.album_artist_sort,
        )
        await self._insert.execute(params)

    async def album(self, album_id: int) -> Album | None:
        row = await self._session.fetchone(_SELECT + " WHERE albums.album_id = ?", (album_id,))
        if row is None:
            return None
        return _row_to_album(row)

    async def albums(self, predicates: Mapping[str, str] | None = None) -> list[Album]:
        query, args = where(_SELECT, predicates)
        rows = await self._session.fetchall(query + " ORDER BY albums.album_id", args)
        return [_row_to_album(r) for r in rows]
