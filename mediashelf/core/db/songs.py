"""
Song repository: the `songs` table.

Songs are deduplicated by file path only; re-ingesting a path is a no-op even
when its tags changed. Reads go through `song_discographies` to reach the
credited artist, and pick up the linked album (if any) with a LEFT JOIN.
"""

from __future__ import annotations

from typing import Mapping

import aiosqlite

from mediashelf.core.db.base import Repository
from mediashelf.core.db.predicates import where
from mediashelf.core.models import Song, SongAttributes

_SELECT = """
    SELECT
        songs.song_id,
        songs.file_path,
        songs.file_base,
        songs.file_dir,
        artists.artist_name,
        artists.artist_sort,
        genres.genre_name,
        songs.song_name,
        songs.song_name_sort,
        songs.release_date,
        songs.track_number,
        songs.disc_number,
        songs.duration_in_millis,
        songs.composer_name,
        songs.composer_sort,
        songs.conductor,
        songs.lyrics,
        songs.comments,
        song_discographies.album_id,
        albums.album_name
    FROM
        song_discographies
        INNER JOIN songs ON song_discographies.song_id = songs.song_id
        INNER JOIN artists ON song_discographies.artist_id = artists.artist_id
        INNER JOIN genres ON songs.genre_id = genres.genre_id
        LEFT JOIN albums ON song_discographies.album_id = albums.album_id
"""


def _row_to_song(row: aiosqlite.Row) -> Song:
    album_id = row["album_id"]
    return Song(
        id=int(row["song_id"]),
        attributes=SongAttributes(
            file_path=row["file_path"],
            file_base=row["file_base"],
            file_dir=row["file_dir"],
            artist_name=row["artist_name"],
            artist_sort=row["artist_sort"] or "",
            name=row["song_name"] or "",
            name_sort=row["song_name_sort"] or "",
            genre_name=row["genre_name"],
            release_date=row["release_date"] or "",
            track_number=row["track_number"],
            disc_number=row["disc_number"],
            duration_in_millis=row["duration_in_millis"],
            composer_name=row["composer_name"] or "",
            composer_sort=row["composer_sort"] or "",
            conductor=row["conductor"] or "",
            lyrics=row["lyrics"] or "",
            comments=row["comments"] or "",
            album_name=row["album_name"] or "",
        ),
        album_id=int(album_id) if album_id is not None else None,
    )


class SongRepository(Repository):
    table = "songs"

    create_sql = """
        CREATE TABLE IF NOT EXISTS songs (
            song_id            INTEGER PRIMARY KEY,
            file_path          TEXT    NOT NULL UNIQUE,
            file_base          TEXT    NOT NULL,
            file_dir           TEXT    NOT NULL,
            artist_id          INTEGER NOT NULL REFERENCES artists(artist_id),
            song_name          TEXT,
            genre_id           INTEGER NOT NULL REFERENCES genres(genre_id),
            release_date       TEXT,
            track_number       INTEGER,
            disc_number        INTEGER,
            duration_in_millis INTEGER,
            artist_sort        TEXT,
            composer_name      TEXT,
            composer_sort      TEXT,
            conductor          TEXT,
            song_name_sort     TEXT,
            lyrics             TEXT,
            comments           TEXT
        )
    """

    insert_sql = """
        INSERT INTO songs (
            file_path,
            file_base,
            file_dir,
            artist_id,
            song_name,
            genre_id,
            release_date,
            track_number,
            disc_number,
            duration_in_millis,
            artist_sort,
            composer_name,
            composer_sort,
            conductor,
            song_name_sort,
            lyrics,
            comments
        )
        SELECT
            :file_path,
            :file_base,
            :file_dir,
            (SELECT artist_id FROM artists
              WHERE artist_name = :artist_name AND artist_sort = :artist_sort),
            :name,
            (SELECT genre_id FROM genres WHERE genre_name = :genre_name),
            :release_date,
            :track_number,
            :disc_number,
            :duration_in_millis,
            :artist_sort,
            :composer_name,
            :composer_sort,
            :conductor,
            :name_sort,
            :lyrics,
            :comments
        WHERE NOT EXISTS (SELECT 1 FROM songs WHERE file_path = :file_path)
    """

    async def create_song(self, attributes: SongAttributes) -> None:
        """Insert a song unless its file path is already catalogued."""
        await self._insert.execute(
            {
                "file_path": attributes.file_path,
                "file_base": attributes.file_base,
                "file_dir": attributes.file_dir,
                "artist_name": attributes.artist_name,
                "artist_sort": attributes.artist_sort,
                "name": attributes.name,
                "genre_name": attributes.genre_name,
                "release_date": attributes.release_date,
                "track_number": attributes.track_number,
                "disc_number": attributes.disc_number,
                "duration_in_millis": attributes.duration_in_millis,
                "composer_name": attributes.composer_name,
                "composer_sort": attributes.composer_sort,
                "conductor": attributes.conductor,
                "name_sort": attributes.name_sort,
                "lyrics": attributes.lyrics,
                "comments": attributes.comments,
            }
        )

    async def song(self, song_id: int) -> Song | None:
        row = await self._session.fetchone(_SELECT + " WHERE songs.song_id = ?", (song_id,))
        if row is None:
            return None
        return _row_to_song(row)

    async def song_by_path(self, path: str) -> Song | None:
        row = await self._session.fetchone(_SELECT + " WHERE songs.file_path = ?", (str(path),))
        if row is None:
            return None
        return _row_to_song(row)

    async def songs(self, predicates: Mapping[str, str] | None = None) -> list[Song]:
        query, args = where(_SELECT, predicates)
        rows = await self._session.fetchall(query + " ORDER BY songs.song_id", args)
        return [_row_to_song(r) for r in rows]
