"""
Discography link repositories.

`album_discographies` links an artist to an album; `song_discographies` links an
artist to a song and, optionally, to the song's album. Neither insert takes ids:
every foreign key is resolved by a correlated subquery on the owning table's
natural key, so the owning rows must be inserted first.

Both inserts use `INSERT OR IGNORE`: an existing (artist, album) or
(artist, song) pair is skipped, and so is a link whose artist, album or song
cannot be resolved (the NOT NULL conflict is ignored). The song link's album is
nullable; an unresolved album is stored as NULL.
"""

from __future__ import annotations

from mediashelf.core.db.albums import album_key_params
from mediashelf.core.db.base import Repository
from mediashelf.core.models import AlbumAttributes, SongAttributes

_ALBUM_ID_BY_KEY = """
    (SELECT album_id FROM albums
      WHERE album_name = :album_name
        AND album_sort = :album_sort
        AND release_date = :release_date
        AND artist_id = (SELECT artist_id FROM artists
                          WHERE artist_name = :album_artist_name
                            AND artist_sort = :album_artist_sort)
        AND genre_id = (SELECT genre_id FROM genres WHERE genre_name = :genre_name))
"""


def _album_params(attributes: AlbumAttributes) -> dict[str, object]:
    key = album_key_params(attributes)
    return {
        "album_name": key["name"],
        "album_sort": key["sort"],
        "release_date": key["release_date"],
        "album_artist_name": key["artist_name"],
        "album_artist_sort": key["artist_sort"],
        "genre_name": key["genre_name"],
    }


class AlbumDiscographyRepository(Repository):
    table = "album_discographies"

    create_sql = """
        CREATE TABLE IF NOT EXISTS album_discographies (
            artist_id INTEGER NOT NULL REFERENCES artists(artist_id),
            album_id  INTEGER NOT NULL REFERENCES albums(album_id),
            PRIMARY KEY (artist_id, album_id)
        )
    """

    insert_sql = f"""
        INSERT OR IGNORE INTO album_discographies (artist_id, album_id)
        SELECT
            (SELECT artist_id FROM artists
              WHERE artist_name = :album_artist_name AND artist_sort = :album_artist_sort),
            {_ALBUM_ID_BY_KEY}
    """

    async def create_album_discography(self, attributes: AlbumAttributes) -> None:
        """Link the album to the artist it is credited to."""
        await self._insert.execute(_album_params(attributes))

    async def links(self) -> list[tuple[int, int]]:
        rows = await self._session.fetchall(
            "SELECT artist_id, album_id FROM album_discographies ORDER BY artist_id, album_id"
        )
        return [(int(r["artist_id"]), int(r["album_id"])) for r in rows]


class SongDiscographyRepository(Repository):
    table = "song_discographies"

    create_sql = """
        CREATE TABLE IF NOT EXISTS song_discographies (
            artist_id INTEGER NOT NULL REFERENCES artists(artist_id),
            song_id   INTEGER NOT NULL REFERENCES songs(song_id),
            album_id  INTEGER REFERENCES albums(album_id),
            PRIMARY KEY (artist_id, song_id)
        )
    """

    insert_sql = f"""
        INSERT OR IGNORE INTO song_discographies (artist_id, song_id, album_id)
        SELECT
            (SELECT artist_id FROM artists
              WHERE artist_name = :artist_name AND artist_sort = :artist_sort),
            (SELECT song_id FROM songs WHERE file_path = :file_path),
            {_ALBUM_ID_BY_KEY}
    """

    async def create_song_discography(
        self, song: SongAttributes, album: AlbumAttributes
    ) -> None:
        """Link the song to its artist and, when it resolves, to its album."""
        params = _album_params(album)
        params.update(
            artist_name=song.artist_name,
            artist_sort=song.artist_sort,
            file_path=song.file_path,
        )
        await self._insert.execute(params)

    async def links(self) -> list[tuple[int, int, int | None]]:
        rows = await self._session.fetchall(
            "SELECT artist_id, song_id, album_id FROM song_discographies "
            "ORDER BY artist_id, song_id"
        )
        return [
            (
                int(r["artist_id"]),
                int(r["song_id"]),
                int(r["album_id"]) if r["album_id"] is not None else None,
            )
            for r in rows
        ]
