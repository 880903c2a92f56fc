"""
Resource models for the catalogue.

Each entity is a resource object (`type`, `id`, `attributes`) with a separate
attributes record. Attributes double as the input of the `create_*`
operations, so natural-key fields are plain strings: missing tag values are
empty strings rather than None, which keeps `=` comparisons in the upsert
statements matching on re-ingestion.

This module is intentionally lightweight:
- No DB connection knowledge
- No SQL
- Pure dataclasses
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ArtistAttributes:
    name: str = ""
    sort: str = ""


@dataclass(frozen=True, slots=True)
class Artist:
    id: int
    attributes: ArtistAttributes
    type: str = "artists"


@dataclass(frozen=True, slots=True)
class GenreAttributes:
    name: str = ""


@dataclass(frozen=True, slots=True)
class Genre:
    id: int
    attributes: GenreAttributes
    type: str = "genres"


@dataclass(frozen=True, slots=True)
class AlbumAttributes:
    """
    Album information.

    `artist_name`/`artist_sort` and `genre_name` identify the owning rows; they
    are resolved to foreign keys inside the insert statement.
    """

    name: str = ""
    sort: str = ""
    artist_name: str = ""
    artist_sort: str = ""
    genre_name: str = ""
    release_date: str = ""
    album_artist: str = ""
    album_artist_sort: str = ""
    track_total: int | None = None


@dataclass(frozen=True, slots=True)
class Album:
    id: int
    attributes: AlbumAttributes
    type: str = "albums"


@dataclass(frozen=True, slots=True)
class SongAttributes:
    """
    Song information.

    Notes:
    - `file_path` is the natural key; it must identify the same file across scans.
    - `album_name` is populated on reads from the song's discography link.
    """

    file_path: str = ""
    file_base: str = ""
    file_dir: str = ""
    artist_name: str = ""
    artist_sort: str = ""
    name: str = ""
    name_sort: str = ""
    genre_name: str = ""
    release_date: str = ""
    track_number: int | None = None
    disc_number: int | None = None
    duration_in_millis: int | None = None
    composer_name: str = ""
    composer_sort: str = ""
    conductor: str = ""
    lyrics: str = ""
    comments: str = ""
    album_name: str = ""


@dataclass(frozen=True, slots=True)
class Song:
    id: int
    attributes: SongAttributes
    album_id: int | None = None
    type: str = "songs"
