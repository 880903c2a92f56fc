"""
Capabilities exposed per entity family.

Ingestion and callers depend on these protocols rather than on the SQLite
repositories, so another storage engine can provide the same set.
"""

from __future__ import annotations

from typing import Mapping, Protocol

from mediashelf.core.models import (
    Album,
    AlbumAttributes,
    Artist,
    ArtistAttributes,
    Genre,
    GenreAttributes,
    Song,
    SongAttributes,
)

Predicates = Mapping[str, str]


class ArtistService(Protocol):
    async def artist(self, artist_id: int) -> Artist | None: ...

    async def artists(self, predicates: Predicates | None = None) -> list[Artist]: ...

    async def create_artist(self, attributes: ArtistAttributes) -> None: ...


class GenreService(Protocol):
    async def genre(self, genre_id: int) -> Genre | None: ...

    async def genres(self, predicates: Predicates | None = None) -> list[Genre]: ...

    async def create_genre(self, attributes: GenreAttributes) -> None: ...


class AlbumService(Protocol):
    async def album(self, album_id: int) -> Album | None: ...

    async def albums(self, predicates: Predicates | None = None) -> list[Album]: ...

    async def create_album(self, attributes: AlbumAttributes) -> None: ...


class SongService(Protocol):
    async def song(self, song_id: int) -> Song | None: ...

    async def song_by_path(self, path: str) -> Song | None: ...

    async def songs(self, predicates: Predicates | None = None) -> list[Song]: ...

    async def create_song(self, attributes: SongAttributes) -> None: ...
