from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from mediashelf.config import LibraryConfig
from mediashelf.core import SessionStateError
from mediashelf.core.db.session import Client, Session
from mediashelf.core.models import (
    AlbumAttributes,
    ArtistAttributes,
    GenreAttributes,
    SongAttributes,
)
from mediashelf.core.scanner import (
    DEFAULT_AUDIO_EXTENSIONS,
    ScanConfig,
    TrackMetadata,
    extract_metadata,
    iter_audio_files,
)
from mediashelf.core.services import AlbumService, ArtistService, GenreService, SongService

logger = logging.getLogger(__name__)

Extractor = Callable[[Path], TrackMetadata]


@dataclass(frozen=True, slots=True)
class IngestResult:
    scanned_files: int
    decoded_files: int
    skipped_files: int


# ---- Metadata -> attribute records ----


def genre_attributes(meta: TrackMetadata) -> GenreAttributes:
    return GenreAttributes(name=meta.genre)


def artist_attributes(meta: TrackMetadata) -> ArtistAttributes:
    return ArtistAttributes(name=meta.artist, sort=meta.artist_sort)


def album_attributes(meta: TrackMetadata) -> AlbumAttributes:
    return AlbumAttributes(
        name=meta.album,
        sort=meta.album_sort,
        artist_name=meta.artist,
        artist_sort=meta.artist_sort,
        genre_name=meta.genre,
        release_date=meta.year,
        album_artist=meta.album_artist,
        album_artist_sort=meta.album_artist_sort,
        track_total=meta.track_total,
    )


def song_attributes(path: Path, meta: TrackMetadata) -> SongAttributes:
    return SongAttributes(
        file_path=str(path),
        file_base=path.name,
        file_dir=str(path.parent),
        artist_name=meta.artist,
        artist_sort=meta.artist_sort,
        name=meta.title,
        name_sort=meta.title_sort,
        genre_name=meta.genre,
        release_date=meta.year,
        track_number=meta.track,
        disc_number=meta.disc,
        duration_in_millis=meta.duration_ms,
        composer_name=meta.composer,
        composer_sort=meta.composer_sort,
        conductor=meta.conductor,
        lyrics=meta.lyrics,
        comments=meta.comment,
    )


class LibraryService:
    """
    High-level facade for a catalogue database.

    Owns one `Client` and at most one open `Session`. Every schema or ingestion
    operation runs in a single transaction of that session.

    Usage:
        async with LibraryService("library.db") as library:
            await library.create_library()
            await library.add_path(Path("~/Music").expanduser())
    """

    def __init__(
        self,
        db_path: str | Path,
        *,
        extensions: frozenset[str] = DEFAULT_AUDIO_EXTENSIONS,
        follow_symlinks: bool = False,
        extractor: Extractor = extract_metadata,
        session_logger: logging.Logger | None = None,
    ) -> None:
        self._client = Client(db_path, logger=session_logger)
        self._extensions = extensions
        self._follow_symlinks = follow_symlinks
        self._extractor = extractor
        self._session: Session | None = None

    @classmethod
    def from_config(
        cls, config: LibraryConfig, *, extractor: Extractor = extract_metadata
    ) -> LibraryService:
        return cls(
            config.database,
            extensions=config.extensions,
            follow_symlinks=config.follow_symlinks,
            extractor=extractor,
        )

    @property
    def is_open(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Session:
        return self._require_session()

    @property
    def artists(self) -> ArtistService:
        return self._require_session().artists

    @property
    def genres(self) -> GenreService:
        return self._require_session().genres

    @property
    def albums(self) -> AlbumService:
        return self._require_session().albums

    @property
    def songs(self) -> SongService:
        return self._require_session().songs

    # ---- Session lifecycle ----

    async def open(self) -> None:
        if self._session is not None:
            raise SessionStateError("library session already opened")
        await self._client.open()
        self._session = self._client.connect()
        logger.debug("Opened library %s", self._client.path)

    async def close(self) -> None:
        if self._session is None:
            raise SessionStateError("no open library session to close")
        session, self._session = self._session, None
        try:
            await session.close()
        finally:
            await self._client.close()
        logger.debug("Closed library %s", self._client.path)

    async def __aenter__(self) -> LibraryService:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ---- Schema ----

    async def create_library(self) -> None:
        """Create all tables, parents before children, in one transaction."""
        session = self._require_session()
        try:
            async with session.transaction():
                for repository in session.repositories():
                    await repository.create_table()
        except Exception as e:
            logger.error("Creating library failed: %s", e)
            raise
        logger.info("Created library tables in %s", self._client.path)

    async def delete_library(self) -> None:
        """
        Drop all tables in one transaction.

        Tables are dropped children first: with foreign keys enforced, dropping a
        referenced table while referencing rows exist is rejected.
        """
        session = self._require_session()
        try:
            async with session.transaction():
                for repository in reversed(session.repositories()):
                    await repository.drop_table()
        except Exception as e:
            logger.error("Deleting library failed: %s", e)
            raise
        finally:
            await session.close()
        logger.info("Deleted library tables in %s", self._client.path)

    # ---- Ingestion ----

    async def add_path(self, root: str | Path) -> IngestResult:
        """
        Catalogue every audio file under `root` in one transaction.

        `root` is resolved to an absolute path first, so songs are keyed by
        absolute file paths however the folder was spelled. A file whose
        metadata cannot be extracted is logged and skipped; any database
        failure discards the whole batch.
        """
        session = self._require_session()
        config = ScanConfig(
            root=Path(root).expanduser().resolve(),
            extensions=self._extensions,
            follow_symlinks=self._follow_symlinks,
        )

        scanned = 0
        decoded = 0
        skipped = 0
        try:
            async with session.transaction():
                async with contextlib.aclosing(iter_audio_files(config)) as paths:
                    async for path in paths:
                        scanned += 1
                        try:
                            meta = await asyncio.to_thread(self._extractor, path)
                        except Exception as e:  # noqa: BLE001 - one bad file must not stop the walk
                            skipped += 1
                            logger.warning("Skipping %s: %s", path, e)
                            continue
                        await self._ingest(session, path, meta)
                        decoded += 1
        except Exception as e:
            logger.error("Adding %s failed, nothing was committed: %s", root, e)
            raise

        logger.info(
            "Added %s: %d files, %d catalogued, %d skipped", root, scanned, decoded, skipped
        )
        return IngestResult(scanned_files=scanned, decoded_files=decoded, skipped_files=skipped)

    @staticmethod
    async def _ingest(session: Session, path: Path, meta: TrackMetadata) -> None:
        genre = genre_attributes(meta)
        artist = artist_attributes(meta)
        album = album_attributes(meta)
        song = song_attributes(path, meta)

        await session.genres.create_genre(genre)
        await session.artists.create_artist(artist)
        await session.albums.create_album(album)
        await session.songs.create_song(song)
        await session.album_discographies.create_album_discography(album)
        await session.song_discographies.create_song_discography(song, album)

    def _require_session(self) -> Session:
        if self._session is None:
            raise SessionStateError("No open library session. Call await library.open() first.")
        return self._session
