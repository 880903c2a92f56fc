from __future__ import annotations

import asyncio
import logging
import os
import re
from collections.abc import AsyncIterator, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mutagen import File as mutagen_file
from mutagen import MutagenError

from mediashelf.core import MetadataError

logger = logging.getLogger(__name__)


DEFAULT_AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".mp3",
        ".flac",
        ".ogg",
        ".opus",
        ".m4a",
        ".m4b",
        ".aac",
        ".wav",
        ".aiff",
        ".aif",
        ".wma",
        ".wv",
        ".ape",
        ".mpc",
    }
)


@dataclass(frozen=True, slots=True)
class ScanConfig:
    """Configuration for walking a music folder."""

    root: Path
    extensions: frozenset[str] = DEFAULT_AUDIO_EXTENSIONS
    follow_symlinks: bool = False


@dataclass(frozen=True, slots=True)
class TrackMetadata:
    """
    Tag data extracted from an audio file.

    Text fields are empty strings when the tag is absent; numbers are None.
    `year` is kept as text because it is stored as the release date.
    """

    title: str = ""
    title_sort: str = ""
    artist: str = ""
    artist_sort: str = ""
    album: str = ""
    album_sort: str = ""
    album_artist: str = ""
    album_artist_sort: str = ""
    genre: str = ""
    year: str = ""
    track: int | None = None
    track_total: int | None = None
    disc: int | None = None
    duration_ms: int | None = None
    composer: str = ""
    composer_sort: str = ""
    conductor: str = ""
    lyrics: str = ""
    comment: str = ""


def _clean_str(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _first_text(value: Any) -> str | None:
    """
    Reduce a mutagen tag value to one stripped string, or None.

    Values arrive as plain strings, lists (Vorbis, MP4), ID3 frames carrying a
    `.text` list, or objects with a `.value`. Only the first item counts.
    """
    while value is not None:
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        elif getattr(value, "text", None) is not None:
            value = value.text
        elif getattr(value, "value", None) is not None:
            value = value.value
        else:
            return _clean_str(str(value))
    return None


def _text(value: Any) -> str:
    return _first_text(value) or ""


def _parse_int_maybe(value: Any) -> int | None:
    """Number part of "3", "3/12", ["3/12"] or an MP4 [(3, 12)] pair."""
    s = _first_text(value)
    if not s:
        return None
    number, _, _ = s.partition("/")
    try:
        return int(number.strip())
    except ValueError:
        return None


def _parse_total_maybe(value: Any) -> int | None:
    """Total part of "3/12" or an MP4 [(3, 12)] pair."""
    if isinstance(value, list) and value and isinstance(value[0], tuple):
        pair = value[0]
        if len(pair) > 1 and isinstance(pair[1], int) and pair[1] > 0:
            return pair[1]
        return None

    s = _first_text(value)
    if not s or "/" not in s:
        return None
    try:
        return int(s.partition("/")[2].strip())
    except ValueError:
        return None


_YEAR_RE = re.compile(r"(?=(\d{4}))")


def _parse_year_maybe(value: Any) -> int | None:
    """First plausible four-digit year in "1999", "1999-01-01", "1999/2000"..."""
    s = _first_text(value)
    if not s:
        return None
    for match in _YEAR_RE.finditer(s):
        year = int(match.group(1))
        if 1000 <= year <= 3000:
            return year
    return None


def _tags_get(tags: dict[str, Any] | None, keys: Iterable[str]) -> Any:
    """Value of the first key present in `tags`."""
    if not tags:
        return None
    return next((tags[k] for k in keys if k in tags), None)


def _tags_get_prefixed(tags: dict[str, Any] | None, prefix: str) -> Any:
    """First value whose key starts with `prefix`; ID3 keys USLT/COMM frames as "COMM::eng"."""
    if not tags:
        return None
    for k in sorted(tags):
        if k.startswith(prefix):
            return tags[k]
    return None


def metadata_from_tags(tags: dict[str, Any] | None, length: float | None = None) -> TrackMetadata:
    """
    Map a mutagen tag mapping onto `TrackMetadata`.

    Keys are tried in order ID3, Vorbis (lower/upper case), MP4.
    """
    year = _parse_year_maybe(_tags_get(tags, ("TDRC", "TYER", "date", "DATE", "YEAR", "©day")))

    track_tag = _tags_get(tags, ("TRCK", "tracknumber", "TRACKNUMBER", "trkn"))
    track_total = _parse_total_maybe(track_tag)
    if track_total is None:
        track_total = _parse_int_maybe(
            _tags_get(tags, ("tracktotal", "TRACKTOTAL", "totaltracks", "TOTALTRACKS"))
        )

    lyrics = _tags_get(tags, ("lyrics", "LYRICS", "unsyncedlyrics", "UNSYNCEDLYRICS", "©lyr"))
    if lyrics is None:
        lyrics = _tags_get_prefixed(tags, "USLT")

    comment = _tags_get(tags, ("comment", "COMMENT", "description", "DESCRIPTION", "©cmt"))
    if comment is None:
        comment = _tags_get_prefixed(tags, "COMM")

    duration_ms: int | None = None
    if isinstance(length, (int, float)) and length > 0:
        duration_ms = int(length * 1000)

    return TrackMetadata(
        # Keys: ID3=TIT2, Vorbis=title, MP4=©nam
        title=_text(_tags_get(tags, ("TIT2", "title", "TITLE", "©nam"))),
        title_sort=_text(_tags_get(tags, ("TSOT", "titlesort", "TITLESORT", "sonm"))),
        artist=_text(_tags_get(tags, ("TPE1", "artist", "ARTIST", "©ART"))),
        artist_sort=_text(_tags_get(tags, ("TSOP", "artistsort", "ARTISTSORT", "soar"))),
        album=_text(_tags_get(tags, ("TALB", "album", "ALBUM", "©alb"))),
        album_sort=_text(_tags_get(tags, ("TSOA", "albumsort", "ALBUMSORT", "soal"))),
        album_artist=_text(
            _tags_get(tags, ("TPE2", "albumartist", "ALBUMARTIST", "aART", "ALBUM ARTIST"))
        ),
        album_artist_sort=_text(
            _tags_get(tags, ("TSO2", "albumartistsort", "ALBUMARTISTSORT", "soaa"))
        ),
        genre=_text(_tags_get(tags, ("TCON", "genre", "GENRE", "©gen"))),
        year=str(year) if year is not None else "",
        track=_parse_int_maybe(track_tag),
        track_total=track_total,
        disc=_parse_int_maybe(_tags_get(tags, ("TPOS", "discnumber", "DISCNUMBER", "disk"))),
        duration_ms=duration_ms,
        composer=_text(_tags_get(tags, ("TCOM", "composer", "COMPOSER", "©wrt"))),
        composer_sort=_text(_tags_get(tags, ("TSOC", "composersort", "COMPOSERSORT", "soco"))),
        conductor=_text(_tags_get(tags, ("TPE3", "conductor", "CONDUCTOR"))),
        lyrics=_text(lyrics),
        comment=_text(comment),
    )


def extract_metadata(path: Path) -> TrackMetadata:
    """
    Read the tags of one audio file with mutagen.

    Blocking; `LibraryService.add_path` calls it through `asyncio.to_thread`.
    Raises `MetadataError` for undecodable or untagged files.
    """
    try:
        audio = mutagen_file(path)
    except (MutagenError, OSError) as e:
        raise MetadataError(f"{path}: {type(e).__name__}: {e}") from e

    if audio is None:
        raise MetadataError(f"{path}: unsupported or unreadable audio file")
    if getattr(audio, "tags", None) is None:
        raise MetadataError(f"{path}: no tags")

    try:
        tags = dict(audio.tags)
    except (TypeError, ValueError):
        # Not every tag container converts to a dict
        tags = audio.tags  # type: ignore[assignment]

    info = getattr(audio, "info", None)
    return metadata_from_tags(tags, getattr(info, "length", None))


def _walk(config: ScanConfig) -> Iterator[Path]:
    """Depth-first, sorted walk yielding audio files one at a time."""

    def _on_error(err: OSError) -> None:
        logger.warning("Cannot read %s: %s", err.filename, err)

    for dirpath, dirnames, filenames in os.walk(
        config.root, onerror=_on_error, followlinks=config.follow_symlinks
    ):
        dirnames.sort()
        for name in sorted(filenames):
            p = Path(dirpath) / name
            try:
                if not config.follow_symlinks and p.is_symlink():
                    continue
                if not p.is_file():
                    continue
            except OSError as e:
                logger.warning("Cannot stat %s: %s", p, e)
                continue
            if p.suffix.lower() not in config.extensions:
                logger.debug("Skipping non-audio file %s", p)
                continue
            yield p


async def iter_audio_files(config: ScanConfig) -> AsyncIterator[Path]:
    """
    Yield the audio files under `config.root`, in walk order.

    Each step of the walk runs in a worker thread; the tree is never listed
    up front. Files are selected by extension only.
    """
    root = config.root
    if not root.exists():
        raise FileNotFoundError(root)
    if not root.is_dir():
        raise NotADirectoryError(root)

    walker = _walk(config)
    try:
        while True:
            path = await asyncio.to_thread(next, walker, None)
            if path is None:
                return
            yield path
    finally:
        walker.close()
