"""
Tests for mediashelf.core.scanner.

These tests verify:
- Tag helper parsing
- Mapping of ID3, Vorbis and MP4 tag keys onto TrackMetadata
- The folder walk (ordering, extension filter, symlinks)
- extract_metadata on real and broken files
"""

from __future__ import annotations

import os
import wave
from pathlib import Path

import pytest
from mutagen.id3 import TDRC, TIT2, TPE1, TRCK
from mutagen.wave import WAVE

from mediashelf.core import MetadataError
from mediashelf.core.scanner import (
    ScanConfig,
    TrackMetadata,
    _first_text,
    _parse_int_maybe,
    _parse_total_maybe,
    _parse_year_maybe,
    _walk,
    extract_metadata,
    iter_audio_files,
    metadata_from_tags,
)


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


def _write_wav(path: Path, seconds: int = 1) -> Path:
    with wave.open(str(path), "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(8000)
        w.writeframes(b"\x00\x00" * 8000 * seconds)
    return path


# =============================================================================
# Helpers
# =============================================================================


class TestScannerHelpers:
    """Tests for scanner utility functions."""

    def test_first_text_string(self) -> None:
        assert _first_text("hello") == "hello"
        assert _first_text("  spaced  ") == "spaced"
        assert _first_text("") is None

    def test_first_text_list(self) -> None:
        assert _first_text(["first", "second"]) == "first"
        assert _first_text([]) is None

    def test_first_text_none(self) -> None:
        assert _first_text(None) is None

    def test_parse_int_maybe_with_total(self) -> None:
        assert _parse_int_maybe("3/12") == 3
        assert _parse_int_maybe(["7"]) == 7

    def test_parse_int_maybe_mp4_pair(self) -> None:
        assert _parse_int_maybe([(3, 12)]) == 3

    def test_parse_int_maybe_invalid(self) -> None:
        assert _parse_int_maybe("abc") is None
        assert _parse_int_maybe("") is None
        assert _parse_int_maybe(None) is None

    def test_parse_total_maybe(self) -> None:
        assert _parse_total_maybe("3/12") == 12
        assert _parse_total_maybe([(3, 12)]) == 12
        assert _parse_total_maybe([(3, 0)]) is None
        assert _parse_total_maybe("3") is None

    def test_parse_year_maybe(self) -> None:
        assert _parse_year_maybe("2024") == 2024
        assert _parse_year_maybe("1985-12-31") == 1985
        assert _parse_year_maybe("abc") is None
        assert _parse_year_maybe(None) is None


# =============================================================================
# Tag mapping
# =============================================================================


class TestMetadataFromTags:
    def test_no_tags(self) -> None:
        assert metadata_from_tags(None) == TrackMetadata()
        assert metadata_from_tags({}) == TrackMetadata()

    def test_id3_keys(self) -> None:
        meta = metadata_from_tags(
            {
                "TIT2": ["Song"],
                "TPE1": ["Artist"],
                "TSOP": ["Artist, The"],
                "TALB": ["Album"],
                "TPE2": ["Various"],
                "TCON": ["Rock"],
                "TDRC": ["2000-05-01"],
                "TRCK": ["1/10"],
                "TPOS": ["2/2"],
                "TCOM": ["Composer"],
                "TPE3": ["Conductor"],
                "USLT::eng": ["la la la"],
                "COMM::eng": ["nice"],
            },
            length=215.5,
        )
        assert meta.title == "Song"
        assert meta.artist == "Artist"
        assert meta.artist_sort == "Artist, The"
        assert meta.album == "Album"
        assert meta.album_artist == "Various"
        assert meta.genre == "Rock"
        assert meta.year == "2000"
        assert meta.track == 1
        assert meta.track_total == 10
        assert meta.disc == 2
        assert meta.composer == "Composer"
        assert meta.conductor == "Conductor"
        assert meta.lyrics == "la la la"
        assert meta.comment == "nice"
        assert meta.duration_ms == 215500

    def test_vorbis_keys(self) -> None:
        meta = metadata_from_tags(
            {
                "title": ["Song"],
                "artist": ["Artist"],
                "album": ["Album"],
                "genre": ["Jazz"],
                "date": ["1999"],
                "tracknumber": ["4"],
                "tracktotal": ["9"],
                "comment": ["live"],
            }
        )
        assert meta.title == "Song"
        assert meta.genre == "Jazz"
        assert meta.year == "1999"
        assert meta.track == 4
        assert meta.track_total == 9
        assert meta.comment == "live"
        assert meta.duration_ms is None

    def test_mp4_keys(self) -> None:
        meta = metadata_from_tags(
            {
                "©nam": ["Song"],
                "©ART": ["Artist"],
                "©alb": ["Album"],
                "©day": ["2012"],
                "trkn": [(3, 12)],
                "disk": [(1, 1)],
            }
        )
        assert meta.title == "Song"
        assert meta.artist == "Artist"
        assert meta.year == "2012"
        assert meta.track == 3
        assert meta.track_total == 12
        assert meta.disc == 1

    def test_missing_text_is_empty(self) -> None:
        meta = metadata_from_tags({"TIT2": ["  "]})
        assert meta.title == ""
        assert meta.artist == ""
        assert meta.year == ""
        assert meta.track is None


# =============================================================================
# Walk
# =============================================================================


class TestWalk:
    def test_sorted_depth_first(self, tmp_path: Path) -> None:
        for name in ("b.mp3", "a.flac", "z/c.mp3", "m/d.ogg", "m/n/e.mp3"):
            _touch(tmp_path / name)

        paths = [p.relative_to(tmp_path).as_posix() for p in _walk(ScanConfig(root=tmp_path))]
        assert paths == ["a.flac", "b.mp3", "m/d.ogg", "m/n/e.mp3", "z/c.mp3"]

    def test_extension_filter_is_case_insensitive(self, tmp_path: Path) -> None:
        _touch(tmp_path / "loud.MP3")
        _touch(tmp_path / "cover.jpg")
        _touch(tmp_path / "README")

        paths = [p.name for p in _walk(ScanConfig(root=tmp_path))]
        assert paths == ["loud.MP3"]

    def test_custom_extensions(self, tmp_path: Path) -> None:
        _touch(tmp_path / "a.mp3")
        _touch(tmp_path / "b.flac")

        paths = [p.name for p in _walk(ScanConfig(root=tmp_path, extensions=frozenset({".flac"})))]
        assert paths == ["b.flac"]

    def test_symlinks_skipped_by_default(self, tmp_path: Path) -> None:
        target = _touch(tmp_path / "real" / "a.mp3")
        root = tmp_path / "root"
        root.mkdir()
        os.symlink(target, root / "link.mp3")
        os.symlink(target.parent, root / "linked_dir")

        assert list(_walk(ScanConfig(root=root))) == []

        followed = [
            p.relative_to(root).as_posix()
            for p in _walk(ScanConfig(root=root, follow_symlinks=True))
        ]
        assert followed == ["link.mp3", "linked_dir/a.mp3"]

    async def test_iter_audio_files(self, tmp_path: Path) -> None:
        _touch(tmp_path / "a.mp3")
        _touch(tmp_path / "sub" / "b.mp3")

        paths = [p async for p in iter_audio_files(ScanConfig(root=tmp_path))]
        assert [p.name for p in paths] == ["a.mp3", "b.mp3"]

    async def test_iter_audio_files_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            async for _ in iter_audio_files(ScanConfig(root=tmp_path / "missing")):
                pass

    async def test_iter_audio_files_root_is_file(self, tmp_path: Path) -> None:
        f = _touch(tmp_path / "a.mp3")
        with pytest.raises(NotADirectoryError):
            async for _ in iter_audio_files(ScanConfig(root=f)):
                pass


# =============================================================================
# extract_metadata
# =============================================================================


class TestExtractMetadata:
    def test_tagged_wav(self, tmp_path: Path) -> None:
        path = _write_wav(tmp_path / "song.wav")
        audio = WAVE(path)
        audio.add_tags()
        audio.tags.add(TIT2(encoding=3, text=["Tagged"]))
        audio.tags.add(TPE1(encoding=3, text=["Someone"]))
        audio.tags.add(TRCK(encoding=3, text=["2/5"]))
        audio.tags.add(TDRC(encoding=3, text=["2001"]))
        audio.save()

        meta = extract_metadata(path)
        assert meta.title == "Tagged"
        assert meta.artist == "Someone"
        assert meta.track == 2
        assert meta.track_total == 5
        assert meta.year == "2001"
        assert meta.duration_ms == 1000

    def test_untagged_wav_raises(self, tmp_path: Path) -> None:
        path = _write_wav(tmp_path / "plain.wav")
        with pytest.raises(MetadataError):
            extract_metadata(path)

    def test_junk_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "junk.mp3"
        path.write_bytes(b"this is not audio")
        with pytest.raises(MetadataError):
            extract_metadata(path)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(MetadataError):
            extract_metadata(tmp_path / "missing.mp3")
