"""Tests for mediashelf.config and the command line entry point."""

from __future__ import annotations

from pathlib import Path

import pytest

from mediashelf.__main__ import main, parse_args
from mediashelf.config import ConfigError, load_config
from mediashelf.core.scanner import DEFAULT_AUDIO_EXTENSIONS


class TestLoadConfig:
    def test_defaults(self) -> None:
        config = load_config()
        assert config.database == Path("mediashelf.db")
        assert config.extensions == DEFAULT_AUDIO_EXTENSIONS
        assert config.follow_symlinks is False
        assert config.log_level == "INFO"

    def test_override_file(self, tmp_path: Path) -> None:
        override = tmp_path / "override.toml"
        override.write_text(
            '[library]\ndatabase = "/data/music.db"\n\n[logging]\nlevel = "debug"\n'
        )
        config = load_config(override)
        assert config.database == Path("/data/music.db")
        assert config.log_level == "DEBUG"
        # Untouched sections keep their defaults
        assert config.extensions == DEFAULT_AUDIO_EXTENSIONS

    def test_extensions_are_normalized(self, tmp_path: Path) -> None:
        override = tmp_path / "override.toml"
        override.write_text('[scan]\nextensions = ["MP3", ".Flac", " "]\nfollow_symlinks = true\n')
        config = load_config(override)
        assert config.extensions == frozenset({".mp3", ".flac"})
        assert config.follow_symlinks is True

    def test_invalid_level(self, tmp_path: Path) -> None:
        override = tmp_path / "override.toml"
        override.write_text('[logging]\nlevel = "LOUD"\n')
        with pytest.raises(ConfigError):
            load_config(override)

    def test_invalid_extensions(self, tmp_path: Path) -> None:
        override = tmp_path / "override.toml"
        override.write_text('[scan]\nextensions = ".mp3"\n')
        with pytest.raises(ConfigError):
            load_config(override)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            load_config(tmp_path / "missing.toml")


class TestCli:
    def test_parse_add(self) -> None:
        args = parse_args(["--db", "x.db", "add", "a", "b"])
        assert args.command == "add"
        assert args.db == Path("x.db")
        assert args.roots == [Path("a"), Path("b")]

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_args([])

    def test_create_then_show(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        db = str(tmp_path / "cli.db")
        assert main(["--db", db, "create"]) == 0
        assert main(["--db", db, "show"]) == 0

        out = capsys.readouterr().out.splitlines()
        assert out == [
            "genres: 0",
            "artists: 0",
            "albums: 0",
            "songs: 0",
            "album_discographies: 0",
            "song_discographies: 0",
        ]

    def test_add_reports_skipped_files(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        music = tmp_path / "music"
        music.mkdir()
        (music / "junk.mp3").write_bytes(b"this is not audio")

        assert main(["--db", str(tmp_path / "cli.db"), "add", str(music)]) == 0
        assert capsys.readouterr().out.strip() == f"{music}: 0 catalogued, 1 skipped of 1 files"

    def test_show_without_tables_fails(self, tmp_path: Path) -> None:
        assert main(["--db", str(tmp_path / "cli.db"), "show"]) == 1

    def test_delete(self, tmp_path: Path) -> None:
        db = str(tmp_path / "cli.db")
        assert main(["--db", db, "create"]) == 0
        assert main(["--db", db, "delete"]) == 0

    def test_unreachable_database(self, tmp_path: Path) -> None:
        assert main(["--db", str(tmp_path / "no" / "such" / "lib.db"), "create"]) == 1

    def test_bad_config_file(self, tmp_path: Path) -> None:
        assert main(["--config", str(tmp_path / "missing.toml"), "create"]) == 1
