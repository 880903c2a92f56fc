"""
Configuration management for mediashelf.

Defaults live in `defaults.toml` next to this module; a user TOML file may
override any subset of its keys.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent
DEFAULTS_PATH = CONFIG_DIR / "defaults.toml"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ConfigError(ValueError):
    """Raised when a configuration file holds an invalid value."""


@dataclass(frozen=True, slots=True)
class LibraryConfig:
    """Loaded configuration."""

    database: Path
    extensions: frozenset[str]
    follow_symlinks: bool = False
    log_level: str = "INFO"


def _read_toml(path: Path) -> dict[str, Any]:
    logger.debug("Loading config from %s", path)
    with path.open("rb") as f:
        return tomllib.load(f)


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge two TOML documents one table deep."""
    merged = {k: dict(v) if isinstance(v, dict) else v for k, v in base.items()}
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def _parse(data: dict[str, Any]) -> LibraryConfig:
    library = data.get("library", {})
    scan = data.get("scan", {})
    logging_section = data.get("logging", {})

    extensions = scan.get("extensions", [])
    if not isinstance(extensions, list) or not all(isinstance(e, str) for e in extensions):
        raise ConfigError("scan.extensions must be a list of strings")

    level = str(logging_section.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(f"logging.level must be one of {sorted(_LOG_LEVELS)}, got {level!r}")

    return LibraryConfig(
        database=Path(str(library.get("database", "mediashelf.db"))),
        extensions=frozenset(_normalize_extension(e) for e in extensions if e.strip()),
        follow_symlinks=bool(scan.get("follow_symlinks", False)),
        log_level=level,
    )


def load_config(config_path: Path | None = None) -> LibraryConfig:
    """
    Load configuration from the defaults, overlaid with `config_path` if given.

    Args:
        config_path: Path to a user TOML file. If None, only defaults are used.

    Returns:
        Loaded LibraryConfig instance.
    """
    data = _read_toml(DEFAULTS_PATH)
    if config_path is not None:
        data = _merge(data, _read_toml(config_path))
    return _parse(data)


# Global singleton instance (lazy loaded)
_config: LibraryConfig | None = None


def get_config() -> LibraryConfig:
    """Get the default configuration (lazy loaded singleton)."""
    global _config

    if _config is None:
        _config = load_config()

    return _config


def reload_config(config_path: Path | None = None) -> LibraryConfig:
    """Force reload of the configuration."""
    global _config
    _config = load_config(config_path)
    return _config
