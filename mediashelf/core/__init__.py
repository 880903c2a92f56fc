"""
Core domain package.

This package contains the cataloguing logic: resource models, the SQLite
repositories and the ingestion pipeline. It has no CLI concerns; consumers
should import from the specific module they need (e.g.
`mediashelf.core.library`).
"""

from __future__ import annotations

__all__: list[str] = [
    "CoreError",
    "MetadataError",
    "SessionStateError",
    "StorageError",
]


class CoreError(Exception):
    """Base class for core-layer exceptions."""


class StorageError(CoreError):
    """Raised when the database engine rejects a statement."""


class SessionStateError(CoreError):
    """Raised when session or transaction operations are called out of order."""


class MetadataError(CoreError):
    """Raised when an audio file cannot be decoded or carries no tags."""
