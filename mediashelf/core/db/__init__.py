"""
SQLite persistence for the catalogue.

One module per table family (genres, artists, albums, songs, discographies),
a shared `Repository` base, the predicate builder and the `Client`/`Session`
pair that owns the connection and its transaction.

Re-exports here are primarily for convenience inside the `core` package.
"""

from __future__ import annotations

from .predicates import where
from .session import Client, Session

__all__ = [
    "Client",
    "Session",
    "where",
]
