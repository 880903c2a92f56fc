"""
WHERE-clause builder for the listing queries.

Filters are recognized by name and always applied in the same order
(artist, album, genre), independent of the mapping's iteration order, so the
generated SQL and its argument list are deterministic.

Important:
- Values are bound as parameters; only the static column fragments below are
  ever concatenated into SQL.
- Listing queries must join `artists`, `albums` and `genres` so that every
  recognized filter refers to a table in scope.
"""

from __future__ import annotations

import logging
from typing import Final, Mapping

logger = logging.getLogger(__name__)

# (filter name, column) in application order.
FILTERS: Final[tuple[tuple[str, str], ...]] = (
    ("artistID", "artists.artist_id"),
    ("albumID", "albums.album_id"),
    ("genreID", "genres.genre_id"),
)


def where(query: str, predicates: Mapping[str, str] | None) -> tuple[str, list[str]]:
    """
    Append WHERE/AND conditions for the recognized, non-empty predicates.

    Unknown keys are ignored. Returns the amended query and the positional
    arguments, ordered like the placeholders.
    """
    args: list[str] = []
    if not predicates:
        return query, args

    parts = [query]
    for name, column in FILTERS:
        value = predicates.get(name)
        if not value:
            continue
        keyword = "AND" if args else "WHERE"
        parts.append(f" {keyword} {column} = ?")
        args.append(value)

    sql = "".join(parts)
    logger.debug("Built query %s with args %s", sql, args)
    return sql, args
