"""
mediashelf - a media-library catalogue backed by SQLite.

mediashelf walks a folder tree for audio files, reads their tags and stores
normalized artists, genres, albums and songs, linked through discography
tables.
"""

__version__ = "0.1.0"
__license__ = "GPL-2.0"

from mediashelf.core.library import IngestResult, LibraryService

__all__ = ["IngestResult", "LibraryService", "__version__"]
