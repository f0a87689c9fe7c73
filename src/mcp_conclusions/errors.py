"""Exception hierarchy for the conclusion store."""

from __future__ import annotations


class ConclusionStoreError(Exception):
    """Base exception for conclusion store operations."""
    pass


class InvalidPathError(ConclusionStoreError):
    """Raised when no usable project path was provided."""
    pass


class StorageIOError(ConclusionStoreError):
    """Raised when the data directory or a data file can't be read or written."""
    pass


class RenderError(ConclusionStoreError):
    """Raised when a conclusion can't be formatted."""
    pass


class IndexingError(ConclusionStoreError):
    """Raised when a conclusion can't be added to the search index."""
    pass
