"""
Custom exception hierarchy for the photo indexer.

Tree resolution has two distinct failure kinds: a marker that is simply not
there (the tree is offline, skip it quietly) and a marker that is present but
broken (a configuration problem the operator should hear about).
"""
from pathlib import Path


class PhotoIndexerError(Exception):
    """Base exception for all photo indexer errors."""
    pass


class ConfigError(PhotoIndexerError):
    """Raised when the scan configuration cannot be loaded."""
    pass


class TreeError(PhotoIndexerError):
    """Raised when a tree cannot be resolved from its marker file."""

    def __init__(self, path: Path, message: str):
        super().__init__(message)
        self.path = path


class MarkerNotFoundError(TreeError):
    """The marker file does not exist (tree not currently present)."""

    def __init__(self, path: Path):
        super().__init__(path, f"marker file not found at: '{path}'")


class MarkerInvalidError(TreeError):
    """The marker file exists but cannot be read or parsed."""

    def __init__(self, path: Path, reason: str):
        super().__init__(path, f"error reading marker file at '{path}': {reason}")
        self.reason = reason


class ImageDecodeError(PhotoIndexerError):
    """Raised when file bytes cannot be decoded as an image."""
    pass


class CatalogError(PhotoIndexerError):
    """Raised when catalog database operations fail."""
    pass
