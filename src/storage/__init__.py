"""Storage helpers for input-size metadata."""

from __future__ import annotations

from storage.filesystem import (
    ArrowFileSystemMetadata,
    FileSystemMetadata,
    expand_braces,
    has_glob,
)

__all__ = (
    "ArrowFileSystemMetadata",
    "FileSystemMetadata",
    "expand_braces",
    "has_glob",
)
