"""Filesystem metadata port and a ``pyarrow.fs`` adapter with glob expansion."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Protocol, runtime_checkable

import pyarrow.fs as pafs

_GLOB_CHARS = frozenset("*?[{")


@runtime_checkable
class FileSystemMetadata(Protocol):
    """Port for path expansion and content-length queries."""

    def expand(self, pattern: str) -> Sequence[str]:
        """Return the concrete paths matching a path pattern."""
        ...

    def content_length(self, path: str) -> int:
        """Return the total byte length of a file or directory tree."""
        ...


def has_glob(pattern: str) -> bool:
    """Return whether a path pattern contains glob metacharacters.

    Returns
    -------
    bool
        True when the pattern contains ``*``, ``?``, ``[`` or ``{``.
    """
    return any(char in _GLOB_CHARS for char in pattern)


def _split_alternatives(body: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in body:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def expand_braces(pattern: str) -> tuple[str, ...]:
    """Expand ``{a,b}`` alternations into plain glob patterns.

    Nested alternations are expanded recursively. An unbalanced ``{`` is kept
    literally.

    Returns
    -------
    tuple[str, ...]
        Expanded patterns in first-seen order, without duplicates.
    """
    start = pattern.find("{")
    if start < 0:
        return (pattern,)
    depth = 0
    end = -1
    for index in range(start, len(pattern)):
        char = pattern[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                end = index
                break
    if end < 0:
        return (pattern,)
    prefix = pattern[:start]
    suffix = pattern[end + 1 :]
    expanded: dict[str, None] = {}
    for alternative in _split_alternatives(pattern[start + 1 : end]):
        for item in expand_braces(prefix + alternative + suffix):
            expanded.setdefault(item, None)
    return tuple(expanded)


@dataclass(frozen=True)
class _ResolvedPattern:
    filesystem: pafs.FileSystem
    base: str
    segments: tuple[str, ...]
    root: str


def _split_static_prefix(path: str) -> tuple[str, tuple[str, ...]]:
    parts = path.split("/")
    for index, part in enumerate(parts):
        if has_glob(part):
            base = "/".join(parts[:index])
            if not base and path.startswith("/"):
                base = "/"
            return base, tuple(parts[index:])
    return path, ()


@dataclass(frozen=True)
class ArrowFileSystemMetadata:
    """Resolve path patterns against a ``pyarrow.fs.FileSystem``.

    When ``filesystem`` is omitted, plain paths use the local filesystem and
    URI patterns (``s3://bucket/logs/*.parquet``) resolve their filesystem from
    the URI; matches are then returned as URIs so they can be fed back into
    :meth:`content_length`.
    """

    filesystem: pafs.FileSystem | None = None

    def expand(self, pattern: str) -> tuple[str, ...]:
        """Expand a glob pattern into the concrete paths that exist.

        A pattern without glob characters must name an existing object.

        Returns
        -------
        tuple[str, ...]
            Sorted matching paths; empty when a glob matches nothing.

        Raises
        ------
        FileNotFoundError
            Raised when a literal (non-glob) path does not exist.
        """
        matches: dict[str, None] = {}
        for candidate in expand_braces(pattern):
            resolved = self._resolve_pattern(candidate)
            if not resolved.segments:
                info = resolved.filesystem.get_file_info(resolved.base)
                if info.type == pafs.FileType.NotFound:
                    raise FileNotFoundError(candidate)
                matches.setdefault(resolved.root + resolved.base, None)
                continue
            for path in _glob_segments(resolved.filesystem, resolved.base, resolved.segments):
                matches.setdefault(resolved.root + path, None)
        return tuple(sorted(matches))

    def content_length(self, path: str) -> int:
        """Return the byte length of a file, or the recursive total of a directory.

        Returns
        -------
        int
            Content length in bytes.

        Raises
        ------
        FileNotFoundError
            Raised when the path does not exist.
        """
        filesystem, fs_path = self._resolve_path(path)
        info = filesystem.get_file_info(fs_path)
        if info.type == pafs.FileType.NotFound:
            raise FileNotFoundError(path)
        if info.type != pafs.FileType.Directory:
            return info.size or 0
        selector = pafs.FileSelector(fs_path, recursive=True)
        return sum(
            entry.size or 0
            for entry in filesystem.get_file_info(selector)
            if entry.type == pafs.FileType.File
        )

    def _resolve_path(self, path: str) -> tuple[pafs.FileSystem, str]:
        if self.filesystem is not None:
            if "://" in path:
                _, path = path.split("://", 1)
            return self.filesystem, path
        if "://" in path:
            return pafs.FileSystem.from_uri(path)
        return pafs.LocalFileSystem(), os.path.abspath(path)

    def _resolve_pattern(self, pattern: str) -> _ResolvedPattern:
        if self.filesystem is None and "://" in pattern:
            return _resolve_uri_pattern(pattern)
        path = pattern.split("://", 1)[1] if "://" in pattern else pattern
        base, segments = _split_static_prefix(path)
        if self.filesystem is None:
            base = os.path.abspath(base or ".")
            return _ResolvedPattern(pafs.LocalFileSystem(), base, segments, "")
        return _ResolvedPattern(self.filesystem, base, segments, "")


def _resolve_uri_pattern(pattern: str) -> _ResolvedPattern:
    scheme, rest = pattern.split("://", 1)
    base, segments = _split_static_prefix(rest)
    if not base:
        msg = f"Glob characters are not supported in the URI authority: {pattern!r}."
        raise ValueError(msg)
    static_uri = f"{scheme}://{base}"
    filesystem, fs_base = pafs.FileSystem.from_uri(static_uri)
    if not static_uri.endswith(fs_base):
        msg = f"Cannot map filesystem paths back onto URI {static_uri!r}."
        raise ValueError(msg)
    root = static_uri[: len(static_uri) - len(fs_base)]
    return _ResolvedPattern(filesystem, fs_base, segments, root)


def _join(parent: str, child: str) -> str:
    if not parent:
        return child
    return f"{parent.rstrip('/')}/{child}"


def _glob_segments(
    filesystem: pafs.FileSystem,
    base: str,
    segments: Sequence[str],
) -> list[str]:
    if base and filesystem.get_file_info(base).type != pafs.FileType.Directory:
        return []
    candidates = [base]
    last_index = len(segments) - 1
    for index, segment in enumerate(segments):
        matched: list[str] = []
        for parent in candidates:
            if not has_glob(segment):
                child = _join(parent, segment)
                child_type = filesystem.get_file_info(child).type
                if child_type == pafs.FileType.NotFound:
                    continue
                if index < last_index and child_type != pafs.FileType.Directory:
                    continue
                matched.append(child)
                continue
            selector = pafs.FileSelector(parent, allow_not_found=True, recursive=False)
            for info in filesystem.get_file_info(selector):
                if not fnmatchcase(info.base_name, segment):
                    continue
                if index < last_index and info.type != pafs.FileType.Directory:
                    continue
                matched.append(info.path)
        candidates = matched
        if not candidates:
            break
    return candidates


__all__ = [
    "ArrowFileSystemMetadata",
    "FileSystemMetadata",
    "expand_braces",
    "has_glob",
]
