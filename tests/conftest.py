"""Shared fixtures for reducer estimation tests."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from fnmatch import fnmatchcase

import pytest

from obs.diagnostics import DiagnosticsCollector
from reducer_estimation.history import InMemoryHistory
from reducer_estimation.resolver import SourceSizeResolver
from storage.filesystem import has_glob


@dataclass
class FakeFileSystemMetadata:
    """In-memory filesystem metadata keyed by path."""

    files: dict[str, int] = field(default_factory=dict)
    broken: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def expand(self, pattern: str) -> Sequence[str]:
        self.calls.append(pattern)
        if pattern in self.broken:
            msg = f"metadata service unavailable for {pattern}"
            raise OSError(msg)
        if has_glob(pattern):
            return sorted(path for path in self.files if fnmatchcase(path, pattern))
        if pattern not in self.files:
            raise FileNotFoundError(pattern)
        return [pattern]

    def content_length(self, path: str) -> int:
        try:
            return self.files[path]
        except KeyError as exc:
            raise FileNotFoundError(path) from exc


@pytest.fixture
def metadata() -> FakeFileSystemMetadata:
    """Provide an empty in-memory filesystem.

    Returns
    -------
    FakeFileSystemMetadata
        Fake metadata service.
    """
    return FakeFileSystemMetadata()


@pytest.fixture
def resolver(metadata: FakeFileSystemMetadata) -> SourceSizeResolver:
    """Provide a size resolver over the in-memory filesystem.

    Returns
    -------
    SourceSizeResolver
        Resolver bound to ``metadata``.
    """
    return SourceSizeResolver(metadata=metadata)


@pytest.fixture
def collector() -> DiagnosticsCollector:
    """Provide a diagnostics collector.

    Returns
    -------
    DiagnosticsCollector
        Empty collector.
    """
    return DiagnosticsCollector()


@pytest.fixture
def history() -> InMemoryHistory:
    """Provide an empty in-memory history store.

    Returns
    -------
    InMemoryHistory
        Empty history.
    """
    return InMemoryHistory()
