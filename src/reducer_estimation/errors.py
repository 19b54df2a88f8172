"""Exceptions raised by estimation collaborators."""

from __future__ import annotations


class HistoryLookupError(RuntimeError):
    """Raised by a history store that cannot serve a lookup."""


__all__ = ["HistoryLookupError"]
