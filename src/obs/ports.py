"""Observation port protocols for estimator diagnostics."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Protocol


class DiagnosticsPort(Protocol):
    """Port for recording diagnostics events."""

    def record_event(
        self,
        name: str,
        properties: Mapping[str, object],
        *,
        level: int = logging.INFO,
    ) -> None:
        """Record one diagnostics event payload."""
        ...

    def record_events(self, name: str, rows: Sequence[Mapping[str, object]]) -> None:
        """Record multiple diagnostics event payloads."""
        ...


__all__ = ["DiagnosticsPort"]
