"""Diagnostics sink helpers for estimator events."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True)
class DiagnosticsEvent:
    """One recorded diagnostics event."""

    name: str
    properties: Mapping[str, object]
    level: int = logging.INFO


@dataclass
class DiagnosticsCollector:
    """Collect diagnostics events in-memory without emitting them."""

    events: dict[str, list[DiagnosticsEvent]] = field(default_factory=dict)

    def record_event(
        self,
        name: str,
        properties: Mapping[str, object],
        *,
        level: int = logging.INFO,
    ) -> None:
        """Append an event payload under a logical name."""
        bucket = self.events.setdefault(name, [])
        bucket.append(DiagnosticsEvent(name=name, properties=dict(properties), level=level))

    def record_events(self, name: str, rows: Sequence[Mapping[str, object]]) -> None:
        """Append event rows under a logical name."""
        for row in rows:
            self.record_event(name, row)

    def names(self) -> list[str]:
        """Return recorded event names in first-seen order.

        Returns
        -------
        list[str]
            Event names with at least one recorded payload.
        """
        return list(self.events)

    def last(self, name: str) -> Mapping[str, object] | None:
        """Return the most recent payload recorded under ``name``.

        Returns
        -------
        Mapping[str, object] | None
            Latest payload, or None when nothing was recorded.
        """
        bucket = self.events.get(name)
        if not bucket:
            return None
        return bucket[-1].properties

    def events_snapshot(self) -> dict[str, list[Mapping[str, object]]]:
        """Return a shallow copy of collected event payloads.

        Returns
        -------
        dict[str, list[Mapping[str, object]]]
            Mapping of event names to collected payloads.
        """
        return {name: [event.properties for event in rows] for name, rows in self.events.items()}


__all__ = ["DiagnosticsCollector", "DiagnosticsEvent"]
