"""Tests for the in-memory diagnostics sink."""

from __future__ import annotations

import logging

from obs.diagnostics import DiagnosticsCollector
from obs.otel.logs import OtelDiagnosticsSink
from obs.ports import DiagnosticsPort


def _accepts_port(sink: DiagnosticsPort) -> DiagnosticsPort:
    return sink


def test_collector_records_events_in_order() -> None:
    """Ensure events are grouped by name and keep their level."""
    collector = DiagnosticsCollector()
    collector.record_event("a", {"n": 1})
    collector.record_events("a", [{"n": 2}, {"n": 3}])
    collector.record_event("b", {"n": 4}, level=logging.WARNING)
    assert collector.names() == ["a", "b"]
    assert collector.events_snapshot()["a"] == [{"n": 1}, {"n": 2}, {"n": 3}]
    assert collector.last("a") == {"n": 3}
    assert collector.events["b"][0].level == logging.WARNING
    assert collector.last("missing") is None


def test_collector_copies_payloads() -> None:
    """Ensure later mutation of a payload does not change recorded events."""
    collector = DiagnosticsCollector()
    payload = {"n": 1}
    collector.record_event("a", payload)
    payload["n"] = 2
    assert collector.last("a") == {"n": 1}


def test_sinks_share_the_port() -> None:
    """Ensure both sinks can be passed where a diagnostics port is expected."""
    assert _accepts_port(DiagnosticsCollector()) is not None
    assert _accepts_port(OtelDiagnosticsSink()) is not None
