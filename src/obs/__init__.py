"""Observation utilities: diagnostics sinks and OpenTelemetry wiring."""

from __future__ import annotations

from obs.diagnostics import DiagnosticsCollector, DiagnosticsEvent
from obs.ports import DiagnosticsPort

__all__ = (
    "DiagnosticsCollector",
    "DiagnosticsEvent",
    "DiagnosticsPort",
)
