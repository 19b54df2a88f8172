"""Canonical OpenTelemetry instrumentation scopes for reducer estimation."""

from __future__ import annotations

from obs.otel.constants import ScopeName

SCOPE_PLANNING = ScopeName.PLANNING
SCOPE_DIAGNOSTICS = ScopeName.DIAGNOSTICS
SCOPE_CLI = ScopeName.CLI

__all__ = [
    "SCOPE_CLI",
    "SCOPE_DIAGNOSTICS",
    "SCOPE_PLANNING",
]
