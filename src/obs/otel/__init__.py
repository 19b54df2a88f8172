"""OpenTelemetry helpers for reducer estimation observability."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from obs.otel.bootstrap import (
        OtelBootstrapOptions,
        OtelProviders,
        configure_otel,
        reset_providers_for_tests,
    )
    from obs.otel.logging import configure_logging
    from obs.otel.logs import OtelDiagnosticsSink, emit_diagnostics_event
    from obs.otel.metrics import metric_views, record_stage_duration, record_worker_plan
    from obs.otel.run_context import get_run_id, reset_run_id, set_run_id
    from obs.otel.scopes import (
        SCOPE_CLI,
        SCOPE_DIAGNOSTICS,
        SCOPE_PLANNING,
    )
    from obs.otel.tracing import get_tracer, record_exception, set_span_attributes, stage_span

__all__ = [
    "SCOPE_CLI",
    "SCOPE_DIAGNOSTICS",
    "SCOPE_PLANNING",
    "OtelBootstrapOptions",
    "OtelDiagnosticsSink",
    "OtelProviders",
    "configure_logging",
    "configure_otel",
    "emit_diagnostics_event",
    "get_run_id",
    "get_tracer",
    "metric_views",
    "record_exception",
    "record_stage_duration",
    "record_worker_plan",
    "reset_providers_for_tests",
    "reset_run_id",
    "set_run_id",
    "set_span_attributes",
    "stage_span",
]

_EXPORT_MAP: dict[str, tuple[str, str]] = {
    "OtelBootstrapOptions": ("obs.otel.bootstrap", "OtelBootstrapOptions"),
    "OtelProviders": ("obs.otel.bootstrap", "OtelProviders"),
    "configure_otel": ("obs.otel.bootstrap", "configure_otel"),
    "reset_providers_for_tests": ("obs.otel.bootstrap", "reset_providers_for_tests"),
    "configure_logging": ("obs.otel.logging", "configure_logging"),
    "OtelDiagnosticsSink": ("obs.otel.logs", "OtelDiagnosticsSink"),
    "emit_diagnostics_event": ("obs.otel.logs", "emit_diagnostics_event"),
    "metric_views": ("obs.otel.metrics", "metric_views"),
    "record_stage_duration": ("obs.otel.metrics", "record_stage_duration"),
    "record_worker_plan": ("obs.otel.metrics", "record_worker_plan"),
    "get_run_id": ("obs.otel.run_context", "get_run_id"),
    "reset_run_id": ("obs.otel.run_context", "reset_run_id"),
    "set_run_id": ("obs.otel.run_context", "set_run_id"),
    "SCOPE_CLI": ("obs.otel.scopes", "SCOPE_CLI"),
    "SCOPE_DIAGNOSTICS": ("obs.otel.scopes", "SCOPE_DIAGNOSTICS"),
    "SCOPE_PLANNING": ("obs.otel.scopes", "SCOPE_PLANNING"),
    "get_tracer": ("obs.otel.tracing", "get_tracer"),
    "record_exception": ("obs.otel.tracing", "record_exception"),
    "set_span_attributes": ("obs.otel.tracing", "set_span_attributes"),
    "stage_span": ("obs.otel.tracing", "stage_span"),
}


def __getattr__(name: str) -> object:
    export = _EXPORT_MAP.get(name)
    if export is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    module_name, attr_name = export
    module = importlib.import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(__all__)
