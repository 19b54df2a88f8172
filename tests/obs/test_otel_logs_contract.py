"""Contract tests for diagnostics emitted as OpenTelemetry logs."""

from __future__ import annotations

import importlib
import logging

import pytest

from obs.otel.bootstrap import OtelProviders
from obs.otel.logs import OtelDiagnosticsSink, emit_diagnostics_event
from obs.otel.run_context import reset_run_id, set_run_id


def _finished_attributes(providers: OtelProviders) -> list[dict[str, object]]:
    assert providers.log_exporter is not None
    rows: list[dict[str, object]] = []
    for item in providers.log_exporter.get_finished_logs():
        record = getattr(item, "log_record", item)
        rows.append(dict(record.attributes or {}))
    return rows


def test_diagnostics_logs_emit(otel_harness: OtelProviders) -> None:
    """Ensure diagnostics logs carry the event name, kind and run id."""
    token = set_run_id("run-123")
    try:
        emit_diagnostics_event(
            "reducer_estimation.direct_estimate",
            payload={"input_bytes": 10, "estimate": 1},
            event_kind="event",
        )
    finally:
        reset_run_id(token)
    rows = [
        row
        for row in _finished_attributes(otel_harness)
        if row.get("event.name") == "reducer_estimation.direct_estimate"
    ]
    assert rows
    assert rows[-1]["event.kind"] == "event"
    assert rows[-1]["reducer_estimation.run_id"] == "run-123"
    assert rows[-1]["estimate"] == 1


def test_sink_flattens_nested_payloads(otel_harness: OtelProviders) -> None:
    """Ensure list payloads become OTel-safe attribute values."""
    OtelDiagnosticsSink().record_events(
        "reducer_estimation.unresolved_sources",
        [{"unresolved": ["/a", "/b"]}],
    )
    rows = [
        row
        for row in _finished_attributes(otel_harness)
        if row.get("event.name") == "reducer_estimation.unresolved_sources"
    ]
    assert rows
    assert rows[-1]["unresolved"] == '["/a","/b"]'


def test_sink_falls_back_to_stdlib_logging(caplog: pytest.LogCaptureFixture) -> None:
    """Ensure events become structured log records without a logger provider."""
    with caplog.at_level(logging.INFO, logger="reducer_estimation.diagnostics"):
        OtelDiagnosticsSink.record_event(
            "reducer_estimation.ratio_rejected",
            {"current_bytes": 50, "past_bytes": 1000, "name": "shadowed"},
            level=logging.WARNING,
        )
    records = [
        record for record in caplog.records if record.name == "reducer_estimation.diagnostics"
    ]
    assert records
    record = records[-1]
    assert record.levelno == logging.WARNING
    assert "reducer_estimation.ratio_rejected" in record.getMessage()
    assert record.__dict__["current_bytes"] == 50
    assert record.__dict__["attr.name"] == "shadowed"


def test_log_attribute_limits(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure log attribute limits are applied during normalization."""
    monkeypatch.setenv("OTEL_LOGRECORD_ATTRIBUTE_COUNT_LIMIT", "1")
    monkeypatch.setenv("OTEL_LOGRECORD_ATTRIBUTE_VALUE_LENGTH_LIMIT", "4")
    from obs.otel import attributes as otel_attributes

    otel_attributes = importlib.reload(otel_attributes)
    normalized = otel_attributes.normalize_log_attributes({"alpha": "abcdefgh", "beta": "zz"})
    assert normalized.get("alpha") == "abcd"
    assert len(normalized) == 1
    monkeypatch.delenv("OTEL_LOGRECORD_ATTRIBUTE_COUNT_LIMIT", raising=False)
    monkeypatch.delenv("OTEL_LOGRECORD_ATTRIBUTE_VALUE_LENGTH_LIMIT", raising=False)
    importlib.reload(otel_attributes)
