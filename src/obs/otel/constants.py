"""Canonical OpenTelemetry constants for reducer estimation."""

from __future__ import annotations

from enum import StrEnum


class MetricName(StrEnum):
    """Canonical metric names."""

    ESTIMATE_COUNT = "reducer_estimation.estimate.count"
    ESTIMATE_WORKERS = "reducer_estimation.estimate.workers"
    ESTIMATE_DURATION = "reducer_estimation.estimate.duration"
    STAGE_DURATION = "reducer_estimation.stage.duration"


class AttributeName(StrEnum):
    """Canonical attribute names."""

    RUN_ID = "reducer_estimation.run_id"
    STAGE = "stage"
    STATUS = "status"
    STEP_KEY = "step_key"
    PLAN_SOURCE = "plan_source"
    CAPPED = "capped"


class ScopeName(StrEnum):
    """Canonical instrumentation scope names."""

    PLANNING = "reducer_estimation.planning"
    DIAGNOSTICS = "reducer_estimation.diagnostics"
    CLI = "reducer_estimation.cli"


__all__ = ["AttributeName", "MetricName", "ScopeName"]
