"""Diagnostics event names and reporting helpers for estimators."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from obs.ports import DiagnosticsPort

_LOGGER = logging.getLogger(__name__)

UNRESOLVED_SOURCES_EVENT = "reducer_estimation.unresolved_sources"
DIRECT_ESTIMATE_EVENT = "reducer_estimation.direct_estimate"
RATIO_REJECTED_EVENT = "reducer_estimation.ratio_rejected"
RATIO_ESTIMATE_EVENT = "reducer_estimation.ratio_estimate"
ESTIMATOR_FAILED_EVENT = "reducer_estimation.estimator_failed"
WORKER_PLAN_EVENT = "reducer_estimation.worker_plan"
ESTIMATE_TIMEOUT_EVENT = "reducer_estimation.estimate_timeout"


def record_diagnostic(
    diagnostics: DiagnosticsPort,
    name: str,
    properties: Mapping[str, object],
    *,
    level: int = logging.INFO,
) -> None:
    """Record an advisory event; a failing sink is logged and never propagates."""
    try:
        diagnostics.record_event(name, properties, level=level)
    except Exception:  # noqa: BLE001 - diagnostics must not change the estimate
        _LOGGER.exception("Diagnostics sink failed while recording %s", name)


def report_estimator_failure(
    diagnostics: DiagnosticsPort,
    *,
    estimator: str,
    step_key: str,
    exc: BaseException,
) -> None:
    """Record an unexpected estimator failure as a warning event."""
    record_diagnostic(
        diagnostics,
        ESTIMATOR_FAILED_EVENT,
        {
            "step_key": step_key,
            "estimator": estimator,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
        level=logging.WARNING,
    )


__all__ = [
    "DIRECT_ESTIMATE_EVENT",
    "ESTIMATE_TIMEOUT_EVENT",
    "ESTIMATOR_FAILED_EVENT",
    "RATIO_ESTIMATE_EVENT",
    "RATIO_REJECTED_EVENT",
    "UNRESOLVED_SOURCES_EVENT",
    "WORKER_PLAN_EVENT",
    "record_diagnostic",
    "report_estimator_failure",
]
