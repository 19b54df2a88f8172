"""Worker-count estimation from total input size."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import ClassVar

from obs.otel.logs import OtelDiagnosticsSink
from obs.ports import DiagnosticsPort
from reducer_estimation.config import bytes_per_worker
from reducer_estimation.diagnostics import (
    DIRECT_ESTIMATE_EVENT,
    UNRESOLVED_SOURCES_EVENT,
    record_diagnostic,
    report_estimator_failure,
)
from reducer_estimation.resolver import SourceSizeResolver
from reducer_estimation.step import JobStepInfo

_LOGGER = logging.getLogger(__name__)


def workers_for_bytes(total_bytes: int, per_worker: int) -> int:
    """Return ``max(1, ceil(total_bytes / per_worker))`` using integer math.

    Returns
    -------
    int
        Worker count, at least 1.
    """
    return max(1, -(-total_bytes // per_worker))


@dataclass(frozen=True)
class DirectSizeEstimator:
    """Estimate workers by dividing total input bytes by a per-worker target."""

    name: ClassVar[str] = "direct"

    resolver: SourceSizeResolver
    diagnostics: DiagnosticsPort = field(default_factory=OtelDiagnosticsSink)

    def estimate(self, step: JobStepInfo) -> int | None:
        """Return the worker count for ``step``, or None when its size is unknown.

        Never raises; unexpected failures are logged and reported as None.

        Returns
        -------
        int | None
            Estimated worker count.
        """
        try:
            return self._estimate(step)
        except Exception as exc:  # noqa: BLE001 - estimators never raise to the orchestrator
            _LOGGER.exception("Direct estimate failed for %s", step.key)
            report_estimator_failure(
                self.diagnostics, estimator=self.name, step_key=step.key, exc=exc
            )
            return None

    def _estimate(self, step: JobStepInfo) -> int | None:
        per_worker = bytes_per_worker(step.config)
        resolution = self.resolver.resolve_detailed(step.inputs)
        if resolution.total is None:
            record_diagnostic(
                self.diagnostics,
                UNRESOLVED_SOURCES_EVENT,
                {"step_key": step.key, "unresolved": list(resolution.unresolved)},
                level=logging.WARNING,
            )
            return None
        workers = workers_for_bytes(resolution.total, per_worker)
        _LOGGER.info(
            "%s input size (bytes): %d, reducer estimate: %d",
            step.key,
            resolution.total,
            workers,
        )
        record_diagnostic(
            self.diagnostics,
            DIRECT_ESTIMATE_EVENT,
            {
                "step_key": step.key,
                "input_bytes": resolution.total,
                "bytes_per_worker": per_worker,
                "estimate": workers,
            },
        )
        return workers


__all__ = ["DirectSizeEstimator", "workers_for_bytes"]
