"""Worker-count estimation refined by the statistics of a past run."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from fractions import Fraction
from typing import ClassVar

from obs.otel.logs import OtelDiagnosticsSink
from obs.ports import DiagnosticsPort
from reducer_estimation.config import history_ratio_threshold, threshold_fraction
from reducer_estimation.diagnostics import (
    RATIO_ESTIMATE_EVENT,
    RATIO_REJECTED_EVENT,
    record_diagnostic,
    report_estimator_failure,
)
from reducer_estimation.direct import DirectSizeEstimator
from reducer_estimation.errors import HistoryLookupError
from reducer_estimation.history import HistoricalRecord, HistoryLookup
from reducer_estimation.step import JobStepInfo

_LOGGER = logging.getLogger(__name__)


def within_ratio_band(current_bytes: int, past_bytes: int, threshold: float) -> bool:
    """Return True when ``threshold <= current/past <= 1/threshold``.

    Both bounds are inclusive and compared exactly. ``past_bytes`` must be
    positive.

    Returns
    -------
    bool
        Whether the past run is comparable to the current one.
    """
    ratio = Fraction(current_bytes, past_bytes)
    lower = threshold_fraction(threshold)
    return lower <= ratio <= 1 / lower


@dataclass(frozen=True)
class RatioAdjustedEstimator:
    """Scale the direct estimate by the output/input ratio of the latest run.

    The most recent history record is used only when the current input size is
    within a factor of the configured threshold of that run's input size.
    """

    name: ClassVar[str] = "ratio"

    direct: DirectSizeEstimator
    history: HistoryLookup
    diagnostics: DiagnosticsPort = field(default_factory=OtelDiagnosticsSink)

    def estimate(self, step: JobStepInfo) -> int | None:
        """Return the ratio-adjusted worker count for ``step``.

        Never raises; any missing input along the way yields None.

        Returns
        -------
        int | None
            Estimated worker count.
        """
        try:
            return self._estimate(step)
        except Exception as exc:  # noqa: BLE001 - estimators never raise to the orchestrator
            _LOGGER.exception("Ratio estimate failed for %s", step.key)
            report_estimator_failure(
                self.diagnostics, estimator=self.name, step_key=step.key, exc=exc
            )
            return None

    def _estimate(self, step: JobStepInfo) -> int | None:
        record = self._latest_record(step)
        if record is None:
            return None
        current = self.direct.resolver.resolve(step.inputs)
        if current is None:
            _LOGGER.debug("Current input size of %s is unknown", step.key)
            return None
        if record.mapper_bytes == 0:
            _LOGGER.debug("Latest run of %s read no input; ignoring it", step.key)
            return None
        threshold = history_ratio_threshold(step.config)
        if not within_ratio_band(current, record.mapper_bytes, threshold):
            _LOGGER.warning(
                "Input sizes differ too much to use the reducer ratio of %s "
                "(threshold %s): past %d bytes, current %d bytes",
                step.key,
                threshold,
                record.mapper_bytes,
                current,
            )
            record_diagnostic(
                self.diagnostics,
                RATIO_REJECTED_EVENT,
                {
                    "step_key": step.key,
                    "current_bytes": current,
                    "past_bytes": record.mapper_bytes,
                    "threshold": threshold,
                },
                level=logging.WARNING,
            )
            return None
        base = self.direct.estimate(step)
        if base is None:
            return None
        reducer_ratio = Fraction(record.reducer_bytes, record.mapper_bytes)
        workers = max(1, math.ceil(base * reducer_ratio))
        _LOGGER.info(
            "%s past reducer ratio: %.6f, base estimate: %d, reducer estimate: %d",
            step.key,
            float(reducer_ratio),
            base,
            workers,
        )
        record_diagnostic(
            self.diagnostics,
            RATIO_ESTIMATE_EVENT,
            {
                "step_key": step.key,
                "current_bytes": current,
                "past_mapper_bytes": record.mapper_bytes,
                "past_reducer_bytes": record.reducer_bytes,
                "reducer_ratio": float(reducer_ratio),
                "base_estimate": base,
                "estimate": workers,
            },
        )
        return workers

    def _latest_record(self, step: JobStepInfo) -> HistoricalRecord | None:
        try:
            records = self.history.fetch_most_recent(step.identity, limit=1)
        except (HistoryLookupError, OSError) as exc:
            _LOGGER.warning("History lookup failed for %s: %s", step.key, exc)
            return None
        if not records:
            _LOGGER.debug("No history for %s", step.key)
            return None
        return records[0]


__all__ = ["RatioAdjustedEstimator", "within_ratio_band"]
