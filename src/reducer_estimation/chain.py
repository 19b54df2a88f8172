"""Ordered estimator chains."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from obs.otel.logs import OtelDiagnosticsSink
from obs.ports import DiagnosticsPort
from reducer_estimation.direct import DirectSizeEstimator
from reducer_estimation.history import HistoryLookup
from reducer_estimation.ratio import RatioAdjustedEstimator
from reducer_estimation.resolver import SourceSizeResolver
from reducer_estimation.step import JobStepInfo

_LOGGER = logging.getLogger(__name__)

ESTIMATOR_NAMES = ("ratio", "direct")


class WorkerEstimator(Protocol):
    """Anything that turns a step into an optional worker count."""

    def estimate(self, step: JobStepInfo) -> int | None:
        """Return a worker count, or None when no estimate is possible."""
        ...


def estimator_name(estimator: WorkerEstimator) -> str:
    """Return the reporting name of an estimator.

    Returns
    -------
    str
        The estimator's ``name`` attribute, or its class name.
    """
    name = getattr(estimator, "name", None)
    return name if isinstance(name, str) else type(estimator).__name__


@dataclass(frozen=True)
class FallbackEstimator:
    """Try estimators in order; the first present estimate wins."""

    estimators: tuple[WorkerEstimator, ...]
    name: str = field(default="chain")

    def estimate(self, step: JobStepInfo) -> int | None:
        """Return the first present estimate of the chain.

        Returns
        -------
        int | None
            Worker count, or None when every estimator declined.
        """
        workers, _source = self.estimate_with_source(step)
        return workers

    def estimate_with_source(self, step: JobStepInfo) -> tuple[int | None, str | None]:
        """Return the first present estimate and the name of its estimator.

        Returns
        -------
        tuple[int | None, str | None]
            Worker count and estimator name, or ``(None, None)``.
        """
        for estimator in self.estimators:
            workers = estimator.estimate(step)
            if workers is not None:
                return workers, estimator_name(estimator)
            _LOGGER.debug("Estimator %s declined %s", estimator_name(estimator), step.key)
        return None, None


def build_estimator(
    names: Sequence[str],
    *,
    resolver: SourceSizeResolver,
    history: HistoryLookup | None = None,
    diagnostics: DiagnosticsPort | None = None,
) -> FallbackEstimator:
    """Build a fallback chain from estimator names.

    ``"ratio"`` is skipped with a warning when no history store is given.

    Parameters
    ----------
    names
        Estimator names in priority order (``"ratio"``, ``"direct"``).
    resolver
        Size resolver shared by every estimator.
    history
        Optional history store for the ratio estimator.
    diagnostics
        Optional diagnostics sink; defaults to OpenTelemetry logs.

    Returns
    -------
    FallbackEstimator
        Chain of the requested estimators.

    Raises
    ------
    ValueError
        Raised when a name is unknown or the chain ends up empty.
    """
    sink = diagnostics or OtelDiagnosticsSink()
    direct = DirectSizeEstimator(resolver=resolver, diagnostics=sink)
    chain: list[WorkerEstimator] = []
    for raw in names:
        name = raw.strip().lower()
        if name not in ESTIMATOR_NAMES:
            msg = f"Unknown estimator {raw!r}; expected one of {', '.join(ESTIMATOR_NAMES)}."
            raise ValueError(msg)
        if name == "direct":
            chain.append(direct)
            continue
        if history is None:
            _LOGGER.warning("Skipping ratio estimator: no history store configured")
            continue
        chain.append(RatioAdjustedEstimator(direct=direct, history=history, diagnostics=sink))
    if not chain:
        msg = f"No usable estimator in {list(names)!r}."
        raise ValueError(msg)
    return FallbackEstimator(estimators=tuple(chain))


__all__ = [
    "ESTIMATOR_NAMES",
    "FallbackEstimator",
    "WorkerEstimator",
    "build_estimator",
    "estimator_name",
]
