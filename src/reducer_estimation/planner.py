"""Orchestrator-facing worker planning for job steps.

The planner decides the final worker count of a step: it respects counts the
job author set explicitly, runs the estimator chain otherwise, caps the result
and falls back to a default when no estimate is available.
"""

from __future__ import annotations

import contextvars
import dataclasses
import logging
import threading
import time
from dataclasses import dataclass, field

from obs.otel.constants import AttributeName
from obs.otel.logs import OtelDiagnosticsSink
from obs.otel.metrics import record_worker_plan
from obs.otel.scopes import SCOPE_PLANNING
from obs.otel.tracing import set_span_attributes, stage_span
from obs.ports import DiagnosticsPort
from reducer_estimation.chain import FallbackEstimator, WorkerEstimator, estimator_name
from reducer_estimation.config import (
    EstimatorConfigSpec,
    canonical_config,
    resolve_estimator_config,
)
from reducer_estimation.diagnostics import (
    ESTIMATE_TIMEOUT_EVENT,
    WORKER_PLAN_EVENT,
    record_diagnostic,
    report_estimator_failure,
)
from reducer_estimation.step import JobStepInfo
from serde_msgspec import StructBaseStrict, to_builtins

_LOGGER = logging.getLogger(__name__)

SOURCE_EXPLICIT = "explicit"
SOURCE_DEFAULT = "default"
SOURCE_NONE = "none"


class WorkerPlan(StructBaseStrict, frozen=True):
    """Planned worker count of one step and how it was decided."""

    step_key: str
    estimate: int | None
    workers: int | None
    source: str
    capped: bool


@dataclass(frozen=True)
class WorkerPlanner:
    """Plan worker counts with an estimator chain and configured limits."""

    estimator: WorkerEstimator
    settings: EstimatorConfigSpec = field(default_factory=EstimatorConfigSpec)
    diagnostics: DiagnosticsPort = field(default_factory=OtelDiagnosticsSink)

    def plan(self, step: JobStepInfo) -> WorkerPlan:
        """Return the worker plan for ``step``.

        Step configuration keys override the planner settings, and the merged
        configuration is what the estimators see.

        Parameters
        ----------
        step
            Step to plan.

        Returns
        -------
        WorkerPlan
            Planned workers with the deciding source.
        """
        settings = resolve_estimator_config(step.config, base=self.settings)
        effective = dataclasses.replace(
            step, config={**self.settings.as_step_config(), **canonical_config(step.config)}
        )
        start = time.monotonic()
        with stage_span(
            "reducer_estimation.plan",
            stage="plan",
            scope_name=SCOPE_PLANNING,
            attributes={AttributeName.STEP_KEY: step.key},
        ) as span:
            plan = self._plan(effective, settings)
            set_span_attributes(
                span,
                {
                    AttributeName.PLAN_SOURCE: plan.source,
                    AttributeName.CAPPED: plan.capped,
                    "reducer_estimation.workers": plan.workers,
                },
            )
        record_worker_plan(
            source=plan.source,
            workers=plan.workers,
            capped=plan.capped,
            duration_s=time.monotonic() - start,
        )
        _LOGGER.info("Planned %s workers for %s (%s)", plan.workers, plan.step_key, plan.source)
        record_diagnostic(self.diagnostics, WORKER_PLAN_EVENT, to_builtins(plan))
        return plan

    def _plan(self, step: JobStepInfo, settings: EstimatorConfigSpec) -> WorkerPlan:
        explicit = step.explicit_workers
        if explicit is not None and not settings.override_explicit:
            return WorkerPlan(
                step_key=step.key,
                estimate=None,
                workers=explicit,
                source=SOURCE_EXPLICIT,
                capped=False,
            )
        estimate, source = self._estimate(step, settings.timeout_s)
        if estimate is not None:
            workers = estimate
            capped = settings.max_workers is not None and estimate > settings.max_workers
            if capped:
                workers = settings.max_workers
            return WorkerPlan(
                step_key=step.key,
                estimate=estimate,
                workers=workers,
                source=source or estimator_name(self.estimator),
                capped=capped,
            )
        if settings.default_workers is not None:
            return WorkerPlan(
                step_key=step.key,
                estimate=None,
                workers=settings.default_workers,
                source=SOURCE_DEFAULT,
                capped=False,
            )
        return WorkerPlan(
            step_key=step.key,
            estimate=None,
            workers=explicit,
            source=SOURCE_EXPLICIT if explicit is not None else SOURCE_NONE,
            capped=False,
        )

    def _estimate(self, step: JobStepInfo, timeout_s: float | None) -> tuple[int | None, str | None]:
        if timeout_s is None:
            return self._invoke(step)
        context = contextvars.copy_context()
        outcome: list[tuple[int | None, str | None]] = []
        # Daemon thread: an estimate abandoned after the deadline must not keep
        # the process alive at exit.
        worker = threading.Thread(
            target=lambda: outcome.append(context.run(self._invoke, step)),
            name=f"reducer-estimate-{step.key}",
            daemon=True,
        )
        worker.start()
        worker.join(timeout_s)
        if worker.is_alive():
            _LOGGER.warning("Estimation of %s exceeded %.3fs", step.key, timeout_s)
            record_diagnostic(
                self.diagnostics,
                ESTIMATE_TIMEOUT_EVENT,
                {"step_key": step.key, "timeout_s": timeout_s},
                level=logging.WARNING,
            )
            return None, None
        return outcome[0] if outcome else (None, None)

    def _invoke(self, step: JobStepInfo) -> tuple[int | None, str | None]:
        try:
            if isinstance(self.estimator, FallbackEstimator):
                return self.estimator.estimate_with_source(step)
            return self.estimator.estimate(step), estimator_name(self.estimator)
        except Exception as exc:  # noqa: BLE001 - planning falls back instead of failing the step
            _LOGGER.exception("Estimator %s raised for %s", estimator_name(self.estimator), step.key)
            report_estimator_failure(
                self.diagnostics,
                estimator=estimator_name(self.estimator),
                step_key=step.key,
                exc=exc,
            )
            return None, None


__all__ = ["SOURCE_DEFAULT", "SOURCE_EXPLICIT", "SOURCE_NONE", "WorkerPlan", "WorkerPlanner"]
