"""Tests for worker planning."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

import pytest

from obs.diagnostics import DiagnosticsCollector
from reducer_estimation.config import BYTES_PER_WORKER_KEY, MAX_WORKERS_KEY, EstimatorConfigSpec
from reducer_estimation.diagnostics import (
    ESTIMATE_TIMEOUT_EVENT,
    ESTIMATOR_FAILED_EVENT,
    WORKER_PLAN_EVENT,
)
from reducer_estimation.planner import WorkerPlan, WorkerPlanner
from reducer_estimation.sources import GlobSource
from reducer_estimation.step import JobStepInfo, StepIdentity
from serde_msgspec import dumps_json

_IDENTITY = StepIdentity(job_name="daily", step_name="rollup")


def _step(*, explicit: int | None = None, **config: object) -> JobStepInfo:
    return JobStepInfo(
        identity=_IDENTITY,
        inputs=GlobSource(pattern="/in/*"),
        config=config,
        explicit_workers=explicit,
    )


@dataclass
class _Recording:
    value: int | None
    name: str = "recording"
    seen: list[JobStepInfo] = field(default_factory=list)

    def estimate(self, step: JobStepInfo) -> int | None:
        self.seen.append(step)
        return self.value


@dataclass
class _Blocking:
    release: threading.Event
    name: str = "blocking"

    def estimate(self, step: JobStepInfo) -> int | None:
        self.release.wait(5)
        return 7


class _Raising:
    name = "raising"

    def estimate(self, step: JobStepInfo) -> int | None:
        msg = "estimator bug"
        raise RuntimeError(msg)


def test_estimate_is_planned(collector: DiagnosticsCollector) -> None:
    """Ensure a present estimate becomes the worker count."""
    planner = WorkerPlanner(estimator=_Recording(5), diagnostics=collector)
    plan = planner.plan(_step())
    assert plan == WorkerPlan(
        step_key="daily/rollup", estimate=5, workers=5, source="recording", capped=False
    )
    assert collector.last(WORKER_PLAN_EVENT) == {
        "step_key": "daily/rollup",
        "estimate": 5,
        "workers": 5,
        "source": "recording",
        "capped": False,
    }


def test_explicit_count_is_respected(collector: DiagnosticsCollector) -> None:
    """Ensure explicit worker counts skip estimation."""
    estimator = _Recording(5)
    planner = WorkerPlanner(estimator=estimator, diagnostics=collector)
    plan = planner.plan(_step(explicit=2))
    assert (plan.workers, plan.source, plan.estimate) == (2, "explicit", None)
    assert estimator.seen == []


def test_explicit_count_can_be_overridden(collector: DiagnosticsCollector) -> None:
    """Ensure override_explicit runs the estimator anyway."""
    planner = WorkerPlanner(
        estimator=_Recording(5),
        settings=EstimatorConfigSpec(override_explicit=True),
        diagnostics=collector,
    )
    assert planner.plan(_step(explicit=2)).workers == 5


def test_estimate_is_capped(collector: DiagnosticsCollector) -> None:
    """Ensure max_workers caps large estimates."""
    planner = WorkerPlanner(estimator=_Recording(500), diagnostics=collector)
    plan = planner.plan(_step(**{MAX_WORKERS_KEY: 64}))
    assert (plan.estimate, plan.workers, plan.capped) == (500, 64, True)


def test_absent_estimate_uses_default(collector: DiagnosticsCollector) -> None:
    """Ensure default_workers fills in for a missing estimate."""
    planner = WorkerPlanner(
        estimator=_Recording(None),
        settings=EstimatorConfigSpec(default_workers=3),
        diagnostics=collector,
    )
    plan = planner.plan(_step())
    assert (plan.workers, plan.source) == (3, "default")


def test_absent_estimate_keeps_explicit_when_overriding(collector: DiagnosticsCollector) -> None:
    """Ensure the explicit count survives a failed override attempt."""
    planner = WorkerPlanner(
        estimator=_Recording(None),
        settings=EstimatorConfigSpec(override_explicit=True),
        diagnostics=collector,
    )
    plan = planner.plan(_step(explicit=6))
    assert (plan.workers, plan.source) == (6, "explicit")


def test_absent_estimate_without_fallback(collector: DiagnosticsCollector) -> None:
    """Ensure the plan reports no workers when nothing applies."""
    planner = WorkerPlanner(estimator=_Recording(None), diagnostics=collector)
    plan = planner.plan(_step())
    assert (plan.workers, plan.source) == (None, "none")
    assert b'"workers": null' in dumps_json(plan, pretty=True)


def test_planner_settings_reach_estimators(collector: DiagnosticsCollector) -> None:
    """Ensure planner settings are merged under the step configuration."""
    estimator = _Recording(1)
    planner = WorkerPlanner(
        estimator=estimator,
        settings=EstimatorConfigSpec(bytes_per_worker=100),
        diagnostics=collector,
    )
    planner.plan(_step())
    planner.plan(_step(**{BYTES_PER_WORKER_KEY: 7}))
    assert [seen.config[BYTES_PER_WORKER_KEY] for seen in estimator.seen] == [100, 7]


def test_timeout_falls_back(collector: DiagnosticsCollector) -> None:
    """Ensure a slow estimator is abandoned after the timeout."""
    release = threading.Event()
    planner = WorkerPlanner(
        estimator=_Blocking(release),
        settings=EstimatorConfigSpec(timeout_s=0.05, default_workers=2),
        diagnostics=collector,
    )
    try:
        plan = planner.plan(_step())
    finally:
        release.set()
    assert (plan.workers, plan.source) == (2, "default")
    assert collector.last(ESTIMATE_TIMEOUT_EVENT) == {"step_key": "daily/rollup", "timeout_s": 0.05}


def test_fast_estimator_within_timeout(collector: DiagnosticsCollector) -> None:
    """Ensure estimates finishing in time are used."""
    planner = WorkerPlanner(
        estimator=_Recording(4),
        settings=EstimatorConfigSpec(timeout_s=5.0),
        diagnostics=collector,
    )
    assert planner.plan(_step()).workers == 4


def test_raising_estimator_falls_back(collector: DiagnosticsCollector) -> None:
    """Ensure an estimator that raises is treated as absent."""
    planner = WorkerPlanner(
        estimator=_Raising(),
        settings=EstimatorConfigSpec(default_workers=1),
        diagnostics=collector,
    )
    assert planner.plan(_step()).source == "default"
    failure = collector.last(ESTIMATOR_FAILED_EVENT)
    assert failure is not None
    assert failure["estimator"] == "raising"


@pytest.mark.parametrize("workers", [1, 3])
def test_plans_serialize_to_json(collector: DiagnosticsCollector, workers: int) -> None:
    """Ensure worker plans encode every field."""
    planner = WorkerPlanner(estimator=_Recording(workers), diagnostics=collector)
    payload = dumps_json(planner.plan(_step()))
    for key in (b"step_key", b"estimate", b"workers", b"source", b"capped"):
        assert key in payload


def test_abandoned_estimate_runs_on_daemon_thread(collector: DiagnosticsCollector) -> None:
    """Ensure a timed-out estimator thread cannot keep the process alive."""
    release = threading.Event()
    planner = WorkerPlanner(
        estimator=_Blocking(release),
        settings=EstimatorConfigSpec(timeout_s=0.05),
        diagnostics=collector,
    )
    try:
        plan = planner.plan(_step())
        pending = [
            thread
            for thread in threading.enumerate()
            if thread.name == "reducer-estimate-daily/rollup"
        ]
        assert pending
        assert all(thread.daemon for thread in pending)
    finally:
        release.set()
    assert plan.workers is None
    assert plan.source == "none"


class _FailingSink:
    def record_event(self, name: str, properties: object, *, level: int = 0) -> None:
        msg = f"sink offline: {name}"
        raise RuntimeError(msg)

    def record_events(self, name: str, rows: object) -> None:
        msg = f"sink offline: {name}"
        raise RuntimeError(msg)


def test_failing_sink_keeps_plan() -> None:
    """Ensure the plan is returned when the diagnostics sink raises."""
    planner = WorkerPlanner(estimator=_Recording(5), diagnostics=_FailingSink())
    assert planner.plan(_step()).workers == 5


def test_short_config_keys_reach_estimators(collector: DiagnosticsCollector) -> None:
    """Ensure ``bytesPerWorker`` in step config overrides the planner setting."""
    estimator = _Recording(1)
    planner = WorkerPlanner(
        estimator=estimator,
        settings=EstimatorConfigSpec(bytes_per_worker=100),
        diagnostics=collector,
    )
    planner.plan(_step(bytesPerWorker=7))
    assert estimator.seen[0].config[BYTES_PER_WORKER_KEY] == 7
    assert "bytesPerWorker" not in estimator.seen[0].config
