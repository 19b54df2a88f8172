"""Tests for estimator chains."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest

from obs.diagnostics import DiagnosticsCollector
from reducer_estimation.chain import FallbackEstimator, build_estimator, estimator_name
from reducer_estimation.direct import DirectSizeEstimator
from reducer_estimation.history import HistoricalRecord, InMemoryHistory
from reducer_estimation.ratio import RatioAdjustedEstimator
from reducer_estimation.resolver import SourceSizeResolver
from reducer_estimation.sources import GlobSource
from reducer_estimation.step import JobStepInfo, StepIdentity

if TYPE_CHECKING:
    from conftest import FakeFileSystemMetadata

_IDENTITY = StepIdentity(job_name="daily", step_name="rollup")
_STEP = JobStepInfo(identity=_IDENTITY, inputs=GlobSource(pattern="/in/*"))


@dataclass(frozen=True)
class _Fixed:
    value: int | None
    name: str = "fixed"

    def estimate(self, step: JobStepInfo) -> int | None:
        return self.value


def test_first_present_estimate_wins() -> None:
    """Ensure the chain stops at the first present estimate."""
    chain = FallbackEstimator(
        estimators=(_Fixed(None, "a"), _Fixed(4, "b"), _Fixed(9, "c"))
    )
    assert chain.estimate(_STEP) == 4
    assert chain.estimate_with_source(_STEP) == (4, "b")


def test_all_absent_is_absent() -> None:
    """Ensure an exhausted chain reports no estimate."""
    chain = FallbackEstimator(estimators=(_Fixed(None),))
    assert chain.estimate_with_source(_STEP) == (None, None)


def test_build_estimator_orders_by_name(
    resolver: SourceSizeResolver,
    history: InMemoryHistory,
    collector: DiagnosticsCollector,
) -> None:
    """Ensure named estimators are built in the requested order."""
    chain = build_estimator(
        ["ratio", "Direct"], resolver=resolver, history=history, diagnostics=collector
    )
    assert [type(item) for item in chain.estimators] == [
        RatioAdjustedEstimator,
        DirectSizeEstimator,
    ]
    assert [estimator_name(item) for item in chain.estimators] == ["ratio", "direct"]


def test_ratio_without_history_is_skipped(resolver: SourceSizeResolver) -> None:
    """Ensure the ratio estimator is dropped when no history is available."""
    chain = build_estimator(["ratio", "direct"], resolver=resolver)
    assert [estimator_name(item) for item in chain.estimators] == ["direct"]
    with pytest.raises(ValueError, match="No usable estimator"):
        build_estimator(["ratio"], resolver=resolver)


def test_unknown_estimator_is_rejected(resolver: SourceSizeResolver) -> None:
    """Ensure unknown estimator names raise ValueError."""
    with pytest.raises(ValueError, match="Unknown estimator"):
        build_estimator(["magic"], resolver=resolver)


def test_chain_falls_back_from_ratio_to_direct(
    metadata: FakeFileSystemMetadata,
    resolver: SourceSizeResolver,
    history: InMemoryHistory,
    collector: DiagnosticsCollector,
) -> None:
    """Ensure a rejected history falls back to the direct estimate."""
    metadata.files["/in/part-0"] = 3 << 30
    history.add(_IDENTITY, HistoricalRecord(mapper_bytes=1, reducer_bytes=1))
    chain = build_estimator(
        ["ratio", "direct"], resolver=resolver, history=history, diagnostics=collector
    )
    assert chain.estimate_with_source(_STEP) == (3, "direct")
