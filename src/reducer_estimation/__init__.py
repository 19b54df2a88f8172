"""Worker-count estimation for the aggregation phase of job steps."""

from __future__ import annotations

from reducer_estimation.chain import FallbackEstimator, WorkerEstimator, build_estimator
from reducer_estimation.config import EstimatorConfigSpec, resolve_estimator_config
from reducer_estimation.direct import DirectSizeEstimator
from reducer_estimation.errors import HistoryLookupError
from reducer_estimation.history import (
    HistoricalRecord,
    HistoryLookup,
    InMemoryHistory,
    JsonLinesHistory,
)
from reducer_estimation.planner import WorkerPlan, WorkerPlanner
from reducer_estimation.ratio import RatioAdjustedEstimator
from reducer_estimation.resolver import SizeResolution, SourceSizeResolver
from reducer_estimation.sources import CompositeSource, GlobSource, InputSource, OpaqueSource
from reducer_estimation.step import JobStepInfo, StepIdentity

__all__ = [
    "CompositeSource",
    "DirectSizeEstimator",
    "EstimatorConfigSpec",
    "FallbackEstimator",
    "GlobSource",
    "HistoricalRecord",
    "HistoryLookup",
    "HistoryLookupError",
    "InMemoryHistory",
    "InputSource",
    "JobStepInfo",
    "JsonLinesHistory",
    "OpaqueSource",
    "RatioAdjustedEstimator",
    "SizeResolution",
    "SourceSizeResolver",
    "StepIdentity",
    "WorkerEstimator",
    "WorkerPlan",
    "WorkerPlanner",
    "build_estimator",
    "resolve_estimator_config",
]
