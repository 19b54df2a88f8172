"""Metrics catalog and helpers for reducer estimation telemetry."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from opentelemetry import metrics
from opentelemetry.sdk.metrics.view import ExplicitBucketHistogramAggregation, View

from obs.otel.attributes import normalize_attributes
from obs.otel.constants import AttributeName, MetricName
from obs.otel.run_context import get_run_id
from obs.otel.scope_metadata import instrumentation_schema_url, instrumentation_version
from obs.otel.scopes import SCOPE_PLANNING

_DEFAULT_BUCKETS_S = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
)

_WORKER_BUCKETS = (1.0, 2.0, 4.0, 8.0, 16.0, 32.0, 64.0, 128.0, 256.0, 512.0, 1024.0, 4096.0)


@dataclass
class MetricsRegistry:
    """Registry for reducer estimation metric instruments."""

    estimate_count: metrics.Counter
    estimate_workers: metrics.Histogram
    estimate_duration: metrics.Histogram
    stage_duration: metrics.Histogram


_REGISTRY_CACHE: dict[str, MetricsRegistry | None] = {"value": None}


def _meter() -> metrics.Meter:
    return metrics.get_meter(
        SCOPE_PLANNING,
        instrumentation_version(),
        schema_url=instrumentation_schema_url(),
    )


def _with_run_id(payload: dict[str, object]) -> dict[str, object]:
    run_id = get_run_id()
    if run_id:
        payload[AttributeName.RUN_ID] = run_id
    return payload


def metric_views() -> list[View]:
    """Return default metric Views for the OTel MeterProvider.

    Returns
    -------
    list[View]
        Configured metric views for estimation instruments.
    """
    duration = ExplicitBucketHistogramAggregation(list(_DEFAULT_BUCKETS_S))
    workers = ExplicitBucketHistogramAggregation(list(_WORKER_BUCKETS))
    return [
        View(
            instrument_name=MetricName.ESTIMATE_DURATION,
            aggregation=duration,
            attribute_keys={AttributeName.RUN_ID, AttributeName.PLAN_SOURCE},
        ),
        View(
            instrument_name=MetricName.STAGE_DURATION,
            aggregation=duration,
            attribute_keys={AttributeName.RUN_ID, AttributeName.STAGE, AttributeName.STATUS},
        ),
        View(
            instrument_name=MetricName.ESTIMATE_WORKERS,
            aggregation=workers,
            attribute_keys={AttributeName.RUN_ID, AttributeName.PLAN_SOURCE, AttributeName.CAPPED},
        ),
        View(
            instrument_name=MetricName.ESTIMATE_COUNT,
            attribute_keys={AttributeName.RUN_ID, AttributeName.PLAN_SOURCE},
        ),
    ]


def reset_metrics_registry() -> None:
    """Reset cached metric instruments so they can be re-created."""
    _REGISTRY_CACHE["value"] = None


def _registry() -> MetricsRegistry:
    cached = _REGISTRY_CACHE["value"]
    if cached is not None:
        return cached
    meter = _meter()
    registry = MetricsRegistry(
        estimate_count=meter.create_counter(
            MetricName.ESTIMATE_COUNT,
            unit="1",
            description="Worker-count planning decisions, by plan source.",
        ),
        estimate_workers=meter.create_histogram(
            MetricName.ESTIMATE_WORKERS,
            unit="1",
            description="Planned worker counts.",
        ),
        estimate_duration=meter.create_histogram(
            MetricName.ESTIMATE_DURATION,
            unit="s",
            description="Worker-count estimation duration (seconds).",
        ),
        stage_duration=meter.create_histogram(
            MetricName.STAGE_DURATION,
            unit="s",
            description="Stage execution duration (seconds).",
        ),
    )
    _REGISTRY_CACHE["value"] = registry
    return registry


def record_worker_plan(
    *,
    source: str,
    workers: int | None,
    capped: bool,
    duration_s: float,
) -> None:
    """Record counter, worker and latency metrics for one planning decision."""
    registry = _registry()
    payload = normalize_attributes(_with_run_id({AttributeName.PLAN_SOURCE: source}))
    registry.estimate_count.add(1, payload)
    registry.estimate_duration.record(duration_s, payload)
    if workers is not None:
        worker_attrs = normalize_attributes(
            _with_run_id({AttributeName.PLAN_SOURCE: source, AttributeName.CAPPED: capped})
        )
        registry.estimate_workers.record(workers, worker_attrs)


def record_stage_duration(
    stage: str,
    duration_s: float,
    *,
    status: str,
    attributes: Mapping[str, object] | None = None,
) -> None:
    """Record a stage duration histogram value."""
    registry = _registry()
    payload: dict[str, object] = {AttributeName.STAGE: stage, AttributeName.STATUS: status}
    if attributes:
        payload.update(attributes)
    registry.stage_duration.record(duration_s, normalize_attributes(_with_run_id(payload)))


__all__ = [
    "MetricsRegistry",
    "metric_views",
    "record_stage_duration",
    "record_worker_plan",
    "reset_metrics_registry",
]
