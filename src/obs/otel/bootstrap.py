"""Bootstrap OpenTelemetry providers for reducer estimation."""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass

from opentelemetry import metrics, trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import (
    BatchLogRecordProcessor,
    InMemoryLogRecordExporter,
    LogRecordExporter,
    SimpleLogRecordProcessor,
)
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    InMemoryMetricReader,
    MetricExporter,
    MetricReader,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor, SpanExporter
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from obs.otel.metrics import metric_views, reset_metrics_registry
from obs.otel.scope_metadata import instrumentation_version
from utils.env_utils import env_bool, env_text

_LOGGER = logging.getLogger(__name__)

_DEFAULT_SERVICE_NAME = "reducer-estimation"


@dataclass(frozen=True)
class OtelBootstrapOptions:
    """Optional overrides for bootstrap configuration."""

    enable_traces: bool | None = None
    enable_metrics: bool | None = None
    enable_logs: bool | None = None
    test_mode: bool | None = None


@dataclass(frozen=True)
class OtelProviders:
    """Container for configured OpenTelemetry providers."""

    resource: Resource
    tracer_provider: TracerProvider | None
    meter_provider: MeterProvider | None
    logger_provider: LoggerProvider | None
    span_exporter: InMemorySpanExporter | None = None
    log_exporter: InMemoryLogRecordExporter | None = None
    metric_reader: InMemoryMetricReader | None = None

    def activate_global(self) -> None:
        """Activate providers as global defaults."""
        if self.tracer_provider is not None:
            trace.set_tracer_provider(self.tracer_provider)
        if self.meter_provider is not None:
            metrics.set_meter_provider(self.meter_provider)
        if self.logger_provider is not None:
            set_logger_provider(self.logger_provider)

    def shutdown(self) -> None:
        """Shutdown all configured providers."""
        if self.tracer_provider is not None:
            self.tracer_provider.shutdown()
        if self.meter_provider is not None:
            self.meter_provider.shutdown()
        if self.logger_provider is not None:
            self.logger_provider.shutdown()


_STATE: dict[str, OtelProviders | None] = {"providers": None}


def _resolve_protocol(signal: str) -> str:
    protocol = env_text(f"OTEL_EXPORTER_OTLP_{signal.upper()}_PROTOCOL") or env_text(
        "OTEL_EXPORTER_OTLP_PROTOCOL"
    )
    return (protocol or "grpc").lower()


def _build_span_exporter() -> SpanExporter:
    if _resolve_protocol("traces").startswith("http"):
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

        return OTLPSpanExporter()
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

    return OTLPSpanExporter()


def _build_metric_exporter() -> MetricExporter:
    if _resolve_protocol("metrics").startswith("http"):
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter

        return OTLPMetricExporter()
    from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

    return OTLPMetricExporter()


def _build_log_exporter() -> LogRecordExporter:
    if _resolve_protocol("logs").startswith("http"):
        from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter

        return OTLPLogExporter()
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter

    return OTLPLogExporter()


def _install_logging_handler(logger_provider: LoggerProvider) -> None:
    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, LoggingHandler):
            return
    root.addHandler(LoggingHandler(logger_provider=logger_provider))


def _enabled(option: bool | None, env_name: str) -> bool:
    if option is not None:
        return option
    return env_bool(env_name, default=False)


def configure_otel(
    *,
    service_name: str | None = None,
    options: OtelBootstrapOptions | None = None,
) -> OtelProviders:
    """Configure OpenTelemetry providers for the current process.

    Signals are enabled by explicit options first, then by the
    ``REDUCER_ESTIMATION_ENABLE_{TRACES,METRICS,LOGS}`` environment variables.
    Test mode swaps the OTLP exporters for in-memory ones.

    Returns
    -------
    OtelProviders
        Configured providers for traces, metrics, and logs.
    """
    resolved = options or OtelBootstrapOptions()
    if resolved.test_mode and _STATE["providers"] is not None:
        _STATE["providers"].shutdown()
        _STATE["providers"] = None
    if _STATE["providers"] is not None:
        return _STATE["providers"]
    test_mode = _enabled(resolved.test_mode, "REDUCER_ESTIMATION_OTEL_TEST_MODE")
    name = service_name or env_text("OTEL_SERVICE_NAME") or _DEFAULT_SERVICE_NAME
    resource = Resource.create(
        {"service.name": name, "service.version": instrumentation_version()}
    )

    tracer_provider: TracerProvider | None = None
    span_exporter: InMemorySpanExporter | None = None
    if _enabled(resolved.enable_traces, "REDUCER_ESTIMATION_ENABLE_TRACES"):
        tracer_provider = TracerProvider(resource=resource)
        if test_mode:
            span_exporter = InMemorySpanExporter()
            tracer_provider.add_span_processor(SimpleSpanProcessor(span_exporter))
        else:
            tracer_provider.add_span_processor(BatchSpanProcessor(_build_span_exporter()))

    meter_provider: MeterProvider | None = None
    metric_reader: InMemoryMetricReader | None = None
    if _enabled(resolved.enable_metrics, "REDUCER_ESTIMATION_ENABLE_METRICS"):
        reader: MetricReader
        if test_mode:
            metric_reader = InMemoryMetricReader()
            reader = metric_reader
        else:
            reader = PeriodicExportingMetricReader(_build_metric_exporter())
        meter_provider = MeterProvider(
            resource=resource,
            metric_readers=[reader],
            views=metric_views(),
        )
        reset_metrics_registry()

    logger_provider: LoggerProvider | None = None
    log_exporter: InMemoryLogRecordExporter | None = None
    if _enabled(resolved.enable_logs, "REDUCER_ESTIMATION_ENABLE_LOGS"):
        logger_provider = LoggerProvider(resource=resource)
        if test_mode:
            log_exporter = InMemoryLogRecordExporter()
            logger_provider.add_log_record_processor(SimpleLogRecordProcessor(log_exporter))
        else:
            logger_provider.add_log_record_processor(
                BatchLogRecordProcessor(_build_log_exporter())
            )
        _install_logging_handler(logger_provider)

    providers = OtelProviders(
        resource=resource,
        tracer_provider=tracer_provider,
        meter_provider=meter_provider,
        logger_provider=logger_provider,
        span_exporter=span_exporter,
        log_exporter=log_exporter,
        metric_reader=metric_reader,
    )
    providers.activate_global()
    _STATE["providers"] = providers
    _LOGGER.info("OpenTelemetry configured for service %s", name)
    return providers


def reset_providers_for_tests() -> None:
    """Reset global providers for test isolation."""
    providers = _STATE["providers"]
    if providers is not None:
        providers.shutdown()
    _STATE["providers"] = None
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, LoggingHandler):
            root.removeHandler(handler)
    from opentelemetry._logs import _internal as logs_internal
    from opentelemetry.metrics import _internal as metrics_internal

    def _reset_once(holder: object | None) -> None:
        if holder is None:
            return
        with contextlib.suppress(AttributeError):
            holder._done = False

    def _reset_proxy_meter(proxy: object | None) -> None:
        if proxy is None:
            return
        with contextlib.suppress(AttributeError):
            proxy._real_meter_provider = None
        meters = getattr(proxy, "_meters", None)
        if hasattr(meters, "clear"):
            meters.clear()

    _reset_once(getattr(trace, "_TRACER_PROVIDER_SET_ONCE", None))
    _reset_once(getattr(metrics_internal, "_METER_PROVIDER_SET_ONCE", None))
    _reset_proxy_meter(getattr(metrics_internal, "_PROXY_METER_PROVIDER", None))
    _reset_once(getattr(logs_internal, "_LOGGER_PROVIDER_SET_ONCE", None))
    trace._TRACER_PROVIDER = None
    metrics_internal._METER_PROVIDER = None
    logs_internal._LOGGER_PROVIDER = None
    reset_metrics_registry()


__all__ = [
    "OtelBootstrapOptions",
    "OtelProviders",
    "configure_otel",
    "reset_providers_for_tests",
]
