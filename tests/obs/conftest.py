"""OpenTelemetry fixtures backed by in-memory exporters."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from obs.otel.bootstrap import (
    OtelBootstrapOptions,
    OtelProviders,
    configure_otel,
    reset_providers_for_tests,
)


@pytest.fixture
def otel_harness() -> Iterator[OtelProviders]:
    """Configure in-memory OpenTelemetry providers for one test.

    Yields
    ------
    OtelProviders
        Providers exposing the in-memory span, log and metric exporters.
    """
    reset_providers_for_tests()
    providers = configure_otel(
        service_name="reducer-estimation-tests",
        options=OtelBootstrapOptions(
            enable_traces=True,
            enable_metrics=True,
            enable_logs=True,
            test_mode=True,
        ),
    )
    yield providers
    reset_providers_for_tests()
