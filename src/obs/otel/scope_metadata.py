"""Instrumentation scope metadata resolution for OpenTelemetry."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from utils.env_utils import env_value

_SCHEMA_URL_ENV = "REDUCER_ESTIMATION_OTEL_SCHEMA_URL"
_ALT_SCHEMA_URL_ENV = "OTEL_SCHEMA_URL"


def _resolve_instrumentation_version() -> str | None:
    env_version = env_value("REDUCER_ESTIMATION_SERVICE_VERSION")
    if env_version is not None:
        return env_version
    try:
        return version("reducer-estimation")
    except PackageNotFoundError:
        return None


_INSTRUMENTATION_VERSION = _resolve_instrumentation_version()
_SCHEMA_URL = env_value(_SCHEMA_URL_ENV) or env_value(_ALT_SCHEMA_URL_ENV)


def instrumentation_version() -> str:
    """Return the resolved instrumentation version.

    Returns
    -------
    str
        Instrumentation version, or ``"unknown"`` when not installed.
    """
    return _INSTRUMENTATION_VERSION or "unknown"


def instrumentation_schema_url() -> str | None:
    """Return the resolved schema URL, if configured.

    Returns
    -------
    str | None
        Schema URL if configured.
    """
    return _SCHEMA_URL


__all__ = ["instrumentation_schema_url", "instrumentation_version"]
