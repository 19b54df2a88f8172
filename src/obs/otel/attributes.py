"""Normalize OpenTelemetry attributes for estimation telemetry."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import cast

from opentelemetry.util.types import AttributeValue

from utils.env_utils import env_int

_MAX_ATTRIBUTES = env_int("OTEL_ATTRIBUTE_COUNT_LIMIT")
_MAX_ATTRIBUTE_LENGTH = env_int("OTEL_ATTRIBUTE_VALUE_LENGTH_LIMIT")
_MAX_LOGRECORD_ATTRIBUTES = env_int("OTEL_LOGRECORD_ATTRIBUTE_COUNT_LIMIT")
_MAX_LOGRECORD_ATTRIBUTE_LENGTH = env_int("OTEL_LOGRECORD_ATTRIBUTE_VALUE_LENGTH_LIMIT")


def _is_scalar(value: object) -> bool:
    return isinstance(value, (str, bool, int, float))


def _truncate_str(value: str, *, value_length_limit: int | None) -> str:
    if value_length_limit is None:
        return value
    if value_length_limit <= 0:
        return ""
    return value[:value_length_limit]


def _normalize_sequence(
    values: Sequence[object], *, value_length_limit: int | None
) -> AttributeValue:
    normalized = [item for item in values if item is not None]
    if not normalized:
        return []
    if all(isinstance(item, bool) for item in normalized):
        return [bool(item) for item in normalized]
    if all(isinstance(item, int) and not isinstance(item, bool) for item in normalized):
        return [cast("int", item) for item in normalized]
    if all(isinstance(item, (int, float)) and not isinstance(item, bool) for item in normalized):
        return [float(cast("int | float", item)) for item in normalized]
    return [_truncate_str(str(item), value_length_limit=value_length_limit) for item in normalized]


def _normalize_value(value: object, *, value_length_limit: int | None) -> AttributeValue:
    if _is_scalar(value):
        if isinstance(value, str):
            return _truncate_str(value, value_length_limit=value_length_limit)
        return cast("AttributeValue", value)
    if isinstance(value, Mapping):
        return _truncate_str(
            json.dumps(value, sort_keys=True, default=str),
            value_length_limit=value_length_limit,
        )
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray, memoryview)):
        return _normalize_sequence(list(value), value_length_limit=value_length_limit)
    return _truncate_str(str(value), value_length_limit=value_length_limit)


def _normalize_attributes(
    attrs: Mapping[str, object] | None,
    *,
    count_limit: int | None,
    value_length_limit: int | None,
) -> dict[str, AttributeValue]:
    if not attrs:
        return {}
    normalized: dict[str, AttributeValue] = {
        str(key): _normalize_value(value, value_length_limit=value_length_limit)
        for key, value in attrs.items()
        if value is not None
    }
    if count_limit is None or len(normalized) <= count_limit:
        return normalized
    if count_limit <= 0:
        return {}
    return {key: normalized[key] for key in sorted(normalized)[:count_limit]}


def normalize_attributes(attrs: Mapping[str, object] | None) -> dict[str, AttributeValue]:
    """Normalize attributes for spans/metrics.

    Returns
    -------
    dict[str, AttributeValue]
        Normalized attribute mapping with OpenTelemetry-safe values.
    """
    return _normalize_attributes(
        attrs,
        count_limit=_MAX_ATTRIBUTES,
        value_length_limit=_MAX_ATTRIBUTE_LENGTH,
    )


def normalize_log_attributes(attrs: Mapping[str, object] | None) -> dict[str, AttributeValue]:
    """Normalize attributes for log records with log-record limits.

    Returns
    -------
    dict[str, AttributeValue]
        Normalized attribute mapping with OpenTelemetry-safe values.
    """
    count_limit = _MAX_LOGRECORD_ATTRIBUTES
    if count_limit is None:
        count_limit = _MAX_ATTRIBUTES
    value_length_limit = _MAX_LOGRECORD_ATTRIBUTE_LENGTH
    if value_length_limit is None:
        value_length_limit = _MAX_ATTRIBUTE_LENGTH
    return _normalize_attributes(
        attrs,
        count_limit=count_limit,
        value_length_limit=value_length_limit,
    )


__all__ = ["normalize_attributes", "normalize_log_attributes"]
