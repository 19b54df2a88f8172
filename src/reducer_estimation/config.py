"""Estimator tunables read from step configuration.

Step configuration is a flat mapping of dotted keys. Values are loosely typed
(they may come from TOML, JSON, or the environment), so readers here coerce
tolerantly and fall back to defaults with a warning instead of raising.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from fractions import Fraction

import msgspec

from core_types import PositiveFloat, PositiveInt, RatioThreshold
from serde_msgspec import StructBaseStrict
from utils.coercion import coerce_bool, coerce_byte_size, coerce_float, coerce_int, coerce_str_tuple
from utils.env_utils import env_byte_size, env_float

_LOGGER = logging.getLogger(__name__)

BYTES_PER_WORKER_KEY = "estimator.bytes_per_worker"
HISTORY_RATIO_THRESHOLD_KEY = "estimator.history_ratio_threshold"
MAX_WORKERS_KEY = "estimator.max_workers"
DEFAULT_WORKERS_KEY = "estimator.default_workers"
ESTIMATORS_KEY = "estimator.estimators"
OVERRIDE_EXPLICIT_KEY = "estimator.override_explicit"
TIMEOUT_KEY = "estimator.timeout_s"

BYTES_PER_WORKER_ALIAS = "bytesPerWorker"
HISTORY_RATIO_THRESHOLD_ALIAS = "historyRatioThreshold"
_KEY_ALIASES = {
    BYTES_PER_WORKER_ALIAS: BYTES_PER_WORKER_KEY,
    HISTORY_RATIO_THRESHOLD_ALIAS: HISTORY_RATIO_THRESHOLD_KEY,
}

DEFAULT_BYTES_PER_WORKER = 1 << 30
DEFAULT_HISTORY_RATIO_THRESHOLD = 0.10
DEFAULT_ESTIMATORS = ("ratio", "direct")

BYTES_PER_WORKER_ENV = "REDUCER_ESTIMATION_BYTES_PER_WORKER"
HISTORY_RATIO_THRESHOLD_ENV = "REDUCER_ESTIMATION_HISTORY_RATIO_THRESHOLD"


class EstimatorConfigSpec(StructBaseStrict, frozen=True):
    """Estimator settings as loaded from a config file."""

    bytes_per_worker: PositiveInt = DEFAULT_BYTES_PER_WORKER
    history_ratio_threshold: RatioThreshold = DEFAULT_HISTORY_RATIO_THRESHOLD
    max_workers: PositiveInt | None = None
    default_workers: PositiveInt | None = None
    estimators: tuple[str, ...] = DEFAULT_ESTIMATORS
    override_explicit: bool = False
    timeout_s: PositiveFloat | None = None

    def as_step_config(self) -> dict[str, object]:
        """Render settings as dotted step-configuration keys.

        Returns
        -------
        dict[str, object]
            Mapping suitable for ``JobStepInfo.config``; unset optional values
            are left out.
        """
        payload: dict[str, object] = {
            BYTES_PER_WORKER_KEY: self.bytes_per_worker,
            HISTORY_RATIO_THRESHOLD_KEY: self.history_ratio_threshold,
            ESTIMATORS_KEY: list(self.estimators),
            OVERRIDE_EXPLICIT_KEY: self.override_explicit,
        }
        if self.max_workers is not None:
            payload[MAX_WORKERS_KEY] = self.max_workers
        if self.default_workers is not None:
            payload[DEFAULT_WORKERS_KEY] = self.default_workers
        if self.timeout_s is not None:
            payload[TIMEOUT_KEY] = self.timeout_s
        return payload


def canonical_config(config: Mapping[str, object]) -> dict[str, object]:
    """Rewrite short key names (``bytesPerWorker``) to their dotted form.

    When both spellings are present the dotted key wins.

    Returns
    -------
    dict[str, object]
        Copy of ``config`` using dotted keys only.
    """
    canonical = dict(config)
    for alias, key in _KEY_ALIASES.items():
        if alias in canonical:
            canonical.setdefault(key, canonical.pop(alias))
    return canonical


def _read[T](
    config: Mapping[str, object],
    key: str,
    *,
    coerce: Callable[[object], T],
    valid: Callable[[T], bool],
    default: T,
) -> T:
    raw = config.get(key)
    if raw is None:
        return default
    try:
        value = coerce(raw)
    except (TypeError, ValueError):
        _LOGGER.warning("Invalid value for %s: %r; using %r", key, raw, default)
        return default
    if not valid(value):
        _LOGGER.warning("Out-of-range value for %s: %r; using %r", key, raw, default)
        return default
    return value


def bytes_per_worker(config: Mapping[str, object]) -> int:
    """Return the per-worker byte target of a step configuration.

    Returns
    -------
    int
        Positive byte count, ``1 << 30`` when unset or invalid.
    """
    return _read(
        canonical_config(config),
        BYTES_PER_WORKER_KEY,
        coerce=lambda raw: coerce_byte_size(raw, label=BYTES_PER_WORKER_KEY),
        valid=lambda value: value > 0,
        default=DEFAULT_BYTES_PER_WORKER,
    )


def history_ratio_threshold(config: Mapping[str, object]) -> float:
    """Return the history comparability threshold of a step configuration.

    Returns
    -------
    float
        Threshold in ``(0, 1]``, ``0.10`` when unset or invalid.
    """
    return _read(
        canonical_config(config),
        HISTORY_RATIO_THRESHOLD_KEY,
        coerce=lambda raw: coerce_float(raw, label=HISTORY_RATIO_THRESHOLD_KEY),
        valid=lambda value: 0 < value <= 1,
        default=DEFAULT_HISTORY_RATIO_THRESHOLD,
    )


def threshold_fraction(threshold: float) -> Fraction:
    """Return the exact decimal value of a threshold.

    ``Fraction(0.1)`` is the binary approximation of 0.1, which would reject a
    ratio of exactly one tenth; going through ``repr`` keeps the decimal the
    user wrote.

    Returns
    -------
    Fraction
        Exact rational threshold.
    """
    return Fraction(repr(threshold))


def _optional_positive_int(config: Mapping[str, object], key: str) -> int | None:
    return _read(
        config,
        key,
        coerce=lambda raw: coerce_int(raw, label=key),
        valid=lambda value: value > 0,
        default=None,
    )


def resolve_estimator_config(
    config: Mapping[str, object],
    *,
    base: EstimatorConfigSpec | None = None,
) -> EstimatorConfigSpec:
    """Resolve estimator settings from dotted step-configuration keys.

    Parameters
    ----------
    config
        Step configuration mapping.
    base
        Settings used for keys the mapping does not set.

    Returns
    -------
    EstimatorConfigSpec
        Resolved settings.
    """
    resolved = base or EstimatorConfigSpec()
    merged = {**resolved.as_step_config(), **canonical_config(config)}
    estimators = coerce_str_tuple(merged.get(ESTIMATORS_KEY)) or resolved.estimators
    timeout = _read(
        merged,
        TIMEOUT_KEY,
        coerce=lambda raw: coerce_float(raw, label=TIMEOUT_KEY),
        valid=lambda value: value > 0,
        default=None,
    )
    return EstimatorConfigSpec(
        bytes_per_worker=bytes_per_worker(merged),
        history_ratio_threshold=history_ratio_threshold(merged),
        max_workers=_optional_positive_int(merged, MAX_WORKERS_KEY),
        default_workers=_optional_positive_int(merged, DEFAULT_WORKERS_KEY),
        estimators=estimators,
        override_explicit=_read(
            merged,
            OVERRIDE_EXPLICIT_KEY,
            coerce=lambda raw: coerce_bool(raw, default=False, label=OVERRIDE_EXPLICIT_KEY),
            valid=lambda _value: True,
            default=resolved.override_explicit,
        ),
        timeout_s=timeout,
    )


def apply_env_overrides(spec: EstimatorConfigSpec) -> EstimatorConfigSpec:
    """Apply ``REDUCER_ESTIMATION_*`` environment overrides to settings.

    Returns
    -------
    EstimatorConfigSpec
        Settings with valid environment values applied.
    """
    updates: dict[str, object] = {}
    size = env_byte_size(BYTES_PER_WORKER_ENV)
    if size is not None:
        if size > 0:
            updates["bytes_per_worker"] = size
        else:
            _LOGGER.warning("Ignoring non-positive %s=%d", BYTES_PER_WORKER_ENV, size)
    threshold = env_float(HISTORY_RATIO_THRESHOLD_ENV)
    if threshold is not None:
        if 0 < threshold <= 1:
            updates["history_ratio_threshold"] = threshold
        else:
            _LOGGER.warning("Ignoring out-of-range %s=%r", HISTORY_RATIO_THRESHOLD_ENV, threshold)
    if not updates:
        return spec
    return msgspec.structs.replace(spec, **updates)


__all__ = [
    "BYTES_PER_WORKER_ALIAS",
    "BYTES_PER_WORKER_ENV",
    "BYTES_PER_WORKER_KEY",
    "DEFAULT_BYTES_PER_WORKER",
    "DEFAULT_ESTIMATORS",
    "DEFAULT_HISTORY_RATIO_THRESHOLD",
    "DEFAULT_WORKERS_KEY",
    "ESTIMATORS_KEY",
    "HISTORY_RATIO_THRESHOLD_ALIAS",
    "HISTORY_RATIO_THRESHOLD_ENV",
    "HISTORY_RATIO_THRESHOLD_KEY",
    "MAX_WORKERS_KEY",
    "OVERRIDE_EXPLICIT_KEY",
    "TIMEOUT_KEY",
    "EstimatorConfigSpec",
    "apply_env_overrides",
    "bytes_per_worker",
    "canonical_config",
    "history_ratio_threshold",
    "resolve_estimator_config",
    "threshold_fraction",
]
