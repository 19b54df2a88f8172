"""Unified environment variable resolution utilities."""

from __future__ import annotations

import logging
import os
from typing import overload

from utils.coercion import coerce_byte_size

_LOGGER = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"1", "true", "yes", "y"})
_FALSE_VALUES = frozenset({"0", "false", "no", "n"})

# -----------------------------------------------------------------------------
# String Helpers
# -----------------------------------------------------------------------------


def env_value(name: str) -> str | None:
    """Return stripped env var value, or None if empty/not set.

    Parameters
    ----------
    name
        Environment variable name.

    Returns
    -------
    str | None
        Stripped value or None.
    """
    raw = os.environ.get(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped if stripped else None


def env_text(
    name: str,
    *,
    default: str | None = None,
    allow_empty: bool = False,
) -> str | None:
    """Return an environment variable string with optional normalization.

    Parameters
    ----------
    name
        Environment variable name.
    default
        Default value if not set or empty (unless allow_empty is True).
    allow_empty
        Whether to return empty strings instead of the default.

    Returns
    -------
    str | None
        Parsed value, or default/None when missing.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip()
    if not value and not allow_empty:
        return default
    return value


def env_list(
    name: str,
    *,
    default: list[str] | None = None,
    separator: str = ",",
) -> list[str]:
    """Parse environment variable as list of strings.

    Returns
    -------
    list[str]
        Parsed list or default.
    """
    raw = env_value(name)
    if raw is None:
        return default or []
    return [item.strip() for item in raw.split(separator) if item.strip()]


# -----------------------------------------------------------------------------
# Boolean Parsing
# -----------------------------------------------------------------------------


def env_bool(name: str, *, default: bool, log_invalid: bool = True) -> bool:
    """Parse environment variable as boolean.

    Parameters
    ----------
    name
        Environment variable name.
    default
        Default value if not set or invalid.
    log_invalid
        Whether to log invalid values.

    Returns
    -------
    bool
        Parsed boolean or default.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if not value:
        return default
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    if log_invalid:
        _LOGGER.warning("Invalid boolean for %s: %r", name, raw)
    return default


# -----------------------------------------------------------------------------
# Numeric Parsing
# -----------------------------------------------------------------------------


@overload
def env_int(name: str) -> int | None: ...


@overload
def env_int(name: str, *, default: int) -> int: ...


def env_int(name: str, *, default: int | None = None) -> int | None:
    """Parse environment variable as integer with error logging.

    Returns
    -------
    int | None
        Parsed integer or default/None.
    """
    raw = env_value(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        _LOGGER.warning("Invalid integer for %s: %r", name, raw)
        return default


@overload
def env_float(name: str) -> float | None: ...


@overload
def env_float(name: str, *, default: float) -> float: ...


def env_float(name: str, *, default: float | None = None) -> float | None:
    """Parse environment variable as float with error logging.

    Returns
    -------
    float | None
        Parsed float or default/None.
    """
    raw = env_value(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        _LOGGER.warning("Invalid float for %s: %r", name, raw)
        return default


def env_byte_size(name: str) -> int | None:
    """Parse environment variable as a byte size (``"2GiB"``, ``"1048576"``).

    Returns
    -------
    int | None
        Parsed byte count, or None when unset or invalid.
    """
    raw = env_value(name)
    if raw is None:
        return None
    try:
        return coerce_byte_size(raw, label=name)
    except TypeError:
        _LOGGER.warning("Invalid byte size for %s: %r", name, raw)
        return None


__all__ = [
    "env_bool",
    "env_byte_size",
    "env_float",
    "env_int",
    "env_list",
    "env_text",
    "env_value",
]
