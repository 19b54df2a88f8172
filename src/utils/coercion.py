"""Canonical type coercion helpers for loosely-typed step configuration."""

from __future__ import annotations

import re
from collections.abc import Sequence

_TRUE_VALUES = frozenset({"true", "1", "yes", "on", "y"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off", "n", ""})

_BYTE_SIZE_RE = re.compile(r"^(?P<number>\d+)\s*(?P<unit>[kmgtp]?)(?P<suffix>i?b?)$", re.IGNORECASE)
_BYTE_UNITS = {"": 0, "k": 1, "m": 2, "g": 3, "t": 4, "p": 5}


def coerce_int(value: object, *, label: str = "value") -> int:
    """Coerce a value to ``int`` or raise ``TypeError``.

    Returns
    -------
    int
        Coerced integer value.

    Raises
    ------
    TypeError
        Raised when *value* cannot be coerced to ``int``.
    """
    if isinstance(value, bool):
        msg = f"{label}: refusing to coerce bool to int"
        raise TypeError(msg)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        raw = value.strip()
        if raw:
            try:
                return int(raw)
            except ValueError:
                pass
    msg = f"{label}: cannot coerce {type(value).__name__} to int"
    raise TypeError(msg)


def coerce_float(value: object, *, label: str = "value") -> float:
    """Coerce a value to ``float`` or raise ``TypeError``.

    Returns
    -------
    float
        Coerced float value.

    Raises
    ------
    TypeError
        Raised when *value* cannot be coerced to ``float``.
    """
    if isinstance(value, bool):
        msg = f"{label}: refusing to coerce bool to float"
        raise TypeError(msg)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        raw = value.strip()
        if raw:
            try:
                return float(raw)
            except ValueError:
                pass
    msg = f"{label}: cannot coerce {type(value).__name__} to float"
    raise TypeError(msg)


def coerce_byte_size(value: object, *, label: str = "value") -> int:
    """Coerce an integer or a size string such as ``"512MiB"`` to a byte count.

    Units are binary: ``k``, ``m``, ``g``, ``t`` and ``p`` are powers of 1024,
    with optional ``i``/``b`` suffixes (``"1g"``, ``"1GB"`` and ``"1GiB"`` are
    all ``1 << 30``).

    Returns
    -------
    int
        Byte count.

    Raises
    ------
    TypeError
        Raised when *value* is not a recognizable size.
    """
    if isinstance(value, str):
        match = _BYTE_SIZE_RE.match(value.strip())
        if match is not None:
            unit = match.group("unit").lower()
            return int(match.group("number")) << (10 * _BYTE_UNITS[unit])
    return coerce_int(value, label=label)


def coerce_bool(value: object, *, default: bool, label: str = "value") -> bool:
    """Coerce a value to ``bool`` with a default fallback for ``None``.

    Returns
    -------
    bool
        Coerced boolean value.

    Raises
    ------
    TypeError
        Raised when *value* cannot be coerced to ``bool``.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    msg = f"{label}: cannot coerce {type(value).__name__} to bool"
    raise TypeError(msg)


def coerce_str_tuple(value: object) -> tuple[str, ...]:
    """Coerce a sequence or comma-separated string to a tuple of names.

    Returns
    -------
    tuple[str, ...]
        Tuple containing normalized string items.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return tuple(str(item).strip() for item in value if item is not None and str(item).strip())
    return ()


__all__ = [
    "coerce_bool",
    "coerce_byte_size",
    "coerce_float",
    "coerce_int",
    "coerce_str_tuple",
]
