"""Shared type aliases and small typing helpers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Annotated

from msgspec import Meta

type PathLike = str | Path

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | Mapping[str, JsonValue] | Sequence[JsonValue]

PositiveInt = Annotated[int, Meta(gt=0)]
NonNegativeInt = Annotated[int, Meta(ge=0)]
PositiveFloat = Annotated[float, Meta(gt=0)]

# Fraction of the historical input size a run may drift by; the upper bound is
# the reciprocal, so the value must sit in (0, 1].
RatioThreshold = Annotated[float, Meta(gt=0, le=1)]


__all__ = [
    "JsonPrimitive",
    "JsonValue",
    "NonNegativeInt",
    "PathLike",
    "PositiveFloat",
    "PositiveInt",
    "RatioThreshold",
]
