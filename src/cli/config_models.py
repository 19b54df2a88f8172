"""Typed configuration file models for the reducer-estimation CLI."""

from __future__ import annotations

import msgspec

from reducer_estimation.config import EstimatorConfigSpec
from serde_msgspec import StructBaseStrict


class RootConfigSpec(StructBaseStrict, frozen=True):
    """Root configuration payload of ``reducer-estimation.toml``."""

    estimator: EstimatorConfigSpec = msgspec.field(default_factory=EstimatorConfigSpec)


__all__ = ["RootConfigSpec"]
