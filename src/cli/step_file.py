"""Step description files consumed by ``reducer-estimation estimate``."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import msgspec

from core_types import PositiveInt
from reducer_estimation.sources import InputSource
from reducer_estimation.step import JobStepInfo, StepIdentity
from serde_msgspec import StructBaseStrict, loads_json, validation_error_payload


class StepSpec(StructBaseStrict, frozen=True):
    """On-disk description of one job step."""

    job_name: str
    step_name: str
    inputs: InputSource
    signature: str | None = None
    explicit_workers: PositiveInt | None = None
    config: dict[str, object] = msgspec.field(default_factory=dict)

    def to_step(self) -> JobStepInfo:
        """Return the runtime step descriptor.

        Returns
        -------
        JobStepInfo
            Step with nested config tables flattened to dotted keys.
        """
        return JobStepInfo(
            identity=StepIdentity(
                job_name=self.job_name,
                step_name=self.step_name,
                signature=self.signature,
            ),
            inputs=self.inputs,
            config=flatten_config(self.config),
            explicit_workers=self.explicit_workers,
        )


def flatten_config(config: Mapping[str, object], *, prefix: str = "") -> dict[str, object]:
    """Flatten nested tables into dotted keys.

    ``{"estimator": {"bytes_per_worker": 1}}`` becomes
    ``{"estimator.bytes_per_worker": 1}``; keys that already contain dots are
    kept as written.

    Returns
    -------
    dict[str, object]
        Flat configuration mapping.
    """
    flat: dict[str, object] = {}
    for key, value in config.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten_config(value, prefix=f"{name}."))
            continue
        flat[name] = value
    return flat


def load_step_file(path: Path) -> JobStepInfo:
    """Decode a TOML or JSON step file.

    Returns
    -------
    JobStepInfo
        Decoded step descriptor.

    Raises
    ------
    ValueError
        Raised when the file is malformed or fails validation.
    """
    payload = path.read_bytes()
    try:
        if path.suffix == ".json":
            spec = loads_json(payload, target_type=StepSpec)
        else:
            spec = msgspec.toml.decode(payload, type=StepSpec, strict=True)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Step file validation failed for {path}: {details}"
        raise ValueError(msg) from exc
    except msgspec.DecodeError as exc:
        msg = f"Malformed step file {path}: {exc}"
        raise ValueError(msg) from exc
    return spec.to_step()


__all__ = ["StepSpec", "flatten_config", "load_step_file"]
