"""Config loading helpers for the CLI."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import cast

import msgspec

from cli.config_models import RootConfigSpec
from core_types import JsonValue
from reducer_estimation.config import EstimatorConfigSpec, apply_env_overrides
from serde_msgspec import convert, validation_error_payload
from utils.coercion import coerce_byte_size

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "reducer-estimation.toml"
PYPROJECT_FILENAME = "pyproject.toml"
TOOL_KEY = "reducer-estimation"


def load_estimator_config(config_file: str | Path | None = None) -> EstimatorConfigSpec:
    """Load estimator settings from a config file and the environment.

    With no explicit file, ``reducer-estimation.toml`` is searched from the
    current directory upwards, then ``[tool.reducer-estimation]`` in the
    nearest ``pyproject.toml``. Environment overrides are applied last.

    Parameters
    ----------
    config_file
        Optional explicit config file path.

    Returns
    -------
    EstimatorConfigSpec
        Effective estimator settings.

    Raises
    ------
    ValueError
        Raised when an explicit config file does not exist.
    """
    if config_file is not None:
        path = Path(config_file)
        if not path.exists():
            msg = f"Config file not found: {str(path)!r}."
            raise ValueError(msg)
        raw, location = _resolve_explicit_payload(path)
        explicit = _decode_root_config(raw, location=location)
        return apply_env_overrides(explicit.estimator)

    root: RootConfigSpec | None = None
    config_path = _find_in_parents(CONFIG_FILENAME)
    if config_path is not None:
        root = _decode_root_config(_read_toml(config_path), location=str(config_path))
    else:
        pyproject_path = _find_in_parents(PYPROJECT_FILENAME)
        if pyproject_path is not None:
            nested = _extract_tool_config(_read_toml(pyproject_path))
            if nested is not None:
                root = _decode_root_config(nested, location=f"{pyproject_path}:tool.{TOOL_KEY}")
    if root is not None:
        logger.debug("Loaded estimator config %s", root.estimator)
    resolved = root or RootConfigSpec()
    return apply_env_overrides(resolved.estimator)


def _find_in_parents(filename: str) -> Path | None:
    """Walk parents from cwd to find a filename.

    Returns
    -------
    Path | None
        Path to the first matching file in the current directory or parents.
    """
    path = Path.cwd()
    while True:
        candidate = path / filename
        if candidate.exists():
            return candidate
        if path.parent == path:
            return None
        path = path.parent


def _read_toml(path: Path) -> dict[str, JsonValue]:
    try:
        payload = msgspec.toml.decode(path.read_text(encoding="utf-8"), type=object, strict=True)
    except msgspec.DecodeError as exc:
        msg = f"Malformed TOML in {path}: {exc}"
        raise ValueError(msg) from exc
    if not isinstance(payload, dict):
        msg = f"Expected TOML mapping in {path}, got {type(payload).__name__}."
        raise TypeError(msg)
    return cast("dict[str, JsonValue]", payload)


def _decode_root_config(raw: Mapping[str, JsonValue], *, location: str) -> RootConfigSpec:
    payload = _normalize_sizes(raw, location=location)
    try:
        return convert(payload, target_type=RootConfigSpec)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Config validation failed for {location}: {details}"
        raise ValueError(msg) from exc


def _normalize_sizes(raw: Mapping[str, JsonValue], *, location: str) -> dict[str, JsonValue]:
    """Convert a human-readable ``bytes_per_worker`` (``"512MiB"``) to an int.

    Returns
    -------
    dict[str, JsonValue]
        Payload ready for strict conversion.
    """
    payload = dict(raw)
    estimator = payload.get("estimator")
    if not isinstance(estimator, Mapping):
        return payload
    size = estimator.get("bytes_per_worker")
    if not isinstance(size, str):
        return payload
    try:
        converted = coerce_byte_size(size, label="bytes_per_worker")
    except TypeError as exc:
        msg = f"Config validation failed for {location}: {exc}"
        raise ValueError(msg) from exc
    payload["estimator"] = {**estimator, "bytes_per_worker": converted}
    return payload


def _resolve_explicit_payload(path: Path) -> tuple[Mapping[str, JsonValue], str]:
    raw = _read_toml(path)
    if path.name == PYPROJECT_FILENAME:
        nested = _extract_tool_config(raw)
        if nested is None:
            msg = f"Config validation failed for {path}: missing [tool.{TOOL_KEY}] section."
            raise ValueError(msg)
        return nested, f"{path}:tool.{TOOL_KEY}"
    return raw, str(path)


def _extract_tool_config(raw: Mapping[str, JsonValue]) -> dict[str, JsonValue] | None:
    tool_section = raw.get("tool")
    if not isinstance(tool_section, dict):
        return None
    nested = tool_section.get(TOOL_KEY)
    if not isinstance(nested, dict):
        return None
    return cast("dict[str, JsonValue]", nested)


__all__ = ["CONFIG_FILENAME", "load_estimator_config"]
