"""Fixtures for CLI command tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from obs.otel.bootstrap import reset_providers_for_tests

_ENV_VARS = (
    "REDUCER_ESTIMATION_BYTES_PER_WORKER",
    "REDUCER_ESTIMATION_HISTORY_RATIO_THRESHOLD",
    "REDUCER_ESTIMATION_HISTORY",
    "REDUCER_ESTIMATION_LOG_LEVEL",
    "REDUCER_ESTIMATION_ENABLE_TRACES",
    "REDUCER_ESTIMATION_ENABLE_METRICS",
    "REDUCER_ESTIMATION_ENABLE_LOGS",
)


@pytest.fixture(autouse=True)
def _isolated_cli(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Run each CLI test from an empty directory with a pristine root logger.

    Yields
    ------
    None
        Control returns to the test.
    """
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    reset_providers_for_tests()
    yield
    reset_providers_for_tests()
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def inputs_dir(tmp_path: Path) -> Callable[[dict[str, int]], Path]:
    """Provide a factory creating input files of given byte sizes.

    Returns
    -------
    Callable[[dict[str, int]], Path]
        Factory returning the directory holding the created files.
    """

    def _create(sizes: dict[str, int]) -> Path:
        inputs = tmp_path / "inputs"
        inputs.mkdir(parents=True, exist_ok=True)
        for name, size in sizes.items():
            (inputs / name).write_bytes(b"x" * size)
        return inputs

    return _create
