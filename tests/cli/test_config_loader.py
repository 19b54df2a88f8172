"""Tests for CLI configuration discovery and decoding."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.config_loader import CONFIG_FILENAME, load_estimator_config
from reducer_estimation.config import (
    BYTES_PER_WORKER_ENV,
    DEFAULT_BYTES_PER_WORKER,
    DEFAULT_ESTIMATORS,
    EstimatorConfigSpec,
)


def test_defaults_without_config_files() -> None:
    """Ensure an empty directory tree yields the default settings."""
    assert load_estimator_config() == EstimatorConfigSpec()


def test_discovers_config_in_parent_directory(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Ensure the config file is found from a nested working directory."""
    (tmp_path / CONFIG_FILENAME).write_text(
        '[estimator]\nbytes_per_worker = "512MiB"\nestimators = ["direct"]\nmax_workers = 50\n',
        encoding="utf-8",
    )
    nested = tmp_path / "jobs" / "nightly"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)
    settings = load_estimator_config()
    assert settings.bytes_per_worker == 512 << 20
    assert settings.estimators == ("direct",)
    assert settings.max_workers == 50
    assert settings.history_ratio_threshold == pytest.approx(0.10)


def test_reads_pyproject_tool_section(tmp_path: Path) -> None:
    """Ensure ``[tool.reducer-estimation]`` is used when no dedicated file exists."""
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "jobs"\n\n[tool.reducer-estimation.estimator]\n'
        "history_ratio_threshold = 0.25\ndefault_workers = 3\n",
        encoding="utf-8",
    )
    settings = load_estimator_config()
    assert settings.history_ratio_threshold == pytest.approx(0.25)
    assert settings.default_workers == 3
    assert settings.estimators == DEFAULT_ESTIMATORS


def test_environment_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure environment values take precedence over file values."""
    config = tmp_path / "custom.toml"
    config.write_text("[estimator]\nbytes_per_worker = 4096\n", encoding="utf-8")
    monkeypatch.setenv(BYTES_PER_WORKER_ENV, "2GiB")
    assert load_estimator_config(config).bytes_per_worker == 2 << 30


def test_invalid_environment_value_is_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure an unusable environment value keeps the configured size."""
    monkeypatch.setenv(BYTES_PER_WORKER_ENV, "0")
    assert load_estimator_config().bytes_per_worker == DEFAULT_BYTES_PER_WORKER


def test_explicit_pyproject_requires_tool_section(tmp_path: Path) -> None:
    """Ensure an explicit pyproject without the tool section is rejected."""
    config = tmp_path / "pyproject.toml"
    config.write_text('[project]\nname = "jobs"\n', encoding="utf-8")
    with pytest.raises(ValueError, match=r"tool\.reducer-estimation"):
        load_estimator_config(config)


@pytest.mark.parametrize(
    ("body", "match"),
    [
        ("[estimator]\nhistory_ratio_threshold = 1.5\n", "validation failed"),
        ("[estimator]\nbytes_per_worker = \"lots\"\n", "validation failed"),
        ("[estimator]\nunknown_key = 1\n", "validation failed"),
        ("[estimator\n", "Malformed TOML"),
    ],
)
def test_invalid_config_files(tmp_path: Path, body: str, match: str) -> None:
    """Ensure invalid config content raises ValueError with the file location."""
    config = tmp_path / "bad.toml"
    config.write_text(body, encoding="utf-8")
    with pytest.raises(ValueError, match=match):
        load_estimator_config(config)


def test_missing_explicit_config(tmp_path: Path) -> None:
    """Ensure a missing explicit path is reported."""
    with pytest.raises(ValueError, match="not found"):
        load_estimator_config(tmp_path / "absent.toml")
