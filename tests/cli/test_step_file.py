"""Tests for step description files."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.step_file import flatten_config, load_step_file
from reducer_estimation.sources import CompositeSource, GlobSource, OpaqueSource


def test_flatten_config_nests_tables() -> None:
    """Ensure nested tables become dotted keys and dotted keys are kept."""
    flat = flatten_config(
        {
            "estimator": {"bytes_per_worker": "512MiB", "limits": {"max_workers": 10}},
            "estimator.default_workers": 4,
        }
    )
    assert flat == {
        "estimator.bytes_per_worker": "512MiB",
        "estimator.limits.max_workers": 10,
        "estimator.default_workers": 4,
    }


def test_load_toml_step_file(tmp_path: Path) -> None:
    """Ensure a TOML step file decodes into a runtime step with a source tree."""
    path = tmp_path / "step.toml"
    path.write_text(
        """
job_name = "etl"
step_name = "aggregate"
signature = "v2"
explicit_workers = 8

[inputs]
kind = "composite"

[[inputs.children]]
kind = "glob"
pattern = "/data/a/*.parquet"

[[inputs.children]]
kind = "opaque"
description = "lookup table"

[config.estimator]
bytes_per_worker = 1024
""",
        encoding="utf-8",
    )
    step = load_step_file(path)
    assert step.key == "etl/aggregate#v2"
    assert step.explicit_workers == 8
    assert step.inputs == CompositeSource(
        children=(
            GlobSource(pattern="/data/a/*.parquet"),
            OpaqueSource(description="lookup table"),
        )
    )
    assert step.config == {"estimator.bytes_per_worker": 1024}


def test_load_json_step_file(tmp_path: Path) -> None:
    """Ensure JSON step files are accepted by suffix."""
    path = tmp_path / "step.json"
    path.write_text(
        '{"job_name": "j", "step_name": "s", "inputs": {"kind": "glob", "pattern": "/x/*"}}',
        encoding="utf-8",
    )
    step = load_step_file(path)
    assert step.key == "j/s"
    assert step.inputs == GlobSource(pattern="/x/*")
    assert step.config == {}


@pytest.mark.parametrize(
    "body",
    [
        'job_name = "j"\nstep_name = "s"\n',
        'job_name = "j"\nstep_name = "s"\n[inputs]\nkind = "table"\n',
        'job_name = "j"\nstep_name = "s"\nexplicit_workers = 0\n[inputs]\nkind = "opaque"\n',
        "job_name = ",
    ],
)
def test_invalid_step_files_raise_value_error(tmp_path: Path, body: str) -> None:
    """Ensure malformed or invalid step files surface as ValueError."""
    path = tmp_path / "step.toml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ValueError, match="(?i)step file"):
        load_step_file(path)
