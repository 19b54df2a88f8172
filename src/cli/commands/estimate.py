"""Worker-count estimation command."""

from __future__ import annotations

import logging
import sys
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Literal

import msgspec
from cyclopts import Parameter, validators
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cli.config_loader import load_estimator_config
from cli.exit_codes import ExitCode
from cli.groups import estimation_group, observability_group, session_group
from cli.step_file import load_step_file
from obs.otel import (
    SCOPE_CLI,
    OtelBootstrapOptions,
    configure_logging,
    configure_otel,
    reset_run_id,
    set_run_id,
    stage_span,
)
from reducer_estimation.chain import build_estimator
from reducer_estimation.config import resolve_estimator_config
from reducer_estimation.history import JsonLinesHistory
from reducer_estimation.planner import WorkerPlan, WorkerPlanner
from reducer_estimation.resolver import SourceSizeResolver
from serde_msgspec import dumps_json
from storage.filesystem import ArrowFileSystemMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EstimateOptions:
    """CLI options for the estimate command."""

    history: Annotated[
        Path | None,
        Parameter(
            name="--history",
            help="JSON Lines file of past runs used by the ratio estimator.",
            env_var="REDUCER_ESTIMATION_HISTORY",
            group=estimation_group,
        ),
    ] = None
    estimators: Annotated[
        tuple[str, ...],
        Parameter(
            name="--estimator",
            help="Estimator to try, in order (repeatable): ratio, direct.",
            group=estimation_group,
        ),
    ] = ()
    config_file: Annotated[
        Path | None,
        Parameter(
            name="--config",
            help="Path to configuration file (overrides default search).",
            group=estimation_group,
        ),
    ] = None
    output_format: Annotated[
        Literal["json", "table"],
        Parameter(
            name="--format",
            help="Output format for the worker plan.",
            group=session_group,
        ),
    ] = "json"
    run_id: Annotated[
        str | None,
        Parameter(
            name="--run-id",
            help="Explicit run identifier (random UUID if not provided).",
            group=session_group,
        ),
    ] = None
    log_level: Annotated[
        Literal["DEBUG", "INFO", "WARNING", "ERROR"],
        Parameter(
            name="--log-level",
            help="Logging verbosity level.",
            env_var="REDUCER_ESTIMATION_LOG_LEVEL",
            group=session_group,
        ),
    ] = "WARNING"
    enable_traces: Annotated[
        bool | None,
        Parameter(
            name="--enable-traces",
            help="Enable OpenTelemetry traces.",
            group=observability_group,
        ),
    ] = None
    enable_metrics: Annotated[
        bool | None,
        Parameter(
            name="--enable-metrics",
            help="Enable OpenTelemetry metrics.",
            group=observability_group,
        ),
    ] = None
    enable_logs: Annotated[
        bool | None,
        Parameter(
            name="--enable-logs",
            help="Enable OpenTelemetry logs.",
            group=observability_group,
        ),
    ] = None


_DEFAULT_ESTIMATE_OPTIONS = EstimateOptions()


def estimate_command(
    step_file: Annotated[
        Path,
        Parameter(validator=validators.Path(exists=True, file_okay=True, dir_okay=False)),
    ],
    options: Annotated[EstimateOptions, Parameter(name="*")] = _DEFAULT_ESTIMATE_OPTIONS,
) -> int:
    """Plan the worker count of the step described in STEP_FILE.

    Returns
    -------
    int
        Exit status code.
    """
    configure_logging(options.log_level)
    _configure_telemetry(options)
    token = set_run_id(options.run_id or uuid.uuid4().hex)
    try:
        with stage_span(
            "reducer_estimation.cli.estimate",
            stage="cli",
            scope_name=SCOPE_CLI,
            attributes={"step_file": str(step_file)},
        ):
            plan = _plan(step_file, options)
    except (ValueError, TypeError, OSError) as exc:
        Console(stderr=True).print(f"[red]error:[/red] {escape(str(exc))}")
        return ExitCode.from_exception(exc)
    finally:
        reset_run_id(token)
    _write_plan(plan, output_format=options.output_format)
    return ExitCode.SUCCESS


def _configure_telemetry(options: EstimateOptions) -> None:
    flags = (options.enable_traces, options.enable_metrics, options.enable_logs)
    otel_options = None
    if any(flag is not None for flag in flags):
        otel_options = OtelBootstrapOptions(
            enable_traces=options.enable_traces,
            enable_metrics=options.enable_metrics,
            enable_logs=options.enable_logs,
        )
    configure_otel(options=otel_options)


def _plan(step_file: Path, options: EstimateOptions) -> WorkerPlan:
    settings = load_estimator_config(options.config_file)
    if options.estimators:
        settings = msgspec.structs.replace(settings, estimators=options.estimators)
    step = load_step_file(step_file)
    chain = options.estimators or resolve_estimator_config(step.config, base=settings).estimators
    history = JsonLinesHistory(options.history) if options.history is not None else None
    resolver = SourceSizeResolver(metadata=ArrowFileSystemMetadata())
    estimator = build_estimator(chain, resolver=resolver, history=history)
    logger.debug("Planning %s with estimators %s", step.key, chain)
    return WorkerPlanner(estimator=estimator, settings=settings).plan(step)


def _write_plan(plan: WorkerPlan, *, output_format: Literal["json", "table"]) -> None:
    if output_format == "json":
        sys.stdout.write(dumps_json(plan, pretty=True).decode("utf-8") + "\n")
        return
    table = Table(title=f"Worker plan: {plan.step_key}")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("workers", _cell(plan.workers))
    table.add_row("source", plan.source)
    table.add_row("estimate", _cell(plan.estimate))
    table.add_row("capped", str(plan.capped).lower())
    Console().print(table)


def _cell(value: int | None) -> str:
    return "-" if value is None else str(value)


__all__ = ["EstimateOptions", "estimate_command"]
