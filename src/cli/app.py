"""Main application setup for the reducer-estimation CLI."""

from __future__ import annotations

from cyclopts import App, Parameter

from cli.commands.version import get_version

_HELP_EPILOGUE = """
Examples:
  reducer-estimation estimate step.toml                      Plan with default estimators
  reducer-estimation estimate step.toml --history runs.jsonl Use past runs
  reducer-estimation estimate step.toml --estimator direct   Size-based estimate only

Environment Variables:
  REDUCER_ESTIMATION_BYTES_PER_WORKER         Per-worker byte target (e.g. 512MiB)
  REDUCER_ESTIMATION_HISTORY_RATIO_THRESHOLD  History comparability threshold
  REDUCER_ESTIMATION_ENABLE_TRACES            Enable OpenTelemetry traces
"""

app = App(
    name="reducer-estimation",
    help="Estimate worker counts for the aggregation phase of job steps.",
    help_format="rich",
    help_epilogue=_HELP_EPILOGUE,
    version=get_version(),
    version_flags=["--version", "-V"],
    default_parameter=Parameter(
        show_default=True,
        show_env_var=True,
    ),
    result_action="print_non_int_return_int_as_exit_code",
    exit_on_error=True,
    print_error=True,
    help_on_error=False,
)

app.command("cli.commands.estimate:estimate_command", name="estimate", alias="e")
app.command("cli.commands.version:version_command", name="version", alias="v")


def main() -> int:
    """Run the reducer-estimation CLI.

    Returns
    -------
    int
        Exit status code.
    """
    return app()


__all__ = ["app", "main"]
