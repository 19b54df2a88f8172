"""Shared help-panel groups for the reducer-estimation CLI."""

from __future__ import annotations

from cyclopts import Group

session_group = Group(
    "Session",
    help="Session and run context options.",
    sort_key=0,
)

estimation_group = Group(
    "Estimation",
    help="Select estimators, history and configuration.",
    sort_key=1,
)

observability_group = Group(
    "Observability",
    help="Configure OpenTelemetry tracing, metrics, and logging.",
    sort_key=8,
)

__all__ = ["estimation_group", "observability_group", "session_group"]
