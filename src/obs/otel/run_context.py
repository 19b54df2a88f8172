"""Run-scoped context helpers for OpenTelemetry."""

from __future__ import annotations

from contextvars import ContextVar, Token

_RUN_ID: ContextVar[str | None] = ContextVar("reducer_estimation.run_id", default=None)


def get_run_id() -> str | None:
    """Return the current run_id, if set.

    Returns
    -------
    str | None
        Current run identifier or None.
    """
    return _RUN_ID.get()


def set_run_id(run_id: str) -> Token[str | None]:
    """Set the run_id and return the context token.

    Returns
    -------
    contextvars.Token[str | None]
        Token used to restore the previous value.
    """
    return _RUN_ID.set(run_id)


def reset_run_id(token: Token[str | None]) -> None:
    """Reset the run_id to the previous value using the token."""
    _RUN_ID.reset(token)


__all__ = ["get_run_id", "reset_run_id", "set_run_id"]
