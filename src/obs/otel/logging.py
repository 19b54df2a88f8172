"""Logging setup with trace correlation for the estimation CLI."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from opentelemetry import trace

if TYPE_CHECKING:

    class _TraceRecord(logging.LogRecord):
        trace_id: str | None
        span_id: str | None


TRACE_LOG_FORMAT = (
    "%(asctime)s %(levelname)s [trace_id=%(trace_id)s span_id=%(span_id)s] %(name)s: %(message)s"
)

_HANDLER_MARKER = "_reducer_estimation_handler"


class TraceContextFilter(logging.Filter):
    """Attach trace/span IDs to log records when available."""

    @staticmethod
    def filter(record: logging.LogRecord) -> bool:
        """Inject trace/span IDs into the log record when available.

        Returns
        -------
        bool
            True to keep the log record.
        """
        context = trace.get_current_span().get_span_context()
        trace_record = cast("_TraceRecord", record)
        if context is None or not context.is_valid:
            trace_record.trace_id = None
            trace_record.span_id = None
            return True
        trace_record.trace_id = f"{context.trace_id:032x}"
        trace_record.span_id = f"{context.span_id:016x}"
        return True


def configure_logging(level: str | int = logging.INFO, *, logger: logging.Logger | None = None) -> None:
    """Install a trace-correlated stderr handler on the target logger.

    The handler is installed once; later calls only adjust the level.
    """
    target = logger or logging.getLogger()
    target.setLevel(level.upper() if isinstance(level, str) else level)
    for handler in target.handlers:
        if getattr(handler, _HANDLER_MARKER, False):
            return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(TRACE_LOG_FORMAT))
    handler.addFilter(TraceContextFilter())
    setattr(handler, _HANDLER_MARKER, True)
    target.addHandler(handler)


__all__ = ["TRACE_LOG_FORMAT", "TraceContextFilter", "configure_logging"]
