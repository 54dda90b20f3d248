"""Logging helpers for trace correlation."""

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

LIBRARY_LOGGERS = ("build_graph", "extract", "config", "obs")


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


class TraceContextFormatter(logging.Formatter):
    """Formatter that ensures trace/span IDs are present on log records."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record with ensured trace/span fields.

        Returns
        -------
        str
            Formatted log record string.
        """
        if not hasattr(record, "trace_id"):
            record.trace_id = None
        if not hasattr(record, "span_id"):
            record.span_id = None
        return super().format(record)


def configure_logging(
    level: int | str = logging.INFO,
    *,
    fmt: str | None = None,
    datefmt: str | None = None,
) -> logging.Handler:
    """Install a trace-correlating stream handler on the library loggers.

    Intended for drivers and scripts; library code never installs handlers.
    Calling it again replaces the handler installed by the previous call.

    Returns
    -------
    logging.Handler
        The installed handler.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(TraceContextFormatter(fmt or TRACE_LOG_FORMAT, datefmt=datefmt))
    handler.addFilter(TraceContextFilter())
    handler.set_name("aspectgraph")
    for name in LIBRARY_LOGGERS:
        logger = logging.getLogger(name)
        for existing in list(logger.handlers):
            if existing.get_name() == "aspectgraph":
                logger.removeHandler(existing)
        logger.addHandler(handler)
        logger.setLevel(level)
    return handler


__all__ = [
    "LIBRARY_LOGGERS",
    "TRACE_LOG_FORMAT",
    "TraceContextFilter",
    "TraceContextFormatter",
    "configure_logging",
]
