"""OpenTelemetry helpers for aspectgraph observability."""

from __future__ import annotations

from obs.otel.logging import TraceContextFilter, TraceContextFormatter, configure_logging
from obs.otel.metrics import (
    record_duplicate,
    record_invocation,
    record_malformed,
    record_parsed,
    record_stage_duration,
    record_unresolved,
    reset_metrics_registry,
)
from obs.otel.run_context import get_run_id, reset_run_id, run_scope, set_run_id
from obs.otel.scopes import SCOPE_EXTRACT, SCOPE_INVOKE, SCOPE_OBS
from obs.otel.tracing import get_tracer, record_exception, stage_span

__all__ = [
    "SCOPE_EXTRACT",
    "SCOPE_INVOKE",
    "SCOPE_OBS",
    "TraceContextFilter",
    "TraceContextFormatter",
    "configure_logging",
    "get_run_id",
    "get_tracer",
    "record_duplicate",
    "record_exception",
    "record_invocation",
    "record_malformed",
    "record_parsed",
    "record_stage_duration",
    "record_unresolved",
    "reset_metrics_registry",
    "reset_run_id",
    "run_scope",
    "set_run_id",
    "stage_span",
]
