"""Canonical OpenTelemetry instrumentation scopes for aspectgraph."""

from __future__ import annotations

from obs.otel.constants import ScopeName

SCOPE_EXTRACT = ScopeName.EXTRACT
SCOPE_INVOKE = ScopeName.INVOKE
SCOPE_OBS = ScopeName.OBS


__all__ = ["SCOPE_EXTRACT", "SCOPE_INVOKE", "SCOPE_OBS"]
