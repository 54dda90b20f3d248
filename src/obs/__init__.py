"""Observation utilities: diagnostics, logging, tracing, and metrics."""

from __future__ import annotations

from obs.diagnostics import DiagnosticsCollector

__all__ = ["DiagnosticsCollector"]
