"""Canonical OpenTelemetry constants for aspectgraph."""

from __future__ import annotations

from enum import StrEnum


class MetricName(StrEnum):
    """Canonical metric names."""

    STAGE_DURATION = "aspectgraph.stage.duration"
    RECORDS_PARSED = "aspectgraph.records.parsed"
    RECORDS_MALFORMED = "aspectgraph.records.malformed"
    RECORDS_DUPLICATE = "aspectgraph.records.duplicate"
    DEPENDENCIES_UNRESOLVED = "aspectgraph.dependencies.unresolved"
    INVOCATION_COUNT = "aspectgraph.invocation.count"


class AttributeName(StrEnum):
    """Canonical attribute names."""

    RUN_ID = "aspectgraph.run_id"
    STAGE = "stage"
    STATUS = "status"
    STAGE_NAME = "aspectgraph.stage"
    RULE_TYPE = "rule_type"
    ERROR_TYPE = "error_type"
    BATCH_SIZE = "aspectgraph.batch_size"


class ScopeName(StrEnum):
    """Canonical instrumentation scope names."""

    EXTRACT = "aspectgraph.extract"
    INVOKE = "aspectgraph.invoke"
    OBS = "aspectgraph.obs"


__all__ = ["AttributeName", "MetricName", "ScopeName"]
