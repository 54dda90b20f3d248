"""Metrics catalog and helpers for aspectgraph telemetry."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from opentelemetry import metrics

from obs.otel.attributes import normalize_attributes
from obs.otel.constants import AttributeName, MetricName
from obs.otel.run_context import get_run_id
from obs.otel.scope_metadata import instrumentation_schema_url, instrumentation_version
from obs.otel.scopes import SCOPE_OBS


@dataclass
class MetricsRegistry:
    """Registry for aspectgraph metric instruments."""

    stage_duration: metrics.Histogram
    records_parsed: metrics.Counter
    records_malformed: metrics.Counter
    records_duplicate: metrics.Counter
    dependencies_unresolved: metrics.Counter
    invocation_count: metrics.Counter


_REGISTRY_CACHE: dict[str, MetricsRegistry | None] = {"value": None}


def _meter() -> metrics.Meter:
    version_value = instrumentation_version()
    version = version_value if version_value is not None else "unknown"
    return metrics.get_meter(
        SCOPE_OBS,
        version,
        schema_url=instrumentation_schema_url(),
    )


def _with_run_id(payload: dict[str, object]) -> dict[str, object]:
    run_id = get_run_id()
    if run_id:
        payload[AttributeName.RUN_ID] = run_id
    return payload


def reset_metrics_registry() -> None:
    """Reset cached metric instruments so they can be re-created."""
    _REGISTRY_CACHE["value"] = None


def _registry() -> MetricsRegistry:
    cached = _REGISTRY_CACHE["value"]
    if cached is not None:
        return cached
    meter = _meter()
    registry = MetricsRegistry(
        stage_duration=meter.create_histogram(
            MetricName.STAGE_DURATION,
            unit="s",
            description="Extraction stage duration (seconds).",
        ),
        records_parsed=meter.create_counter(
            MetricName.RECORDS_PARSED,
            unit="1",
            description="Aspect records turned into rule entries.",
        ),
        records_malformed=meter.create_counter(
            MetricName.RECORDS_MALFORMED,
            unit="1",
            description="Aspect records rejected as malformed.",
        ),
        records_duplicate=meter.create_counter(
            MetricName.RECORDS_DUPLICATE,
            unit="1",
            description="Aspect records dropped as duplicate rule definitions.",
        ),
        dependencies_unresolved=meter.create_counter(
            MetricName.DEPENDENCIES_UNRESOLVED,
            unit="1",
            description="Dependency edges whose target was not emitted.",
        ),
        invocation_count=meter.create_counter(
            MetricName.INVOCATION_COUNT,
            unit="1",
            description="Build tool invocations by outcome.",
        ),
    )
    _REGISTRY_CACHE["value"] = registry
    return registry


def record_stage_duration(
    stage: str,
    duration_s: float,
    *,
    status: str,
    attributes: Mapping[str, object] | None = None,
) -> None:
    """Record a stage duration histogram value."""
    payload: dict[str, object] = {AttributeName.STAGE: stage, AttributeName.STATUS: status}
    if attributes:
        payload.update(attributes)
    _registry().stage_duration.record(duration_s, normalize_attributes(_with_run_id(payload)))


def record_parsed(count: int = 1, *, rule_type: str | None = None) -> None:
    """Increment the parsed-record counter."""
    payload: dict[str, object] = {AttributeName.RULE_TYPE: rule_type}
    _registry().records_parsed.add(count, normalize_attributes(_with_run_id(payload)))


def record_malformed(count: int = 1) -> None:
    """Increment the malformed-record counter."""
    _registry().records_malformed.add(count, normalize_attributes(_with_run_id({})))


def record_duplicate(count: int = 1) -> None:
    """Increment the duplicate-definition counter."""
    _registry().records_duplicate.add(count, normalize_attributes(_with_run_id({})))


def record_unresolved(count: int) -> None:
    """Increment the unresolved-dependency counter."""
    if count <= 0:
        return
    _registry().dependencies_unresolved.add(count, normalize_attributes(_with_run_id({})))


def record_invocation(*, status: str, error_type: str | None = None) -> None:
    """Count a build tool invocation by outcome."""
    payload: dict[str, object] = {
        AttributeName.STATUS: status,
        AttributeName.ERROR_TYPE: error_type,
    }
    _registry().invocation_count.add(1, normalize_attributes(_with_run_id(payload)))


__all__ = [
    "MetricsRegistry",
    "record_duplicate",
    "record_invocation",
    "record_malformed",
    "record_parsed",
    "record_stage_duration",
    "record_unresolved",
    "reset_metrics_registry",
]
