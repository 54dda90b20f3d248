"""Shared pytest fixtures for rule graph extraction tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from extract.workspace_extractor import TargetRule
from obs.otel.metrics import reset_metrics_registry
from tests.test_helpers.aspect_units import APPLICATION, XCTEST, simple_workspace_units
from tests.test_helpers.fake_invoker import FakeInvoker

_EXPORTER = InMemorySpanExporter()
_METRIC_READER = InMemoryMetricReader()


@pytest.fixture(scope="session")
def _tracer_provider() -> TracerProvider:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(_EXPORTER))
    trace.set_tracer_provider(provider)
    return provider


@pytest.fixture
def span_exporter(_tracer_provider: TracerProvider) -> Iterator[InMemorySpanExporter]:
    """Capture spans finished during a test."""
    _EXPORTER.clear()
    yield _EXPORTER
    _EXPORTER.clear()


@pytest.fixture(scope="session")
def _meter_provider() -> MeterProvider:
    provider = MeterProvider(metric_readers=[_METRIC_READER])
    metrics.set_meter_provider(provider)
    return provider


@pytest.fixture
def metric_reader(_meter_provider: MeterProvider) -> Iterator[InMemoryMetricReader]:
    """Collect metrics recorded through freshly created instruments."""
    reset_metrics_registry()
    yield _METRIC_READER
    reset_metrics_registry()


@pytest.fixture
def requested_roots() -> list[TargetRule]:
    """Return the application and test roots of the sample workspace."""
    return [
        TargetRule.of(APPLICATION, "ios_application"),
        TargetRule.of(XCTEST, "ios_test"),
    ]


@pytest.fixture
def sample_invoker() -> FakeInvoker:
    """Return an invoker emitting the sample workspace units."""
    return FakeInvoker(units=simple_workspace_units())


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove ASPECTGRAPH_* overrides inherited from the environment."""
    for name in (
        "ASPECTGRAPH_BAZEL_BIN",
        "ASPECTGRAPH_TIMEOUT_S",
        "ASPECTGRAPH_MAX_BATCH_SIZE",
        "ASPECTGRAPH_PARSE_WORKERS",
        "ASPECTGRAPH_WORKSPACE_ROOT",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
