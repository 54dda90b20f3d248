"""In-memory diagnostics sink for extraction events."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from opentelemetry import trace

from obs.otel.attributes import normalize_attributes


@dataclass
class DiagnosticsCollector:
    """Collect diagnostics events in memory and mirror them onto the current span."""

    events: dict[str, list[Mapping[str, object]]] = field(default_factory=dict)

    def record_event(self, name: str, properties: Mapping[str, object]) -> None:
        """Append an event payload under a logical name."""
        normalized = dict(properties)
        self.events.setdefault(name, []).append(normalized)
        trace.get_current_span().add_event(name, attributes=normalize_attributes(normalized))

    def event_rows(self, name: str) -> list[Mapping[str, object]]:
        """Return collected rows for one event name.

        Returns
        -------
        list[Mapping[str, object]]
            Rows in recording order; empty when nothing was recorded.
        """
        return list(self.events.get(name, ()))

    def events_snapshot(self) -> dict[str, list[Mapping[str, object]]]:
        """Return a shallow copy of collected event rows.

        Returns
        -------
        dict[str, list[Mapping[str, object]]]
            Mapping of event names to collected rows.
        """
        return {name: list(rows) for name, rows in self.events.items()}


__all__ = ["DiagnosticsCollector"]
