"""Per-run extraction diagnostics."""

from __future__ import annotations

from collections.abc import Mapping

from obs.diagnostics import DiagnosticsCollector
from serde_msgspec import StructBaseCompat, convert, dumps_json, mapping_payload

EVENT_MALFORMED = "malformed_aspect_record"
EVENT_DUPLICATE = "duplicate_rule_definition"
EVENT_UNRESOLVED = "unresolved_dependency"
EVENT_MISSING_ROOT = "missing_root"


class MalformedUnit(StructBaseCompat, frozen=True):
    """Aspect output unit that was skipped."""

    index: int
    reason: str
    label: str | None = None


class DuplicateDefinition(StructBaseCompat, frozen=True):
    """Second definition of a label that was dropped in favour of the first."""

    label: str
    kept_type: str
    dropped_type: str


class UnresolvedDependency(StructBaseCompat, frozen=True):
    """Dependency edge whose target was not emitted by the analysis pass."""

    rule: str
    dependency: str


class ExtractionReport(StructBaseCompat, frozen=True):
    """Summary of one extraction run."""

    run_id: str
    requested: int
    invocations: int
    units: int
    rules: int
    malformed: tuple[MalformedUnit, ...] = ()
    duplicates: tuple[DuplicateDefinition, ...] = ()
    unresolved: tuple[UnresolvedDependency, ...] = ()
    missing_roots: tuple[str, ...] = ()

    @property
    def clean(self) -> bool:
        """Return True when no unit was rejected and every root was analyzed.

        Unresolved dependencies do not count: dangling edges are a normal graph
        state.
        """
        return not (self.malformed or self.duplicates or self.missing_roots)

    @classmethod
    def from_diagnostics(
        cls,
        diagnostics: DiagnosticsCollector,
        *,
        run_id: str,
        requested: int,
        invocations: int,
        units: int,
        rules: int,
    ) -> ExtractionReport:
        """Build a report from collected diagnostics events.

        Returns
        -------
        ExtractionReport
            Report holding typed copies of the recorded events.
        """
        return cls(
            run_id=run_id,
            requested=requested,
            invocations=invocations,
            units=units,
            rules=rules,
            malformed=convert(
                diagnostics.event_rows(EVENT_MALFORMED),
                target_type=tuple[MalformedUnit, ...],
            ),
            duplicates=convert(
                diagnostics.event_rows(EVENT_DUPLICATE),
                target_type=tuple[DuplicateDefinition, ...],
            ),
            unresolved=convert(
                diagnostics.event_rows(EVENT_UNRESOLVED),
                target_type=tuple[UnresolvedDependency, ...],
            ),
            missing_roots=tuple(
                str(row["label"]) for row in diagnostics.event_rows(EVENT_MISSING_ROOT)
            ),
        )

    def payload(self) -> Mapping[str, object]:
        """Return a JSON-ready payload for logs and debugging dumps.

        Returns
        -------
        Mapping[str, object]
            Builtin representation of the report.
        """
        return mapping_payload(self)

    def to_json(self, *, pretty: bool = False) -> bytes:
        """Return the report as JSON bytes.

        Returns
        -------
        bytes
            Encoded report.
        """
        return dumps_json(self, pretty=pretty)


__all__ = [
    "EVENT_DUPLICATE",
    "EVENT_MALFORMED",
    "EVENT_MISSING_ROOT",
    "EVENT_UNRESOLVED",
    "DuplicateDefinition",
    "ExtractionReport",
    "MalformedUnit",
    "UnresolvedDependency",
]
