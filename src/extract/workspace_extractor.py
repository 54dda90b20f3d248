"""Assemble the rule graph for a set of requested targets."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Self

from build_graph.errors import (
    BuildToolInvocationFailed,
    BuildToolTimeout,
    DuplicateRuleDefinition,
    MalformedAspectRecord,
)
from build_graph.graph import RuleGraph, resolve_graph, unresolved_dependencies
from build_graph.labels import BuildLabel
from build_graph.rule_entry import RuleEntry
from core_types import RawAspectUnit
from extract.aspect_parser import AspectOutputParser, ParsedRule
from extract.bazel_invoker import BazelAspectInvoker
from extract.batching import invocation_batches
from extract.options import ExtractorOptions
from extract.parallel import parallel_map
from extract.protocols import BuildToolInvoker
from extract.report import (
    EVENT_DUPLICATE,
    EVENT_MALFORMED,
    EVENT_MISSING_ROOT,
    EVENT_UNRESOLVED,
    ExtractionReport,
)
from obs.diagnostics import DiagnosticsCollector
from obs.otel.constants import AttributeName
from obs.otel.metrics import (
    record_duplicate,
    record_invocation,
    record_malformed,
    record_parsed,
    record_unresolved,
)
from obs.otel.run_context import run_scope
from obs.otel.scopes import SCOPE_EXTRACT, SCOPE_INVOKE
from obs.otel.tracing import stage_span
from serde_msgspec import StructBaseHotPath
from utils.uuid_factory import run_id as new_run_id

logger = logging.getLogger(__name__)


class TargetRule(StructBaseHotPath, frozen=True):
    """Requested root: a label plus the rule kind the caller expects, if known."""

    label: BuildLabel
    rule_type: str | None = None

    @classmethod
    def of(cls, label: str, rule_type: str | None = None) -> Self:
        """Build a target descriptor from a label string.

        Returns
        -------
        TargetRule
            Descriptor with a parsed label.
        """
        return cls(label=BuildLabel.parse(label), rule_type=rule_type)


@dataclass(frozen=True)
class ExtractionResult:
    """Rule graph plus the diagnostics of the run that produced it."""

    rule_entries: RuleGraph
    report: ExtractionReport


class WorkspaceInfoExtractor:
    """Run the analysis pass for requested targets and build their rule graph.

    Each call is independent: the returned graph is a new dict owned by the
    caller, and nothing from a previous run is reused.
    """

    def __init__(
        self,
        invoker: BuildToolInvoker,
        *,
        options: ExtractorOptions | None = None,
        parser: AspectOutputParser | None = None,
    ) -> None:
        self._invoker = invoker
        self._options = options or ExtractorOptions()
        self._parser = parser or AspectOutputParser(workspace_root=self._options.workspace_root)

    @classmethod
    def for_bazel(
        cls,
        workspace_root: Path,
        *,
        options: ExtractorOptions | None = None,
    ) -> WorkspaceInfoExtractor:
        """Return an extractor that runs the aspect through Bazel in ``workspace_root``.

        Returns
        -------
        WorkspaceInfoExtractor
            Extractor backed by ``BazelAspectInvoker``.
        """
        resolved = options or ExtractorOptions()
        root = workspace_root.resolve()
        parser = AspectOutputParser(workspace_root=resolved.workspace_root or root)
        invoker = BazelAspectInvoker.from_options(root, resolved)
        return cls(invoker, options=resolved, parser=parser)

    def extract_info_for_target_rules(self, requested: Sequence[TargetRule]) -> RuleGraph:
        """Return the label-keyed rule graph for ``requested`` and everything they reach.

        Parameters
        ----------
        requested
            Root targets the caller cares about.

        Returns
        -------
        RuleGraph
            Mapping from label to rule entry.
        """
        return self.extract(requested).rule_entries

    def extract(self, requested: Sequence[TargetRule]) -> ExtractionResult:
        """Extract the rule graph and a report of everything that was skipped.

        Parameters
        ----------
        requested
            Root targets the caller cares about.

        Returns
        -------
        ExtractionResult
            Rule graph and extraction report.

        Raises
        ------
        BuildToolInvocationFailed
            Raised when any invocation fails; no graph is returned.
        BuildToolTimeout
            Raised when any invocation times out; no graph is returned.
        """
        declared = _declared_types(requested)
        with (
            run_scope(new_run_id()) as run_id,
            stage_span(
                "extract.workspace_info",
                stage="extract",
                scope_name=SCOPE_EXTRACT,
                attributes={"requested": len(declared)},
            ),
        ):
            diagnostics = DiagnosticsCollector()
            units, invocations = self._invoke(list(declared))
            with stage_span("extract.parse", stage="parse", scope_name=SCOPE_EXTRACT):
                outcomes = list(
                    parallel_map(
                        units,
                        self._parser.parse_outcome,
                        max_workers=self._options.parse_workers,
                    )
                )
            with stage_span("extract.merge", stage="merge", scope_name=SCOPE_EXTRACT):
                merged = self._merge(outcomes, declared, diagnostics)
            with stage_span("extract.resolve", stage="resolve", scope_name=SCOPE_EXTRACT):
                graph = resolve_graph(merged)
                self._record_unresolved(graph, diagnostics)
            self._record_missing_roots(declared, graph, diagnostics)
            report = ExtractionReport.from_diagnostics(
                diagnostics,
                run_id=run_id,
                requested=len(declared),
                invocations=invocations,
                units=len(units),
                rules=len(graph),
            )
        logger.info(
            "Extracted %d rule(s) from %d unit(s): %d malformed, %d duplicate, "
            "%d unresolved dependency edge(s)",
            len(graph),
            len(units),
            len(report.malformed),
            len(report.duplicates),
            len(report.unresolved),
        )
        return ExtractionResult(rule_entries=graph, report=report)

    def _invoke(self, labels: Sequence[BuildLabel]) -> tuple[list[RawAspectUnit], int]:
        units: list[RawAspectUnit] = []
        invocations = 0
        for batch in invocation_batches(labels, max_batch_size=self._options.max_batch_size):
            invocations += 1
            with stage_span(
                "extract.invoke",
                stage="invoke",
                scope_name=SCOPE_INVOKE,
                attributes={AttributeName.BATCH_SIZE: len(batch)},
            ):
                try:
                    units.extend(
                        self._invoker.invoke(
                            batch,
                            startup_options=self._options.startup_options,
                            build_options=self._options.build_options,
                        )
                    )
                except (BuildToolInvocationFailed, BuildToolTimeout) as exc:
                    record_invocation(status="error", error_type=type(exc).__name__)
                    logger.error("Aborting extraction: %s", exc)
                    raise
            record_invocation(status="ok")
        return units, invocations

    @staticmethod
    def _merge(
        outcomes: Iterable[ParsedRule | MalformedAspectRecord],
        declared: dict[BuildLabel, str | None],
        diagnostics: DiagnosticsCollector,
    ) -> RuleGraph:
        graph: RuleGraph = {}
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, MalformedAspectRecord):
                _record_malformed(index, outcome, diagnostics)
                continue
            entry = outcome.entry
            existing = graph.get(entry.label)
            if existing is not None:
                _record_duplicate(existing, entry, diagnostics)
                continue
            expected = declared.get(entry.label)
            if expected is not None and expected != entry.rule_type:
                mismatch = MalformedAspectRecord(
                    f"reported type {entry.rule_type!r} does not match requested type {expected!r}",
                    label=str(entry.label),
                )
                _record_malformed(index, mismatch, diagnostics)
                continue
            graph[entry.label] = entry
            record_parsed(rule_type=entry.rule_type)
        return graph

    @staticmethod
    def _record_unresolved(graph: RuleGraph, diagnostics: DiagnosticsCollector) -> None:
        total = 0
        for label, missing in unresolved_dependencies(graph).items():
            for dependency in missing:
                total += 1
                logger.debug("Unresolved dependency %s -> %s", label, dependency)
                diagnostics.record_event(
                    EVENT_UNRESOLVED,
                    {"rule": str(label), "dependency": dependency},
                )
        record_unresolved(total)

    @staticmethod
    def _record_missing_roots(
        declared: dict[BuildLabel, str | None],
        graph: RuleGraph,
        diagnostics: DiagnosticsCollector,
    ) -> None:
        for label in declared:
            if label in graph:
                continue
            logger.warning("Requested target %s was not reported by the analysis pass", label)
            diagnostics.record_event(EVENT_MISSING_ROOT, {"label": str(label)})


def _declared_types(requested: Sequence[TargetRule]) -> dict[BuildLabel, str | None]:
    declared: dict[BuildLabel, str | None] = {}
    for target in requested:
        if target.label not in declared:
            declared[target.label] = target.rule_type
            continue
        previous = declared[target.label]
        if previous is None:
            declared[target.label] = target.rule_type
        elif target.rule_type is not None and target.rule_type != previous:
            logger.warning(
                "Target %s requested as both %s and %s; expecting %s",
                target.label,
                previous,
                target.rule_type,
                previous,
            )
    return declared


def _record_malformed(
    index: int,
    error: MalformedAspectRecord,
    diagnostics: DiagnosticsCollector,
) -> None:
    logger.warning("Skipping aspect output unit %d: %s", index, error)
    diagnostics.record_event(
        EVENT_MALFORMED,
        {"index": index, "reason": error.reason, "label": error.label},
    )
    record_malformed()


def _record_duplicate(
    existing: RuleEntry,
    duplicate: RuleEntry,
    diagnostics: DiagnosticsCollector,
) -> None:
    error = DuplicateRuleDefinition(
        str(existing.label),
        first_type=existing.rule_type,
        duplicate_type=duplicate.rule_type,
    )
    logger.warning("%s", error)
    diagnostics.record_event(
        EVENT_DUPLICATE,
        {
            "label": error.label,
            "kept_type": error.first_type,
            "dropped_type": error.duplicate_type,
        },
    )
    record_duplicate()


__all__ = ["ExtractionResult", "TargetRule", "WorkspaceInfoExtractor"]
