"""Queries over label-keyed rule graphs."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping

from build_graph.labels import BuildLabel
from build_graph.rule_entry import RuleEntry
from serde_msgspec import dumps_json_sorted

type RuleGraph = dict[BuildLabel, RuleEntry]


def index_rule_entries(entries: Iterable[RuleEntry]) -> RuleGraph:
    """Return a label-keyed mapping for rule entries.

    Later entries replace earlier ones with the same label; the extractor does its
    own duplicate handling before calling this.

    Returns
    -------
    RuleGraph
        Mapping from label to entry.
    """
    return {entry.label: entry for entry in entries}


def resolve_graph(graph: Mapping[BuildLabel, RuleEntry]) -> RuleGraph:
    """Resolve every entry's dependency references against the graph's labels.

    Returns
    -------
    RuleGraph
        New mapping holding entries with resolved dependency references.
    """
    known = graph.keys()
    return {label: entry.with_resolved_dependencies(known) for label, entry in graph.items()}


def transitive_dependencies(
    graph: Mapping[BuildLabel, RuleEntry],
    root: BuildLabel,
) -> tuple[BuildLabel, ...]:
    """Return every label reachable from ``root`` through resolved edges.

    Cycles are tolerated: each label is visited once. The root itself is only
    included when a cycle leads back to it.

    Returns
    -------
    tuple[BuildLabel, ...]
        Reachable labels in breadth-first order.
    """
    seen: set[BuildLabel] = set()
    ordered: list[BuildLabel] = []
    queue: deque[BuildLabel] = deque([root])
    while queue:
        current = queue.popleft()
        entry = graph.get(current)
        if entry is None:
            continue
        for dep in entry.resolved_dependencies():
            if dep in seen:
                continue
            seen.add(dep)
            ordered.append(dep)
            queue.append(dep)
    return tuple(ordered)


def reverse_dependencies(
    graph: Mapping[BuildLabel, RuleEntry],
    target: BuildLabel,
) -> tuple[BuildLabel, ...]:
    """Return labels of rules that directly depend on ``target``.

    Returns
    -------
    tuple[BuildLabel, ...]
        Direct dependents sorted by label.
    """
    return tuple(sorted(label for label, entry in graph.items() if entry.depends_on(target)))


def unresolved_dependencies(graph: Mapping[BuildLabel, RuleEntry]) -> dict[BuildLabel, tuple[str, ...]]:
    """Return dangling dependency strings per rule, omitting fully resolved rules.

    Returns
    -------
    dict[BuildLabel, tuple[str, ...]]
        Unresolved dependency label strings keyed by the referencing rule.
    """
    dangling: dict[BuildLabel, tuple[str, ...]] = {}
    for label, entry in graph.items():
        missing = entry.unresolved_dependencies()
        if missing:
            dangling[label] = missing
    return dangling


def graph_payload(graph: Mapping[BuildLabel, RuleEntry]) -> dict[str, dict[str, object]]:
    """Return a JSON-ready payload keyed by canonical label strings.

    Returns
    -------
    dict[str, dict[str, object]]
        Rule entry payloads sorted by label.
    """
    return {str(label): graph[label].to_builtins() for label in sorted(graph)}


def graph_json(graph: Mapping[BuildLabel, RuleEntry], *, pretty: bool = False) -> bytes:
    """Return the graph payload as JSON bytes with sorted keys.

    Returns
    -------
    bytes
        Encoded graph payload.
    """
    return dumps_json_sorted(graph_payload(graph), pretty=pretty)


__all__ = [
    "RuleGraph",
    "graph_json",
    "graph_payload",
    "index_rule_entries",
    "resolve_graph",
    "reverse_dependencies",
    "transitive_dependencies",
    "unresolved_dependencies",
]
