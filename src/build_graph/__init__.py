"""Rule graph model: labels, rule entries, and graph queries."""

from __future__ import annotations

from build_graph.errors import (
    BuildGraphError,
    BuildToolCancelled,
    BuildToolInvocationFailed,
    BuildToolTimeout,
    DuplicateRuleDefinition,
    InvalidLabelFormat,
    MalformedAspectRecord,
)
from build_graph.graph import (
    RuleGraph,
    graph_json,
    graph_payload,
    index_rule_entries,
    resolve_graph,
    reverse_dependencies,
    transitive_dependencies,
    unresolved_dependencies,
)
from build_graph.labels import BuildLabel
from build_graph.rule_entry import DependencyRef, RuleEntry, RuleEntryBuilder

__all__ = [
    "BuildGraphError",
    "BuildLabel",
    "BuildToolCancelled",
    "BuildToolInvocationFailed",
    "BuildToolTimeout",
    "DependencyRef",
    "DuplicateRuleDefinition",
    "InvalidLabelFormat",
    "MalformedAspectRecord",
    "RuleEntry",
    "RuleEntryBuilder",
    "RuleGraph",
    "graph_json",
    "graph_payload",
    "index_rule_entries",
    "resolve_graph",
    "reverse_dependencies",
    "transitive_dependencies",
    "unresolved_dependencies",
]
