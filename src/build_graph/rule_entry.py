"""Rule entries: the nodes of an extracted build graph."""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import msgspec

from build_graph.labels import BuildLabel, label_text
from serde_msgspec import StructBaseCompat, StructBaseHotPath, to_builtins


class DependencyRef(StructBaseHotPath, frozen=True):
    """Reference from a rule to one of its direct dependencies.

    ``target`` is ``None`` while the dependency is unresolved, either because the
    graph has not been resolved yet or because the analysis pass never emitted
    the referenced rule.
    """

    text: str
    target: BuildLabel | None = None

    @property
    def resolved(self) -> bool:
        """Return True when the dependency points at a rule in the graph."""
        return self.target is not None


def _read_only[V](values: Mapping[str, V] | None = None) -> Mapping[str, V]:
    return MappingProxyType(dict(values or {}))


class RuleEntry(StructBaseCompat, frozen=True):
    """Immutable graph node describing one rule visited by the analysis pass."""

    label: BuildLabel
    rule_type: str = msgspec.field(name="type")
    source_files: frozenset[str] = frozenset()
    dependencies: Mapping[str, DependencyRef] = msgspec.field(default_factory=_read_only)
    attributes: Mapping[str, Any] = msgspec.field(default_factory=_read_only)

    def has_source(self, path: str) -> bool:
        """Return True when ``path`` is one of this rule's direct sources.

        Returns
        -------
        bool
            Whether the path is a direct source of the rule.
        """
        return path in self.source_files

    def depends_on(self, label: BuildLabel | str) -> bool:
        """Return True when the rule directly depends on ``label``.

        Unresolved dependencies count: the edge exists even if the target rule
        was not emitted.

        Returns
        -------
        bool
            Whether a direct dependency edge to the label exists.
        """
        return label_text(label) in self.dependencies

    def attribute(self, name: str) -> Any | None:
        """Return a rule attribute value, or ``None`` when it is absent.

        Returns
        -------
        Any | None
            Attribute value copied verbatim from the aspect output.
        """
        return self.attributes.get(name)

    def resolved_dependencies(self) -> tuple[BuildLabel, ...]:
        """Return the labels of dependencies present in the graph.

        Returns
        -------
        tuple[BuildLabel, ...]
            Resolved dependency labels in declaration order.
        """
        return tuple(ref.target for ref in self.dependencies.values() if ref.target is not None)

    def unresolved_dependencies(self) -> tuple[str, ...]:
        """Return the raw label strings of dangling dependencies.

        Returns
        -------
        tuple[str, ...]
            Unresolved dependency label strings in declaration order.
        """
        return tuple(text for text, ref in self.dependencies.items() if ref.target is None)

    def with_resolved_dependencies(self, known: Collection[BuildLabel]) -> RuleEntry:
        """Return a copy whose dependency references are resolved against ``known``.

        Parameters
        ----------
        known
            Labels present in the graph.

        Returns
        -------
        RuleEntry
            New entry with resolved references; ``self`` is left untouched.
        """
        resolved: dict[str, DependencyRef] = {}
        for text in self.dependencies:
            candidate = BuildLabel.try_parse(text)
            target = candidate if candidate is not None and candidate in known else None
            resolved[text] = DependencyRef(text=text, target=target)
        return msgspec.structs.replace(self, dependencies=_read_only(resolved))

    def to_builtins(self) -> dict[str, object]:
        """Return a JSON-ready payload for downstream consumers.

        Returns
        -------
        dict[str, object]
            Builtin representation with the label in canonical form.
        """
        return {
            "label": self.label.canonical_form(),
            "type": self.rule_type,
            "source_files": sorted(self.source_files),
            "dependencies": {
                text: (ref.target.canonical_form() if ref.target is not None else None)
                for text, ref in self.dependencies.items()
            },
            "attributes": to_builtins(dict(self.attributes)),
        }

    def __str__(self) -> str:
        return f"{self.rule_type} {self.label}"


@dataclass
class RuleEntryBuilder:
    """Mutable accumulator used while a single aspect record is parsed."""

    label: BuildLabel
    rule_type: str
    _sources: set[str] = field(default_factory=set)
    _dependencies: dict[str, None] = field(default_factory=dict)
    _attributes: dict[str, Any] = field(default_factory=dict)

    def add_source(self, path: str) -> None:
        self._sources.add(path)

    def add_dependency(self, label: BuildLabel | str) -> None:
        self._dependencies.setdefault(label_text(label), None)

    def set_attribute(self, name: str, value: Any) -> None:
        self._attributes[name] = value

    def freeze(self) -> RuleEntry:
        """Return the immutable entry with every dependency still unresolved.

        Returns
        -------
        RuleEntry
            Frozen rule entry.
        """
        return RuleEntry(
            label=self.label,
            rule_type=self.rule_type,
            source_files=frozenset(self._sources),
            dependencies=_read_only({text: DependencyRef(text=text) for text in self._dependencies}),
            attributes=_read_only(self._attributes),
        )


__all__ = ["DependencyRef", "RuleEntry", "RuleEntryBuilder"]
