"""Decode aspect output units into rule entries."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import PurePosixPath

import msgspec

from build_graph.errors import InvalidLabelFormat, MalformedAspectRecord
from build_graph.labels import BuildLabel
from build_graph.rule_entry import RuleEntry, RuleEntryBuilder
from core_types import PathLike, RawAspectUnit
from extract.aspect_records import AspectRecord, SourceFileRecord
from serde_msgspec import convert, loads_json, validation_error_payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedRule:
    """Rule entry decoded from one unit plus its raw dependency label strings."""

    entry: RuleEntry
    dependency_labels: tuple[str, ...]


def normalize_source_path(
    path: str,
    *,
    root: str | None = None,
    workspace_root: PathLike | None = None,
) -> str:
    """Return ``path`` in workspace-relative POSIX form.

    Parameters
    ----------
    path
        Path as emitted by the analysis pass.
    root
        Output root prefix of generated files, stripped when present.
    workspace_root
        Absolute workspace root used to relativize absolute paths.

    Returns
    -------
    str
        Normalized relative path.

    Raises
    ------
    ValueError
        Raised when the path is empty, escapes the workspace, or is absolute and
        outside ``workspace_root``.
    """
    candidate = PurePosixPath(path.replace("\\", "/"))
    if candidate.is_absolute():
        if workspace_root is None:
            msg = f"absolute source path {path!r} without a workspace root"
            raise ValueError(msg)
        base = PurePosixPath(str(workspace_root).replace("\\", "/"))
        if not candidate.is_relative_to(base):
            msg = f"source path {path!r} is outside the workspace {base}"
            raise ValueError(msg)
        candidate = candidate.relative_to(base)
    if root:
        root_path = PurePosixPath(root)
        if candidate.is_relative_to(root_path):
            candidate = candidate.relative_to(root_path)
    if ".." in candidate.parts:
        msg = f"source path {path!r} escapes the workspace"
        raise ValueError(msg)
    normalized = candidate.as_posix()
    if normalized in {"", "."}:
        msg = f"empty source path {path!r}"
        raise ValueError(msg)
    return normalized


class AspectOutputParser:
    """Turn self-contained aspect records into rule entries.

    Dependencies stay label strings because the referenced rule may appear later
    in the stream. Attributes are copied verbatim; their meaning belongs to the
    consumers of the graph.
    """

    def __init__(self, *, workspace_root: PathLike | None = None) -> None:
        self._workspace_root = workspace_root

    def parse(self, raw_unit: RawAspectUnit) -> ParsedRule:
        """Parse one aspect output unit.

        Parameters
        ----------
        raw_unit
            JSON document (bytes or str) or an already decoded mapping.

        Returns
        -------
        ParsedRule
            The frozen rule entry and its dependency label strings.

        Raises
        ------
        MalformedAspectRecord
            Raised when the unit cannot be decoded, lacks a label or rule type,
            carries an invalid label, or lists an unusable source path.
        """
        record = _decode_record(raw_unit)
        if not record.label:
            msg = "missing rule label"
            raise MalformedAspectRecord(msg)
        if not record.rule_type:
            msg = "missing rule type"
            raise MalformedAspectRecord(msg, label=record.label)
        try:
            label = BuildLabel.parse(record.label)
        except InvalidLabelFormat as exc:
            raise MalformedAspectRecord(exc.reason, label=record.label) from exc

        builder = RuleEntryBuilder(label=label, rule_type=record.rule_type)
        for source in record.srcs:
            builder.add_source(self._source_path(source, label=record.label))
        for dep in record.deps:
            builder.add_dependency(dep)
        for name, value in record.attr.items():
            builder.set_attribute(name, value)
        entry = builder.freeze()
        logger.debug(
            "Parsed %s (%d sources, %d deps)",
            entry,
            len(entry.source_files),
            len(entry.dependencies),
        )
        return ParsedRule(entry=entry, dependency_labels=tuple(entry.dependencies))

    def parse_outcome(self, raw_unit: RawAspectUnit) -> ParsedRule | MalformedAspectRecord:
        """Parse one unit, returning the per-unit error instead of raising it.

        Used when units are parsed on worker threads and merged afterwards.

        Returns
        -------
        ParsedRule | MalformedAspectRecord
            Parsed rule, or the error describing why the unit was rejected.
        """
        try:
            return self.parse(raw_unit)
        except MalformedAspectRecord as exc:
            return exc

    def _source_path(self, source: str | SourceFileRecord, *, label: str) -> str:
        if isinstance(source, SourceFileRecord):
            path, root = source.path, source.root
        else:
            path, root = source, None
        try:
            return normalize_source_path(path, root=root, workspace_root=self._workspace_root)
        except ValueError as exc:
            raise MalformedAspectRecord(str(exc), label=label) from exc


def _decode_record(raw_unit: RawAspectUnit) -> AspectRecord:
    try:
        if isinstance(raw_unit, (bytes, bytearray, memoryview, str)):
            return loads_json(raw_unit, target_type=AspectRecord)
        if isinstance(raw_unit, Mapping):
            return convert(dict(raw_unit), target_type=AspectRecord)
    except (msgspec.ValidationError, msgspec.DecodeError) as exc:
        details = validation_error_payload(exc)
        reason = details.get("summary", str(exc))
        if "path" in details:
            reason = f"{reason} at {details['path']}"
        label = raw_unit.get("label") if isinstance(raw_unit, Mapping) else None
        raise MalformedAspectRecord(
            reason, label=label if isinstance(label, str) else None
        ) from exc
    msg = f"unsupported aspect output unit of type {type(raw_unit).__name__}"
    raise MalformedAspectRecord(msg)


__all__ = ["AspectOutputParser", "ParsedRule", "normalize_source_path"]
