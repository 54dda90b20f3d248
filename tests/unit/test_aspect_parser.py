"""Tests for decoding aspect output units."""

from __future__ import annotations

from pathlib import Path

import pytest

from build_graph.errors import MalformedAspectRecord
from build_graph.labels import BuildLabel
from extract.aspect_parser import AspectOutputParser, ParsedRule, normalize_source_path
from tests.test_helpers.aspect_units import (
    BINARY,
    LIBRARY,
    LIBRARY_SOURCES,
    aspect_payload,
    aspect_unit,
)


def test_parse_bytes_unit() -> None:
    """A JSON unit yields a frozen entry with its sources and dependency strings."""
    parsed = AspectOutputParser().parse(
        aspect_unit(BINARY, "objc_binary", srcs=["sample/main.m"], deps=[LIBRARY])
    )
    assert isinstance(parsed, ParsedRule)
    assert parsed.entry.label == BuildLabel.parse(BINARY)
    assert parsed.entry.rule_type == "objc_binary"
    assert parsed.entry.source_files == frozenset({"sample/main.m"})
    assert parsed.dependency_labels == (LIBRARY,)
    assert parsed.entry.unresolved_dependencies() == (LIBRARY,)


def test_parse_accepts_text_and_mapping_units() -> None:
    """Decoded mappings and JSON text parse to the same entry."""
    parser = AspectOutputParser()
    from_text = parser.parse(aspect_unit(LIBRARY, "objc_library", srcs=LIBRARY_SOURCES).decode())
    from_mapping = parser.parse(aspect_payload(LIBRARY, "objc_library", srcs=LIBRARY_SOURCES))
    assert from_text.entry == from_mapping.entry
    assert from_text.entry.source_files == frozenset(LIBRARY_SOURCES)


def test_attributes_are_copied_verbatim() -> None:
    """Unknown attribute names and nested values survive untouched."""
    attr = {"xctest_app": "//sample:Application", "nested": {"flags": ["-a", "-b"], "n": 3}}
    parsed = AspectOutputParser().parse(aspect_unit("//sample:XCTest", "ios_test", attr=attr))
    assert parsed.entry.attribute("xctest_app") == "//sample:Application"
    assert parsed.entry.attribute("nested") == {"flags": ["-a", "-b"], "n": 3}
    assert parsed.entry.attribute("absent") is None


def test_unknown_top_level_fields_are_ignored() -> None:
    """Fields added by newer aspect versions do not break parsing."""
    payload = aspect_payload(LIBRARY, "objc_library")
    payload["future_field"] = {"anything": True}
    assert AspectOutputParser().parse(payload).entry.label == BuildLabel.parse(LIBRARY)


def test_missing_label_is_malformed() -> None:
    """A unit without a label is rejected."""
    with pytest.raises(MalformedAspectRecord) as excinfo:
        AspectOutputParser().parse(aspect_unit(None, "objc_library"))
    assert excinfo.value.reason == "missing rule label"
    assert excinfo.value.label is None


def test_missing_type_is_malformed_and_names_the_label() -> None:
    """A unit without a rule type is rejected with its label attached."""
    with pytest.raises(MalformedAspectRecord) as excinfo:
        AspectOutputParser().parse(aspect_unit(LIBRARY, None))
    assert excinfo.value.reason == "missing rule type"
    assert excinfo.value.label == LIBRARY


def test_invalid_label_is_malformed() -> None:
    """A syntactically invalid rule label rejects the unit."""
    with pytest.raises(MalformedAspectRecord) as excinfo:
        AspectOutputParser().parse(aspect_unit("sample:Library", "objc_library"))
    assert excinfo.value.label == "sample:Library"


@pytest.mark.parametrize(
    "raw",
    [
        b"{not json",
        b"[1, 2, 3]",
        b'{"label": "//a:b", "type": "t", "deps": "//a:c"}',
        b'{"label": 7, "type": "t"}',
    ],
)
def test_undecodable_units_are_malformed(raw: bytes) -> None:
    """Decode and shape errors surface as MalformedAspectRecord."""
    with pytest.raises(MalformedAspectRecord):
        AspectOutputParser().parse(raw)


def test_shape_error_reports_field_path() -> None:
    """Validation failures point at the offending field."""
    with pytest.raises(MalformedAspectRecord, match=r"\$\.deps"):
        AspectOutputParser().parse(b'{"label": "//a:b", "type": "t", "deps": "//a:c"}')


def test_unsupported_unit_type_is_malformed() -> None:
    """Units must be JSON text, bytes, or a mapping."""
    with pytest.raises(MalformedAspectRecord, match="unsupported aspect output unit"):
        AspectOutputParser().parse(42)  # type: ignore[arg-type]


def test_parse_outcome_returns_error_instead_of_raising() -> None:
    """parse_outcome hands back the per-unit error."""
    outcome = AspectOutputParser().parse_outcome(aspect_unit(None, "objc_library"))
    assert isinstance(outcome, MalformedAspectRecord)


def test_generated_source_root_is_stripped() -> None:
    """Source objects carrying an output root resolve to package-relative paths."""
    parsed = AspectOutputParser().parse(
        aspect_unit(
            LIBRARY,
            "objc_library",
            srcs=[
                {
                    "path": "bazel-out/k8-fastbuild/bin/sample/gen.m",
                    "root": "bazel-out/k8-fastbuild/bin",
                }
            ],
        )
    )
    assert parsed.entry.source_files == frozenset({"sample/gen.m"})


def test_absolute_sources_are_relativized_against_workspace(tmp_path: Path) -> None:
    """Absolute paths inside the workspace become workspace-relative."""
    parser = AspectOutputParser(workspace_root=tmp_path)
    parsed = parser.parse(
        aspect_unit(LIBRARY, "objc_library", srcs=[f"{tmp_path.as_posix()}/sample/a.m"])
    )
    assert parsed.entry.source_files == frozenset({"sample/a.m"})


def test_escaping_source_path_is_malformed() -> None:
    """A source path leaving the workspace rejects the unit."""
    with pytest.raises(MalformedAspectRecord, match="escapes the workspace") as excinfo:
        AspectOutputParser().parse(aspect_unit(LIBRARY, "objc_library", srcs=["../outside.m"]))
    assert excinfo.value.label == LIBRARY


@pytest.mark.parametrize(
    ("path", "kwargs", "expected"),
    [
        ("./sample//a.m", {}, "sample/a.m"),
        ("sample\\win\\b.m", {}, "sample/win/b.m"),
        ("/ws/sample/c.m", {"workspace_root": "/ws"}, "sample/c.m"),
        ("out/bin/sample/d.m", {"root": "out/bin"}, "sample/d.m"),
        ("sample/e.m", {"root": "out/bin"}, "sample/e.m"),
    ],
)
def test_normalize_source_path(path: str, kwargs: dict[str, str], expected: str) -> None:
    """Paths normalize to workspace-relative POSIX form."""
    assert normalize_source_path(path, **kwargs) == expected


@pytest.mark.parametrize(
    ("path", "kwargs"),
    [
        ("", {}),
        (".", {}),
        ("a/../../b.m", {}),
        ("/abs/a.m", {}),
        ("/elsewhere/a.m", {"workspace_root": "/ws"}),
    ],
)
def test_normalize_source_path_rejects_unusable_paths(path: str, kwargs: dict[str, str]) -> None:
    """Empty, escaping, and foreign absolute paths are rejected."""
    with pytest.raises(ValueError):
        normalize_source_path(path, **kwargs)
