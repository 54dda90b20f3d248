"""Typed options for workspace info extraction."""

from __future__ import annotations

from core_types import NonEmptyStr, PositiveFloat, PositiveInt
from serde_msgspec import StructBaseStrict

DEFAULT_BAZEL_BIN = "bazel"
DEFAULT_ASPECT = "@aspectgraph//:aspect.bzl%rule_info_aspect"
DEFAULT_OUTPUT_GROUP = "aspectgraph-info"
DEFAULT_INFO_SUFFIX = ".aspectgraph.json"


class ExtractorOptions(StructBaseStrict, frozen=True):
    """Configuration for invoking the analysis pass and assembling the graph.

    Constraints on the annotated fields are enforced when options are decoded
    from configuration (see ``config.load_extractor_options``).
    """

    bazel_bin: NonEmptyStr = DEFAULT_BAZEL_BIN
    aspect: NonEmptyStr = DEFAULT_ASPECT
    output_group: NonEmptyStr = DEFAULT_OUTPUT_GROUP
    info_suffix: NonEmptyStr = DEFAULT_INFO_SUFFIX
    startup_options: tuple[str, ...] = ()
    build_options: tuple[str, ...] = ()
    timeout_s: PositiveFloat | None = None
    max_batch_size: PositiveInt | None = None
    parse_workers: PositiveInt = 1
    workspace_root: str | None = None


__all__ = [
    "DEFAULT_ASPECT",
    "DEFAULT_BAZEL_BIN",
    "DEFAULT_INFO_SUFFIX",
    "DEFAULT_OUTPUT_GROUP",
    "ExtractorOptions",
]
