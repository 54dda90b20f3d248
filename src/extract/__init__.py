"""Extraction layer.

Runs the build tool's analysis pass over requested targets and turns its
per-rule output into a label-keyed rule graph.

Module Organization:
- protocols / bazel_invoker - running the analysis pass
- aspect_records / aspect_parser - decoding one output unit
- workspace_extractor - batching, merging, and dependency resolution
- report - per-run diagnostics
"""

from __future__ import annotations

from extract.aspect_parser import AspectOutputParser, ParsedRule, normalize_source_path
from extract.bazel_invoker import BazelAspectInvoker
from extract.options import ExtractorOptions
from extract.protocols import BuildToolInvoker
from extract.report import ExtractionReport
from extract.workspace_extractor import ExtractionResult, TargetRule, WorkspaceInfoExtractor

__all__ = [
    "AspectOutputParser",
    "BazelAspectInvoker",
    "BuildToolInvoker",
    "ExtractionReport",
    "ExtractionResult",
    "ExtractorOptions",
    "ParsedRule",
    "TargetRule",
    "WorkspaceInfoExtractor",
    "normalize_source_path",
]
