"""msgspec contracts for aspect output units."""

from __future__ import annotations

from typing import Any

import msgspec

from serde_msgspec import StructBaseCompat


class SourceFileRecord(StructBaseCompat, frozen=True):
    """Source file reference emitted as an object.

    ``root`` names the output root of generated files (for example
    ``bazel-out/k8-fastbuild/bin``) and is stripped during normalization.
    """

    path: str
    root: str | None = None


class AspectRecord(StructBaseCompat, frozen=True):
    """One rule as visited by the analysis pass.

    Label and type are optional here so the parser can report which one is missing
    instead of surfacing a generic validation error.
    """

    label: str | None = None
    rule_type: str | None = msgspec.field(default=None, name="type")
    srcs: tuple[str | SourceFileRecord, ...] = ()
    deps: tuple[str, ...] = ()
    attr: dict[str, Any] = msgspec.field(default_factory=dict)


__all__ = ["AspectRecord", "SourceFileRecord"]
