"""Shared type aliases and small typing helpers."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Annotated

from msgspec import Meta

type PathLike = str | Path

type RawAspectUnit = bytes | str | Mapping[str, object]

PositiveInt = Annotated[int, Meta(gt=0)]
PositiveFloat = Annotated[float, Meta(gt=0)]

NonEmptyStr = Annotated[
    str,
    Meta(
        min_length=1,
        title="Non-empty string",
        description="String value that must not be empty.",
    ),
]


__all__ = [
    "NonEmptyStr",
    "PathLike",
    "PositiveFloat",
    "PositiveInt",
    "RawAspectUnit",
]
