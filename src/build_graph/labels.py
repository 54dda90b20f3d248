"""Canonical build labels used as rule graph keys."""

from __future__ import annotations

import re
from typing import Self

from build_graph.errors import InvalidLabelFormat
from serde_msgspec import StructBaseHotPath

PACKAGE_PREFIX = "//"
TARGET_SEPARATOR = ":"
REPOSITORY_PREFIX = "@"

_REPOSITORY_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.\-~+]*$")
_PACKAGE_SEGMENT_RE = re.compile(r"^[A-Za-z0-9!#$%&()*+,\-.;<=>?@\[\]^_{|}~]+$")
_TARGET_NAME_RE = re.compile(r"^[A-Za-z0-9!#$%&()*+,\-./;<=>?@\[\]^_{|}~]+$")
_DOT_SEGMENTS = frozenset({".", ".."})


class BuildLabel(StructBaseHotPath, frozen=True, order=True):
    """Validated identifier of a build target.

    Two labels are equal exactly when their canonical forms are equal, since the
    canonical form is derived one-to-one from the validated fields.
    """

    package: tuple[str, ...]
    name: str
    repository: str = ""

    def __post_init__(self) -> None:
        """Validate label components.

        Raises
        ------
        InvalidLabelFormat
            Raised when a component contains disallowed characters.
        """
        text = self.canonical_form()
        if self.repository and _REPOSITORY_RE.match(self.repository) is None:
            raise InvalidLabelFormat(text, f"invalid repository name {self.repository!r}")
        for segment in self.package:
            if segment in _DOT_SEGMENTS:
                raise InvalidLabelFormat(text, f"package segment {segment!r} is not allowed")
            if _PACKAGE_SEGMENT_RE.match(segment) is None:
                raise InvalidLabelFormat(text, f"invalid package segment {segment!r}")
        _validate_target_name(text, self.name)

    @classmethod
    def parse(cls, text: str) -> Self:
        """Parse a label string such as ``//pkg/path:target``.

        Parameters
        ----------
        text
            Label string, optionally prefixed with ``@repository``.

        Returns
        -------
        BuildLabel
            Parsed label.

        Raises
        ------
        InvalidLabelFormat
            Raised when the package prefix or target separator is missing, or when a
            component contains disallowed characters.
        """
        if not isinstance(text, str):
            raise InvalidLabelFormat(repr(text), "label must be a string")
        repository = ""
        rest = text
        if text.startswith(REPOSITORY_PREFIX):
            index = text.find(PACKAGE_PREFIX)
            if index < 0:
                raise InvalidLabelFormat(text, "missing '//' package prefix")
            repository = text[len(REPOSITORY_PREFIX) : index]
            if not repository:
                raise InvalidLabelFormat(text, "empty repository name")
            rest = text[index:]
        if not rest.startswith(PACKAGE_PREFIX):
            raise InvalidLabelFormat(text, "missing '//' package prefix")
        body = rest[len(PACKAGE_PREFIX) :]
        if TARGET_SEPARATOR not in body:
            raise InvalidLabelFormat(text, "missing ':' target separator")
        package_text, _, name = body.partition(TARGET_SEPARATOR)
        segments = tuple(package_text.split("/")) if package_text else ()
        if any(not segment for segment in segments):
            raise InvalidLabelFormat(text, "empty package segment")
        return cls(package=segments, name=name, repository=repository)

    @classmethod
    def try_parse(cls, text: str) -> Self | None:
        """Parse a label string, returning ``None`` when it is invalid.

        Returns
        -------
        BuildLabel | None
            Parsed label, or ``None`` for invalid input.
        """
        try:
            return cls.parse(text)
        except InvalidLabelFormat:
            return None

    @property
    def package_path(self) -> str:
        """Return the slash-joined package path."""
        return "/".join(self.package)

    def canonical_form(self) -> str:
        """Return the canonical ``//package:target`` string.

        Returns
        -------
        str
            Canonical label string.
        """
        prefix = f"{REPOSITORY_PREFIX}{self.repository}" if self.repository else ""
        return f"{prefix}{PACKAGE_PREFIX}{self.package_path}{TARGET_SEPARATOR}{self.name}"

    def __str__(self) -> str:
        return self.canonical_form()


def _validate_target_name(text: str, name: str) -> None:
    if not name:
        raise InvalidLabelFormat(text, "empty target name")
    if _TARGET_NAME_RE.match(name) is None:
        raise InvalidLabelFormat(text, f"invalid target name {name!r}")
    if name.startswith("/") or name.endswith("/") or "//" in name:
        raise InvalidLabelFormat(text, f"invalid target name {name!r}")
    if any(part in _DOT_SEGMENTS for part in name.split("/")):
        raise InvalidLabelFormat(text, f"target name {name!r} contains a '.' or '..' segment")


def label_text(label: BuildLabel | str) -> str:
    """Return the canonical string for a label or label string.

    Returns
    -------
    str
        Canonical form for labels, the input unchanged for strings.
    """
    if isinstance(label, BuildLabel):
        return label.canonical_form()
    return label


__all__ = ["BuildLabel", "label_text"]
