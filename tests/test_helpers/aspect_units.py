"""Builders for raw aspect output units used across tests."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import msgspec

PACKAGE = "sample"
APPLICATION = f"//{PACKAGE}:Application"
BINARY = f"//{PACKAGE}:Binary"
LIBRARY = f"//{PACKAGE}:Library"
XCTEST = f"//{PACKAGE}:XCTest"

LIBRARY_SOURCES = (
    f"{PACKAGE}/path/to/src1.m",
    f"{PACKAGE}/path/to/src2.m",
    f"{PACKAGE}/path/to/src3.m",
    f"{PACKAGE}/path/to/src4.m",
)


def aspect_payload(
    label: str | None,
    rule_type: str | None,
    *,
    srcs: Sequence[object] = (),
    deps: Sequence[str] = (),
    attr: Mapping[str, object] | None = None,
) -> dict[str, object]:
    """Return a decoded aspect record mapping, omitting ``None`` label/type."""
    payload: dict[str, object] = {
        "srcs": list(srcs),
        "deps": list(deps),
        "attr": dict(attr or {}),
    }
    if label is not None:
        payload["label"] = label
    if rule_type is not None:
        payload["type"] = rule_type
    return payload


def aspect_unit(
    label: str | None,
    rule_type: str | None,
    *,
    srcs: Sequence[object] = (),
    deps: Sequence[str] = (),
    attr: Mapping[str, object] | None = None,
) -> bytes:
    """Return an aspect record encoded the way the info files store it."""
    return msgspec.json.encode(
        aspect_payload(label, rule_type, srcs=srcs, deps=deps, attr=attr)
    )


def simple_workspace_units() -> list[bytes]:
    """Return units for an app -> binary -> library chain plus a test bundle."""
    return [
        aspect_unit(APPLICATION, "ios_application", deps=[BINARY]),
        aspect_unit(
            BINARY,
            "objc_binary",
            srcs=[f"{PACKAGE}/main.m"],
            deps=[LIBRARY],
        ),
        aspect_unit(LIBRARY, "objc_library", srcs=LIBRARY_SOURCES),
        aspect_unit(
            XCTEST,
            "ios_test",
            srcs=[f"{PACKAGE}/test/src1.mm"],
            deps=[LIBRARY],
            attr={"xctest_app": APPLICATION},
        ),
    ]
