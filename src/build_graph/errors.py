"""Error types raised while building rule graphs from aspect output."""

from __future__ import annotations

from collections.abc import Sequence


class BuildGraphError(Exception):
    """Base class for rule graph errors."""


class InvalidLabelFormat(BuildGraphError, ValueError):
    """Raised when a label string is not a valid build label."""

    def __init__(self, text: str, reason: str) -> None:
        self.text = text
        self.reason = reason
        msg = f"Invalid build label {text!r}: {reason}"
        super().__init__(msg)


class MalformedAspectRecord(BuildGraphError, ValueError):
    """Raised when a single aspect output unit cannot be turned into a rule entry."""

    def __init__(self, reason: str, *, label: str | None = None) -> None:
        self.reason = reason
        self.label = label
        msg = f"Malformed aspect record: {reason}"
        if label is not None:
            msg = f"Malformed aspect record for {label}: {reason}"
        super().__init__(msg)


class DuplicateRuleDefinition(BuildGraphError, ValueError):
    """Raised when the analysis pass emits the same label more than once."""

    def __init__(self, label: str, *, first_type: str, duplicate_type: str) -> None:
        self.label = label
        self.first_type = first_type
        self.duplicate_type = duplicate_type
        msg = (
            f"Duplicate rule definition for {label} "
            f"(kept {first_type}, dropped {duplicate_type})"
        )
        super().__init__(msg)


class BuildToolInvocationFailed(BuildGraphError, RuntimeError):
    """Raised when the build tool could not run or exited unsuccessfully."""

    def __init__(
        self,
        reason: str,
        *,
        cmd: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.reason = reason
        self.cmd = tuple(cmd)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Build tool invocation failed: {reason}"
        if returncode is not None:
            msg = f"{msg} (rc={returncode})"
        if stderr:
            msg = f"{msg}\nstderr:\n{stderr}"
        super().__init__(msg)


class BuildToolCancelled(BuildToolInvocationFailed):
    """Raised when the build tool process was terminated before completing."""


class BuildToolTimeout(BuildGraphError, TimeoutError):
    """Raised when the build tool did not finish within the configured timeout."""

    def __init__(self, timeout_s: float, *, cmd: Sequence[str] = ()) -> None:
        self.timeout_s = timeout_s
        self.cmd = tuple(cmd)
        msg = f"Build tool invocation timed out after {timeout_s:g}s"
        super().__init__(msg)


__all__ = [
    "BuildGraphError",
    "BuildToolCancelled",
    "BuildToolInvocationFailed",
    "BuildToolTimeout",
    "DuplicateRuleDefinition",
    "InvalidLabelFormat",
    "MalformedAspectRecord",
]
