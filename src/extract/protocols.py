"""Build tool invoker protocol contract."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from build_graph.labels import BuildLabel
from core_types import RawAspectUnit


class BuildToolInvoker(Protocol):
    """Structural interface for running the analysis pass over target labels.

    Implementations block until the build tool finishes. They raise
    ``BuildToolInvocationFailed`` (or ``BuildToolCancelled``) when the process
    fails and ``BuildToolTimeout`` when it runs out of time; output of a failed
    invocation must never be returned.
    """

    def invoke(
        self,
        labels: Sequence[BuildLabel],
        *,
        startup_options: Sequence[str],
        build_options: Sequence[str],
    ) -> Iterable[RawAspectUnit]:
        """Return one raw aspect output unit per rule visited from ``labels``."""
        ...


__all__ = ["BuildToolInvoker"]
