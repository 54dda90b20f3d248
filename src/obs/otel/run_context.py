"""Run-scoped context helpers for OpenTelemetry."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

_RUN_ID: ContextVar[str | None] = ContextVar("aspectgraph.run_id", default=None)


def get_run_id() -> str | None:
    """Return the current run_id, if set.

    Returns
    -------
    str | None
        Current run identifier or None.
    """
    return _RUN_ID.get()


def set_run_id(run_id: str) -> Token[str | None]:
    """Set the run_id and return the context token.

    Returns
    -------
    contextvars.Token[str | None]
        Token used to restore the previous value.
    """
    return _RUN_ID.set(run_id)


def reset_run_id(token: Token[str | None]) -> None:
    """Reset the run_id to the previous value using the token."""
    _RUN_ID.reset(token)


@contextmanager
def run_scope(run_id: str) -> Iterator[str]:
    """Bind ``run_id`` for the duration of the block.

    Yields
    ------
    str
        The bound run identifier.
    """
    token = set_run_id(run_id)
    try:
        yield run_id
    finally:
        reset_run_id(token)


__all__ = ["get_run_id", "reset_run_id", "run_scope", "set_run_id"]
