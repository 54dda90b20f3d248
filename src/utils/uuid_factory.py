"""Time-ordered identifier helpers for extraction runs."""

from __future__ import annotations

import threading
import uuid
from typing import Final

import uuid6

_UUID_LOCK: Final[threading.Lock] = threading.Lock()


def uuid7() -> uuid.UUID:
    """Return a time-ordered UUIDv7 (thread-safe, monotone)."""
    with _UUID_LOCK:
        return uuid6.uuid7()


def run_id() -> str:
    """Return a sortable run identifier string.

    Returns
    -------
    str
        String form of a fresh UUIDv7.
    """
    return str(uuid7())


__all__ = ["run_id", "uuid7"]
