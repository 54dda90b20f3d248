"""Batching helpers for build tool invocations."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from itertools import batched


def invocation_batches[T](
    items: Sequence[T],
    *,
    max_batch_size: int | None,
) -> Iterator[tuple[T, ...]]:
    """Yield invocation batches of at most ``max_batch_size`` items.

    Parameters
    ----------
    items
        Items to split, in request order.
    max_batch_size
        Maximum batch size, or ``None`` for a single batch.

    Yields
    ------
    tuple[T, ...]
        Non-empty batches preserving item order.
    """
    if not items:
        return
    if max_batch_size is None:
        yield tuple(items)
        return
    yield from batched(items, max(1, max_batch_size))


__all__ = ["invocation_batches"]
