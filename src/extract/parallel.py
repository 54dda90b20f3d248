"""Parallel execution helpers for aspect output parsing."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

from opentelemetry import context as otel_context

T = TypeVar("T")
U = TypeVar("U")


def parallel_map(
    items: Iterable[T],
    fn: Callable[[T], U],
    *,
    max_workers: int | None = None,
) -> Iterator[U]:
    """Map items on a thread pool, yielding results in input order.

    A single worker maps inline. Worker threads inherit the caller's
    OpenTelemetry context so spans and log correlation stay attached.

    Yields
    ------
    U
        Results produced by applying the function to each item.
    """
    workers = resolve_max_workers(max_workers)
    if workers <= 1:
        for item in items:
            yield fn(item)
        return
    current = otel_context.get_current()

    def _wrapped(item: T) -> U:
        token = otel_context.attach(current)
        try:
            return fn(item)
        finally:
            otel_context.detach(token)

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="aspectgraph-parse") as executor:
        yield from executor.map(_wrapped, items)


def resolve_max_workers(max_workers: int | None) -> int:
    """Resolve max_workers using the CPU count when unset.

    Returns
    -------
    int
        Effective worker count.
    """
    if max_workers is not None:
        return max(1, max_workers)
    return max(1, os.cpu_count() or 1)


__all__ = ["parallel_map", "resolve_max_workers"]
