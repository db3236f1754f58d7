from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def map_bounded(items: Iterable[T], worker: Callable[[T], R], limit: int) -> List[R]:
    """Run *worker* over *items* with at most *limit* calls in flight.

    Results are index-aligned with *items* whatever the completion order.
    An exception raised by *worker* propagates to the caller.
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")

    work = list(items)
    if not work:
        return []

    with ThreadPoolExecutor(
        max_workers=min(limit, len(work)), thread_name_prefix="fare-fetch"
    ) as executor:
        return list(executor.map(worker, work))


__all__ = ["map_bounded"]
