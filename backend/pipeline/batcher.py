"""Split normalized records into fixed-size, order-preserving batches."""

from __future__ import annotations

from typing import List, Sequence, TypeVar

T = TypeVar("T")


def make_batches(items: Sequence[T], batch_size: int) -> List[List[T]]:
    if batch_size <= 0:
        raise ValueError("batch_size must be a positive integer")
    return [list(items[start : start + batch_size]) for start in range(0, len(items), batch_size)]
