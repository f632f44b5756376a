"""List helpers for batch APIs."""

from typing import List, Sequence, TypeVar

T = TypeVar("T")


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """Split items into consecutive groups of at most `size` elements."""
    if size <= 0:
        raise ValueError("size must be positive")
    return [list(items[index:index + size]) for index in range(0, len(items), size)]
