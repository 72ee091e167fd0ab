from typing import Iterator, List, Sequence, TypeVar

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most size items."""
    for i in range(0, len(items), size):
        yield list(items[i : i + size])


def unique(items: Sequence[T]) -> List[T]:
    """Drop duplicates, keeping first appearance order."""
    return list(dict.fromkeys(items))
