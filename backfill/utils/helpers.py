from typing import Iterable, Iterator, List, Optional, TypeVar

T = TypeVar("T")


def chunked(items: Iterable[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive lists of at most `size` items."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    batch: List[T] = []
    for item in items:
        batch.append(item)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


def as_text(value) -> Optional[str]:
    """Normalize a document field to a string, mapping None to None."""
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def is_blank(value) -> bool:
    return value is None or value == ""
