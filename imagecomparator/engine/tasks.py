"""
Task generation for the engine package.

Enumerates every unordered image pair of a run as ComparisonUnits and splits
them into batches. All functions here are pure functions of the image count
and batch size.
"""

from __future__ import annotations

from itertools import islice
from typing import Iterable, Iterator, TypeVar

from ..config import DEFAULT_BATCH_SIZE
from ..models import ComparisonUnit

T = TypeVar('T')


def _check_batch_size(batch_size: int) -> None:
    if batch_size < 0:
        raise ValueError(f"Batch size must be >= 0, got {batch_size}")


def count_units(image_count: int) -> int:
    """Number of unordered pairs among image_count images: n * (n - 1) / 2."""
    if image_count < 2:
        return 0
    return image_count * (image_count - 1) // 2


def count_batches(image_count: int, batch_size: int = DEFAULT_BATCH_SIZE) -> int:
    """
    Number of batches create_tasks() returns for image_count images.

    A batch size of 0 always yields exactly one batch.
    """
    _check_batch_size(batch_size)
    if batch_size == 0:
        return 1
    return -(-count_units(image_count) // batch_size)


def enumerate_units(image_count: int) -> Iterator[ComparisonUnit]:
    """
    Yield every unordered pair once, in (i, j) lexicographic order.

    Examples:
        >>> [(u.source_index, u.compare_index) for u in enumerate_units(3)]
        [(0, 1), (0, 2), (1, 2)]
    """
    for i in range(image_count):
        for j in range(i + 1, image_count):
            yield ComparisonUnit(i, j)


def split(items: list[T], batch_size: int) -> list[list[T]]:
    """
    Split items into consecutive groups of batch_size.

    Args:
        items: Sequence to split
        batch_size: Group size; 0 returns a single group holding everything

    Returns:
        List of groups; every group but the last has exactly batch_size items
    """
    _check_batch_size(batch_size)
    if batch_size == 0:
        return [list(items)]
    return [list(items[start:start + batch_size]) for start in range(0, len(items), batch_size)]


def create_tasks(image_count: int, batch_size: int = DEFAULT_BATCH_SIZE) -> list[list[ComparisonUnit]]:
    """
    Build all comparison units for image_count images, split into batches.

    Args:
        image_count: Number of images in the run
        batch_size: Units per batch (0 = one batch)

    Returns:
        List of batches in global enumeration order
    """
    return split(list(enumerate_units(image_count)), batch_size)


def iter_batches(
    image_count: int,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> Iterator[list[ComparisonUnit]]:
    """
    Lazily yield the same batches as create_tasks().

    Only one batch is held in memory at a time.
    """
    _check_batch_size(batch_size)
    units: Iterable[ComparisonUnit] = enumerate_units(image_count)
    if batch_size == 0:
        yield list(units)
        return
    iterator = iter(units)
    while True:
        batch = list(islice(iterator, batch_size))
        if not batch:
            return
        yield batch


__all__ = [
    'count_units',
    'count_batches',
    'enumerate_units',
    'split',
    'create_tasks',
    'iter_batches',
]
