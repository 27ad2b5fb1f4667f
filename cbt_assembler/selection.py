"""Random selection of questions from a candidate pool."""

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy of ``items`` (Fisher-Yates).

    Args:
        items: Items to shuffle; not modified
        rng: Random source (defaults to the module-level generator)

    Returns:
        New list with the same items in random order
    """
    rng = rng or random
    arr = list(items)
    for i in range(len(arr) - 1, 0, -1):
        j = rng.randint(0, i)
        arr[i], arr[j] = arr[j], arr[i]
    return arr


def select(
    items: Sequence[T], count: int, rng: Optional[random.Random] = None
) -> List[T]:
    """Shuffle ``items`` and keep the first ``count``.

    Returns exactly ``min(count, len(items))`` items, so which subset of an
    over-fetched pool survives does not depend on storage order.
    """
    if count <= 0:
        return []
    return shuffle(items, rng)[:count]
