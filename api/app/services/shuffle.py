from __future__ import annotations

import random
from typing import Sequence, TypeVar

T = TypeVar("T")


def shuffle_permutation(n: int, seed: int) -> list[int]:
    """Fisher-Yates permutation of ``range(n)`` driven by ``random.Random(seed)``."""
    rng = random.Random(seed)
    order = list(range(n))
    for i in range(n - 1, 0, -1):
        j = rng.randint(0, i)
        order[i], order[j] = order[j], order[i]
    return order


def seeded_shuffle(items: Sequence[T], seed: int) -> list[T]:
    """Return a reproducibly shuffled copy of ``items``; the input is left untouched."""
    return [items[i] for i in shuffle_permutation(len(items), seed)]
