"""Injectable randomness for sort-order selection and pool shuffling."""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    """Subset of :class:`random.Random` the engine relies on."""

    def choice(self, seq: Sequence[T]) -> T: ...

    def randint(self, a: int, b: int) -> int: ...


def default_random_source() -> RandomSource:
    return random.Random()


def fisher_yates_shuffle(items: Iterable[T], rng: RandomSource) -> list[T]:
    """Return a new list holding ``items`` in a uniformly random order."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


__all__ = ["RandomSource", "default_random_source", "fisher_yates_shuffle"]
