"""
Seeded random engine for reproducible question generation.

A small linear congruential generator with an explicit state object.
The constants are fixed so the same seed yields the same sequence in every
process and on every platform; the global ``random`` module is never used.
"""
from __future__ import annotations

import math
from typing import Sequence, TypeVar

T = TypeVar("T")

LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280


class SeededRandom:
    """
    Deterministic PRNG with Fisher-Yates shuffle and sampling helpers.

    Usage:
        rng = SeededRandom(777)
        rng.next()               # float in [0, 1)
        rng.shuffle([1, 2, 3])   # new list, input untouched
        rng.sample(items, 2)
    """

    __slots__ = ("seed", "state")

    def __init__(self, seed: int):
        self.seed = int(seed)
        self.state = self.seed % LCG_MODULUS

    def next(self) -> float:
        """Advance the state and return a float in [0, 1)."""
        self.state = (self.state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self.state / LCG_MODULUS

    def randbelow(self, n: int) -> int:
        """Integer in [0, n)."""
        return math.floor(self.next() * n)

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Return a shuffled copy (Fisher-Yates, walking from the end)."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.randbelow(i + 1)
            result[i], result[j] = result[j], result[i]
        return result

    def sample(self, items: Sequence[T], k: int) -> list[T]:
        """
        Shuffle then take the first ``k``.

        ``k <= 0`` gives an empty list; ``k >= len(items)`` gives the whole
        shuffled list. The shuffle always runs, so the state advances the
        same way regardless of ``k``.
        """
        shuffled = self.shuffle(items)
        if k <= 0:
            return []
        return shuffled[:k]

    def __repr__(self) -> str:
        return f"SeededRandom(seed={self.seed}, state={self.state})"
