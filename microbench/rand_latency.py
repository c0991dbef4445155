"""Cost of drawing pseudo-random numbers."""

from __future__ import annotations

import random
from typing import Optional

RAND_MAX = 2**31 - 1


def _rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else random.Random()


def bench_random(iterations: int, rng: Optional[random.Random] = None) -> float:
    """Draw ``iterations`` floats in [0, 1); return their sum."""
    rng = _rng(rng)
    total = 0.0
    for _ in range(iterations):
        total += rng.random()
    return total


def bench_randint(iterations: int, rng: Optional[random.Random] = None) -> int:
    """Draw ``iterations`` integers in [0, RAND_MAX]; return their sum."""
    rng = _rng(rng)
    total = 0
    for _ in range(iterations):
        total += rng.randint(0, RAND_MAX)
    return total


def bench_getrandbits(iterations: int, rng: Optional[random.Random] = None) -> int:
    """Draw ``iterations`` 31-bit integers; return their sum."""
    rng = _rng(rng)
    total = 0
    for _ in range(iterations):
        total += rng.getrandbits(31)
    return total