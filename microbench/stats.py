"""Descriptive statistics used to summarise benchmark measurements."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

BOOTSTRAP_COUNT = 200

Number = float


def _all_ints(values: Sequence) -> bool:
    return all(isinstance(v, int) for v in values)


def _truncating_div(numerator: int, denominator: int) -> int:
    """Integer division that rounds toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator >= 0) else -quotient


def _require(values: Sequence, count: int = 1) -> None:
    if len(values) < count:
        raise ValueError(f"need at least {count} value(s), got {len(values)}")


def median(values: Sequence[Number]) -> Number:
    """Return the median; 0 for an empty sequence.

    For integer data the average of the two middle values is truncated.
    """
    ordered = sorted(values)
    size = len(ordered)
    if size == 0:
        return 0
    middle = size // 2
    if size % 2:
        return ordered[middle]
    low, high = ordered[middle - 1], ordered[middle]
    if isinstance(low, int) and isinstance(high, int):
        return _truncating_div(low + high, 2)
    return (low + high) / 2.0


def mean(values: Sequence[Number]) -> Number:
    """Return the arithmetic mean; integer data gives a truncated integer."""
    _require(values)
    total = sum(values)
    if _all_ints(values):
        return _truncating_div(total, len(values))
    return total / float(len(values))


def minimum(values: Sequence[Number]) -> Number:
    """Return the smallest value."""
    _require(values)
    return min(values)


def maximum(values: Sequence[Number]) -> Number:
    """Return the largest value."""
    _require(values)
    return max(values)


def variance(values: Sequence[Number]) -> float:
    """Return the sample variance (divisor n - 1)."""
    _require(values, 2)
    centre = mean(values)
    return sum(float((v - centre) * (v - centre)) for v in values) / (len(values) - 1)


def moment(order: int, values: Sequence[Number]) -> float:
    """Return the central moment of the given order (divisor n)."""
    if order < 1:
        raise ValueError("moment order must be at least 1")
    _require(values)
    centre = mean(values)
    return sum(float(v - centre) ** order for v in values) / float(len(values))


def stderr(values: Sequence[Number]) -> float:
    """Return the standard deviation of the sample."""
    return math.sqrt(variance(values))


def skew(values: Sequence[Number]) -> float:
    """Return the skewness: third moment over sigma cubed."""
    sigma = stderr(values)
    return moment(3, values) / (sigma * sigma * sigma)


def kurtosis(values: Sequence[Number]) -> float:
    """Return the excess kurtosis: fourth moment over variance squared, less 3."""
    var = variance(values)
    return moment(4, values) / (var * var) - 3


def bootstrap_stderr(
    values: Sequence[Number],
    statistic: Callable[[Sequence[Number]], Number],
    rng: Optional[random.Random] = None,
) -> float:
    """Estimate the standard error of ``statistic`` by bootstrap resampling."""
    _require(values)
    rng = rng if rng is not None else random.Random()
    estimates = [
        float(statistic(rng.choices(values, k=len(values))))
        for _ in range(BOOTSTRAP_COUNT)
    ]
    centre = sum(estimates) / BOOTSTRAP_COUNT
    spread = sum((s - centre) ** 2 for s in estimates)
    return math.sqrt(spread / (BOOTSTRAP_COUNT - 1))


@dataclass(frozen=True)
class Regression:
    """Result of fitting y = a + b*x."""

    a: float
    b: float
    sig_a: float
    sig_b: float
    chi2: float


def regression(
    x: Sequence[float],
    y: Sequence[float],
    sig: Optional[Sequence[float]] = None,
) -> Regression:
    """Fit a straight line by (weighted) least squares.

    ``sig`` gives the standard deviation of each y; without it every point
    has unit weight and the coefficient errors are scaled by the fit quality.
    """
    n = len(x)
    if len(y) != n or (sig is not None and len(sig) != n):
        raise ValueError("x, y and sig must have the same length")
    if n < 2:
        raise ValueError("need at least 2 points")
    if sig is None and n < 3:
        raise ValueError("an unweighted fit needs at least 3 points")

    sigmas = list(sig) if sig is not None else [1.0] * n
    points = list(zip(x, y, sigmas))

    s = sx = sy = 0.0
    for xi, yi, si in points:
        weight = 1.0 / (si * si)
        s += weight
        sx += weight * xi
        sy += weight * yi

    sx_s = sx / s
    stt = 0.0
    b = 0.0
    for xi, yi, si in points:
        t_i = (xi - sx_s) / si
        stt += t_i * t_i
        b += t_i * yi / si

    b /= stt
    a = (sy - b * sx) / s
    sig_a = math.sqrt((1.0 + (sx * sx) / (s * stt)) / s)
    sig_b = math.sqrt(1.0 / stt)

    chi2 = sum(((yi - (a + b * xi)) / si) ** 2 for xi, yi, si in points)
    if sig is None:
        scale = math.sqrt(chi2 / (n - 2))
        sig_a *= scale
        sig_b *= scale
    return Regression(a=a, b=b, sig_a=sig_a, sig_b=sig_b, chi2=chi2)