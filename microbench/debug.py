"""Inspection helpers for timing results and pointer chains."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Sequence


@dataclass(frozen=True)
class Sample:
    """One timing measurement: ``u`` microseconds for ``n`` iterations."""

    u: int
    n: int

    @property
    def per_iteration(self) -> float:
        return self.u / float(self.n)


def percent_point(results: Sequence[Sample], fraction: float) -> float:
    """Return microseconds per iteration at ``fraction`` of the distribution.

    ``results`` is ordered from largest to smallest, as the timing code keeps
    it; fraction 0 gives the minimum and 1 the maximum.
    """
    if not results:
        raise ValueError("no results")
    if not 0.0 <= fraction <= 1.0:
        raise ValueError("fraction must lie in [0, 1]")
    t = (1.0 - fraction) * (len(results) - 1)
    index = int(t)
    value = results[index].per_iteration
    if t == math.floor(t):
        return value
    return (value + results[index + 1].per_iteration) / 2.0


def _median_n(results: Sequence[Sample]) -> int:
    return results[len(results) // 2].n


def format_results(results: Sequence[Sample], details: bool = False) -> str:
    """Render the per-iteration times, and optionally the raw u/n pairs."""
    times = ", ".join("%.2f" % sample.per_iteration for sample in results)
    text = f"N={len(results)}, t={{{times}}}\n"
    if details:
        pairs = ", ".join(f"{sample.u}/{sample.n}" for sample in results)
        text += f"\t/* {{{pairs}}} */\n"
    return text


_QUARTILES = (0.00, 0.25, 0.50, 0.75, 1.00)


def bw_quartile(results: Sequence[Sample], nbytes: int) -> str:
    """Return a line of bandwidth (MB/s) quartiles for ``nbytes`` per iteration."""
    values = [nbytes / (1000000.0 * percent_point(results, f)) for f in _QUARTILES]
    return "%d\t" % _median_n(results) + "\t".join("%e" % v for v in values) + "\n"


def nano_quartile(results: Sequence[Sample], n: int) -> str:
    """Return a line of latency (ns) quartiles for ``n`` operations per iteration."""
    values = [percent_point(results, f) * 1000.0 / n for f in _QUARTILES]
    return "%d\t" % _median_n(results) + "\t".join("%e" % v for v in values) + "\n"


def chain_offsets(
    chain: Mapping[int, int],
    start: int,
    pagesize: int,
    line: int,
    word_size: int = 8,
) -> list[tuple[int, int, int]]:
    """Return (page, line, word) of each link of a pointer chain.

    ``chain`` maps each address to the address it points at.  The walk stops
    at the link that points back to ``start``, which is not reported.
    """
    offsets = []
    seen = set()
    p = start
    while chain[p] != start:
        if p in seen:
            raise ValueError("pointer chain does not return to its start")
        seen.add(p)
        off = p - start
        offsets.append((off // pagesize, (off % pagesize) // line, (off % line) // word_size))
        p = chain[p]
    return offsets


def check_chain(
    chain: Mapping[int, int],
    start: int,
    size: int,
    word_size: int = 8,
) -> list[str]:
    """Return the problems found in a pointer chain over ``size`` bytes."""
    problems = []
    limit = size // word_size + 1
    p = start
    steps = 0
    while True:
        target = chain.get(p)
        if target is None or target == start or steps >= limit:
            break
        if p < start or start + size <= p:
            problems.append("pointer out of range!")
        p = target
        steps += 1
    if chain.get(p) != start:
        problems.append("pointer chain doesn't loop")
    return problems