"""Pointer chains laid out through memory for latency measurements.

Memory is modelled as a map from byte offsets (relative to a page-aligned
base at 0) to the offset each stored pointer refers to.  The layouts match
those used to probe caches, lines and TLBs: a benchmark follows the chain
from one of the start pointers in ``MemState.p``.
"""

from __future__ import annotations

import mmap
import random
import struct
from typing import Dict, List, Optional

MAX_MEM_PARALLELISM = 16
WORD_SIZE = struct.calcsize("P")


class MemState:
    """Layout parameters and the resulting pointer chain."""

    def __init__(
        self,
        length: int,
        line: int = 64,
        pagesize: int = mmap.PAGESIZE,
        width: int = 1,
        maxlen: Optional[int] = None,
    ) -> None:
        if length <= 0:
            raise ValueError("length must be positive")
        if line < WORD_SIZE or line % WORD_SIZE:
            raise ValueError(f"line must be a positive multiple of {WORD_SIZE}")
        if pagesize < line:
            raise ValueError("pagesize must be at least one line")
        if not 1 <= width <= MAX_MEM_PARALLELISM:
            raise ValueError(f"width must lie in [1, {MAX_MEM_PARALLELISM}]")
        maxlen = length if maxlen is None else maxlen
        if maxlen < length:
            raise ValueError("maxlen must be at least length")
        self.length = length
        self.maxlen = maxlen
        self.line = line
        self.pagesize = pagesize
        self.width = width
        self.initialized = False
        self.nlines = 0
        self.npages = 0
        self.nwords = 0
        self.pages: List[int] = []
        self.lines: List[int] = []
        self.words: List[int] = []
        self.p: List[Optional[int]] = [None] * MAX_MEM_PARALLELISM
        self.chain: Dict[int, int] = {}

    def cleanup(self) -> None:
        """Drop the chain and the layout tables."""
        self.chain = {}
        self.pages = []
        self.lines = []
        self.words = []
        self.p = [None] * MAX_MEM_PARALLELISM
        self.initialized = False


def _rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else random.Random()


def _permutation(count: int, scale: int, rng: random.Random) -> List[int]:
    values = [i * scale for i in range(count)]
    rng.shuffle(values)
    return values


def words_initialize(count: int, scale: int) -> List[int]:
    """Return ``count`` bit-reversed indices, each multiplied by ``scale``.

    Bits are reversed within the width of ``count >> 1``; for a power of two
    the result is a permutation of ``0, scale, ..., (count-1)*scale``.
    """
    if count < 0:
        raise ValueError("count must not be negative")
    nbits = (count >> 1).bit_length()
    words = []
    for i in range(count):
        reversed_bits = 0
        for j in range(nbits):
            if i & (1 << j):
                reversed_bits |= 1 << (nbits - j - 1)
        words.append(reversed_bits * scale)
    return words


def base_initialize(state: MemState, rng: Optional[random.Random] = None) -> None:
    """Reset the chain and choose a random page order."""
    rng = _rng(rng)
    state.cleanup()
    state.nwords = state.line // WORD_SIZE
    state.nlines = state.pagesize // state.line
    state.npages = (state.length + state.pagesize - 1) // state.pagesize
    nmpages = (state.maxlen + state.pagesize - 1) // state.pagesize
    state.pages = _permutation(nmpages, state.pagesize, rng)
    state.initialized = True


def stride_initialize(state: MemState, rng: Optional[random.Random] = None) -> None:
    """Link every line in address order, the last back to the first."""
    base_initialize(state, rng)
    offsets = list(range(0, state.length, state.line))
    for here, there in zip(offsets, offsets[1:]):
        state.chain[here] = there
    state.chain[offsets[-1]] = 0
    state.p[0] = 0


def thrash_initialize(state: MemState, rng: Optional[random.Random] = None) -> None:
    """Link lines so that each access lands on a different page."""
    base_initialize(state, rng)
    chain = state.chain
    if state.length % state.pagesize:
        state.nwords = state.length // state.line
        words = state.words = words_initialize(state.nwords, state.line)
        for here, there in zip(words, words[1:]):
            chain[here] = there
        chain[words[-1]] = 0
        state.p[0] = 0
        return

    nwords = state.nwords = state.pagesize // state.line
    words = state.words = words_initialize(nwords, state.line)
    pages = state.pages
    last = state.npages - 1
    for i in range(last):
        cpage, npage = pages[i], pages[i + 1]
        for j in range(nwords):
            chain[cpage + words[(i + j) % nwords]] = npage + words[(i + j + 1) % nwords]
    cpage, npage = pages[last], pages[0]
    for j in range(nwords):
        chain[cpage + words[(last + j) % nwords]] = npage + words[(j + 1) % nwords]
    state.p[0] = pages[0]


def mem_initialize(state: MemState, rng: Optional[random.Random] = None) -> None:
    """Thread the chain through every line of a page before the next page.

    Line order and page order are random, and each word of a line starts a
    strand of its own; ``state.width`` start pointers are spread evenly.
    """
    base_initialize(state, rng)
    state.initialized = False
    npointers = state.length // state.line
    spacing = npointers // state.width
    if spacing == 0:
        raise ValueError("width exceeds the number of lines")
    nwords, nlines, npages = state.nwords, state.nlines, state.npages
    words = state.words = words_initialize(nwords, WORD_SIZE)
    lines = state.lines = words_initialize(nlines, state.line)
    pages = state.pages
    chain = state.chain

    link = 0
    j = 0
    for i in range(npages):
        j = 0
        while j < nlines - 1 and link < npointers - 1:
            for k in range(0, state.line, WORD_SIZE):
                chain[pages[i] + lines[j] + k] = pages[i] + lines[j + 1] + k
            if link % spacing == 0 and link // spacing < MAX_MEM_PARALLELISM:
                index = link // spacing
                state.p[index] = pages[i] + lines[j] + words[index % nwords]
            j += 1
            link += 1
        if i < npages - 1:
            for word in words:
                chain[pages[i] + lines[j] + word] = pages[i + 1] + lines[0] + word
    for k, word in enumerate(words):
        nxt = 0 if k == nwords - 1 else k + 1
        chain[pages[npages - 1] + lines[j] + word] = pages[0] + lines[0] + words[nxt]
    state.initialized = True


def line_initialize(state: MemState, rng: Optional[random.Random] = None) -> None:
    """Link the first word of every line, page by page in random order."""
    base_initialize(state, rng)
    state.initialized = False
    nlines, npages = state.nlines, state.npages
    lines = state.lines = words_initialize(nlines, state.line)
    pages = state.pages
    state.width = 1
    chain = state.chain
    for i in range(npages):
        for here, there in zip(lines, lines[1:]):
            chain[pages[i] + here] = pages[i] + there
        following = pages[i + 1] if i < npages - 1 else pages[0]
        chain[pages[i] + lines[nlines - 1]] = following + lines[0]
    state.p[0] = pages[0] + lines[0]
    state.initialized = True


def tlb_initialize(state: MemState, rng: Optional[random.Random] = None) -> None:
    """Link one word on each page so every access touches a new page."""
    rng = _rng(rng)
    state.cleanup()
    pagesize = state.pagesize
    nlines = pagesize // WORD_SIZE
    npages = state.length // pagesize
    if npages < 1:
        raise ValueError("length must cover at least one page")
    lines = words_initialize(nlines, WORD_SIZE)
    pages = [i * pagesize for i in range(npages)]

    # shuffle every page but the first
    for i in range(npages - 2, 0, -1):
        k = rng.randrange(i) + 1
        pages[k], pages[i + 1] = pages[i + 1], pages[k]

    state.nwords = 1
    state.nlines = nlines
    state.npages = npages
    state.lines = lines
    state.pages = pages
    chain = state.chain
    for i in range(npages - 1):
        chain[pages[i] + lines[i % nlines]] = pages[i + 1] + lines[(i + 1) % nlines]
    last = npages - 1
    chain[pages[last] + lines[last % nlines]] = pages[0] + lines[0]
    state.p[0] = pages[0] + lines[0]
    state.initialized = True


def walk(state: MemState, start: int, steps: int) -> int:
    """Follow the chain ``steps`` links from ``start`` and return where it ends."""
    if steps < 0:
        raise ValueError("steps must not be negative")
    p = start
    for _ in range(steps):
        try:
            p = state.chain[p]
        except KeyError:
            raise ValueError(f"no pointer stored at offset {p}") from None
    return p


def chain_length(state: MemState, start: int) -> int:
    """Return the number of links in the loop that begins at ``start``."""
    seen = set()
    p = start
    count = 0
    while True:
        if p in seen:
            raise ValueError("pointer chain doesn't loop back to its start")
        seen.add(p)
        try:
            p = state.chain[p]
        except KeyError:
            raise ValueError(f"no pointer stored at offset {p}") from None
        count += 1
        if p == start:
            return count