import random

import pytest

from microbench.memory import (
    MAX_MEM_PARALLELISM,
    WORD_SIZE,
    MemState,
    base_initialize,
    chain_length,
    line_initialize,
    mem_initialize,
    stride_initialize,
    thrash_initialize,
    tlb_initialize,
    walk,
    words_initialize,
)

PAGE = 4096
LINE = 64


def rng():
    return random.Random(1234)


def test_words_initialize_bit_reversal():
    assert words_initialize(8, 1) == [0, 4, 2, 6, 1, 5, 3, 7]


@pytest.mark.parametrize("count", [1, 2, 16, 64])
def test_words_initialize_is_permutation_for_powers_of_two(count):
    words = words_initialize(count, LINE)
    assert sorted(words) == [i * LINE for i in range(count)]
    assert words[0] == 0


def test_words_initialize_negative_count():
    with pytest.raises(ValueError):
        words_initialize(-1, 1)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"length": 0},
        {"length": PAGE, "line": 3},
        {"length": PAGE, "line": LINE, "pagesize": 32},
        {"length": PAGE, "width": 0},
        {"length": PAGE, "width": MAX_MEM_PARALLELISM + 1},
        {"length": PAGE, "maxlen": PAGE - 1},
    ],
)
def test_memstate_rejects_bad_parameters(kwargs):
    with pytest.raises(ValueError):
        MemState(**kwargs)


def test_base_initialize_pages_cover_maxlen():
    state = MemState(2 * PAGE, LINE, PAGE, 1, 4 * PAGE)
    base_initialize(state, rng())
    assert sorted(state.pages) == [i * PAGE for i in range(4)]
    assert state.npages == 2
    assert state.nlines == PAGE // LINE
    assert state.nwords == LINE // WORD_SIZE
    assert state.initialized


def test_stride_chain_visits_every_line_in_order():
    state = MemState(PAGE, LINE, PAGE)
    stride_initialize(state, rng())
    assert state.p[0] == 0
    assert chain_length(state, 0) == PAGE // LINE
    assert walk(state, 0, 1) == LINE
    assert walk(state, 0, PAGE // LINE) == 0


def test_line_chain_covers_all_lines():
    state = MemState(4 * PAGE, LINE, PAGE)
    line_initialize(state, rng())
    total = chain_length(state, state.p[0])
    assert total == 4 * (PAGE // LINE)
    assert all(addr % LINE == 0 for addr in state.chain)
    assert state.width == 1


def test_mem_chain_covers_every_word():
    state = MemState(4 * PAGE, LINE, PAGE, width=4)
    mem_initialize(state, rng())
    npointers = 4 * PAGE // LINE
    nwords = LINE // WORD_SIZE
    assert chain_length(state, state.p[0]) == nwords * npointers
    starts = state.p[:4]
    assert all(start in state.chain for start in starts)
    assert len(set(starts)) == 4
    assert state.p[4] is None
    assert state.initialized


def test_mem_initialize_width_too_large():
    state = MemState(LINE * 2, LINE, PAGE, width=4)
    with pytest.raises(ValueError):
        mem_initialize(state, rng())


def test_thrash_page_multiple_changes_page_each_step():
    state = MemState(4 * PAGE, LINE, PAGE)
    thrash_initialize(state, rng())
    assert chain_length(state, state.p[0]) == 4 * (PAGE // LINE)
    p = state.p[0]
    for _ in range(20):
        q = walk(state, p, 1)
        assert q // PAGE != p // PAGE
        p = q


def test_thrash_partial_page():
    state = MemState(PAGE // 2, LINE, PAGE)
    thrash_initialize(state, rng())
    assert state.p[0] == 0
    assert chain_length(state, 0) == (PAGE // 2) // LINE


def test_tlb_chain_touches_each_page_once():
    state = MemState(8 * PAGE, LINE, PAGE)
    tlb_initialize(state, rng())
    assert state.p[0] == 0
    assert chain_length(state, 0) == 8
    visited = {addr // PAGE for addr in state.chain}
    assert visited == set(range(8))
    assert state.pages[0] == 0


def test_tlb_requires_a_page():
    state = MemState(PAGE // 2, LINE, PAGE)
    with pytest.raises(ValueError):
        tlb_initialize(state, rng())


def test_same_seed_same_layout():
    first = MemState(4 * PAGE, LINE, PAGE)
    second = MemState(4 * PAGE, LINE, PAGE)
    line_initialize(first, random.Random(7))
    line_initialize(second, random.Random(7))
    assert first.chain == second.chain
    assert first.pages == second.pages


def test_cleanup_clears_state():
    state = MemState(PAGE, LINE, PAGE)
    stride_initialize(state, rng())
    state.cleanup()
    assert state.chain == {}
    assert state.pages == []
    assert state.p[0] is None
    assert not state.initialized


def test_walk_broken_chain_raises():
    state = MemState(PAGE, LINE, PAGE)
    with pytest.raises(ValueError):
        walk(state, 0, 1)
    with pytest.raises(ValueError):
        walk(state, 0, -1)


def test_chain_length_without_loop_back_raises():
    state = MemState(PAGE, LINE, PAGE)
    state.chain = {0: 8, 8: 16, 16: 8}
    with pytest.raises(ValueError):
        chain_length(state, 0)