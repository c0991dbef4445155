from unittest import mock

import pytest

from microbench import sched


def test_reverse_bits_pinned_value():
    assert sched.reverse_bits(1, 8) == 4


def test_reverse_bits_zero():
    assert sched.reverse_bits(0, 16) == 0


@pytest.mark.parametrize("ncpus", [2, 4, 8, 16, 32])
def test_reverse_bits_is_permutation(ncpus):
    assert sorted(sched.reverse_bits(c, ncpus) for c in range(ncpus)) == list(range(ncpus))


@pytest.mark.parametrize("cpu", range(8))
def test_reverse_bits_involution(cpu):
    assert sched.reverse_bits(sched.reverse_bits(cpu, 8), 8) == cpu


def test_parse_custom():
    assert sched.parse_custom(" 3, 1 x 2") == [3, 1, 2]


def test_parse_custom_empty():
    assert sched.parse_custom("   ") == []


def test_choose_cpu_default_and_missing():
    assert sched.choose_cpu(None, 1, 0, 0, 4) is None
    assert sched.choose_cpu("default", 1, 0, 0, 4) is None
    assert sched.choose_cpu("bogus", 1, 0, 0, 4) is None


def test_choose_cpu_single():
    assert sched.choose_cpu("SINGLE", 3, 1, 1, 8) == 0


def test_choose_cpu_balanced_case_insensitive():
    assert sched.choose_cpu("balanced", 3, 0, 0, 8) == 3


def test_choose_cpu_balanced_wraps():
    assert sched.choose_cpu("BALANCED", 5, 0, 0, 4) == 1


def test_choose_cpu_unique_distinct():
    chosen = {
        sched.choose_cpu("UNIQUE", child, proc, 2, 64)
        for child in range(4)
        for proc in range(3)
    }
    assert len(chosen) == 12


def test_choose_cpu_balanced_spread_matches_reverse_bits():
    for child in range(8):
        assert sched.choose_cpu("BALANCED_SPREAD", child, 0, 0, 8) == sched.reverse_bits(child, 8)


def test_choose_cpu_custom_cycles():
    assert sched.choose_cpu("CUSTOM 5 7", 0, 0, 0, 16) == 5
    assert sched.choose_cpu("CUSTOM 5 7", 1, 0, 0, 16) == 7
    assert sched.choose_cpu("CUSTOM 5 7", 2, 0, 0, 16) == 5


def test_choose_cpu_custom_without_values():
    assert sched.choose_cpu("CUSTOM none", 3, 0, 0, 16) == 0


def test_choose_cpu_custom_unique_uses_process_index():
    spec = "CUSTOM_UNIQUE 9 10 11 12"
    assert sched.choose_cpu(spec, 1, 1, 1, 16) == sched.choose_cpu("CUSTOM 9 10 11 12", 3, 0, 0, 16)


def test_cpu_count_positive():
    assert sched.cpu_count() >= 1


def test_handle_scheduler_default_does_nothing():
    assert sched.handle_scheduler(0, 0, 1, {}) is None
    assert sched.handle_scheduler(0, 0, 1, {"LMBENCH_SCHED": "DEFAULT"}) is None


def test_pin_selects_nth_allowed():
    with mock.patch("os.sched_getaffinity", return_value={2, 5, 7}, create=True), \
            mock.patch("os.sched_setaffinity", create=True) as setter:
        assert sched.pin(4) == 5
    setter.assert_called_once_with(0, {5})


def test_handle_scheduler_pins():
    with mock.patch("os.sched_getaffinity", return_value={3}, create=True), \
            mock.patch("os.sched_setaffinity", create=True) as setter:
        assert sched.handle_scheduler(0, 0, 0, {"LMBENCH_SCHED": "SINGLE"}) == 3
    setter.assert_called_once_with(0, {3})