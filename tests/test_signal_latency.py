import signal

import pytest

from microbench.signal_latency import (
    do_catch,
    do_install,
    do_send,
    subtract_overhead,
)


def test_do_install_counts_and_restores_handler():
    previous = signal.getsignal(signal.SIGUSR1)
    assert do_install(7) == 7
    assert signal.getsignal(signal.SIGUSR1) == previous


def test_do_send_sends_one_fewer_than_iterations():
    assert do_send(10) == 9
    assert do_send(1) == 0


def test_do_catch_catches_every_signal_sent():
    for iterations in (1, 2, 25):
        assert do_catch(iterations) == do_send(iterations)


def test_do_catch_restores_handler():
    previous = signal.getsignal(signal.SIGUSR1)
    assert do_catch(3) == 2
    assert signal.getsignal(signal.SIGUSR1) == previous


def test_subtract_overhead_without_overhead_keeps_total():
    assert subtract_overhead(1234, 10, 0, 10) == 1234


def test_subtract_overhead_never_negative():
    assert subtract_overhead(10, 10, 500, 10) == 0
    assert subtract_overhead(5.0, 1, 5.0, 1) == 0


def test_subtract_overhead_scales_by_counts():
    assert subtract_overhead(100, 20, 30, 10) == 100 - 60


def test_subtract_overhead_rejects_zero_count():
    with pytest.raises(ValueError):
        subtract_overhead(1, 1, 1, 0)