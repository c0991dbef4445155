import time

import pytest

from microbench.sleep_latency import SleepLatency, SleepMethod


def test_method_from_name():
    assert SleepMethod("select") is SleepMethod.SELECT
    assert SleepLatency(10, "nanosleep").method is SleepMethod.NANOSLEEP


def test_unknown_method_rejected():
    with pytest.raises(ValueError):
        SleepLatency(10, "busywait")


def test_negative_usecs_rejected():
    with pytest.raises(ValueError):
        SleepLatency(-1)


def test_itimer_needs_positive_duration():
    with pytest.raises(ValueError):
        SleepLatency(0, SleepMethod.ITIMER)


def test_label_format():
    assert SleepLatency(1000).label() == "usleep 1000 microseconds"
    assert SleepLatency(250, "select").label(True) == "realtime select 250 microseconds"


@pytest.mark.parametrize("method", list(SleepMethod))
def test_run_sleeps_at_least_requested(method):
    usecs = 2000
    iterations = 3
    bench = SleepLatency(usecs, method)
    begin = time.monotonic()
    assert bench.run(iterations) == iterations
    elapsed = time.monotonic() - begin
    assert elapsed >= iterations * usecs / 1_000_000.0 * 0.9


def test_zero_iterations():
    assert SleepLatency(100).run(0) == 0