"""Costs of installing, sending and catching signals."""

from __future__ import annotations

import os
import signal
from typing import Union

Number = Union[int, float]


class _Tally:
    """Counts signals delivered to the installed handler."""

    count = 0


def _handler(signum, frame) -> None:
    _Tally.count += 1


def do_install(iterations: int) -> int:
    """Install a SIGUSR1 handler ``iterations`` times; return the installs made.

    The handler in place beforehand is restored afterwards.
    """
    previous = signal.getsignal(signal.SIGUSR1)
    installs = 0
    try:
        for _ in range(iterations):
            signal.signal(signal.SIGUSR1, _handler)
            installs += 1
    finally:
        signal.signal(signal.SIGUSR1, previous)
    return installs


def do_send(iterations: int) -> int:
    """Send the null signal to this process; return the signals sent.

    As in the timing loop this is modelled on, one fewer signal than
    ``iterations`` is sent.
    """
    me = os.getpid()
    sent = 0
    for _ in range(iterations - 1):
        os.kill(me, 0)
        sent += 1
    return sent


def do_catch(iterations: int) -> int:
    """Send SIGUSR1 to this process and catch it; return the signals caught.

    One fewer signal than ``iterations`` is sent, matching :func:`do_send`.
    """
    me = os.getpid()
    caught = 0

    def count(signum, frame) -> None:
        nonlocal caught
        caught += 1

    previous = signal.signal(signal.SIGUSR1, count)
    try:
        for _ in range(iterations - 1):
            os.kill(me, signal.SIGUSR1)
    finally:
        signal.signal(signal.SIGUSR1, previous)
    return caught


def subtract_overhead(
    total: Number, total_n: int, overhead: Number, overhead_n: int
) -> Number:
    """Remove the cost of ``total_n`` overhead operations from ``total``.

    ``overhead`` was measured over ``overhead_n`` operations.  The result
    never drops below zero.
    """
    if overhead_n <= 0:
        raise ValueError("overhead_n must be positive")
    if isinstance(overhead, int) and isinstance(total_n, int):
        scaled = (overhead * total_n) // overhead_n
    else:
        scaled = (overhead * total_n) / overhead_n
    if total > scaled:
        return total - scaled
    return 0