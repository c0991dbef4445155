"""How long a request to sleep for a number of microseconds really takes."""

from __future__ import annotations

import enum
import os
import select
import signal
import time


class SleepMethod(enum.Enum):
    """The mechanisms used to wait."""

    USLEEP = "usleep"
    NANOSLEEP = "nanosleep"
    SELECT = "select"
    ITIMER = "itimer"


class SleepLatency:
    """Sleep ``usecs`` microseconds per iteration with the chosen method."""

    def __init__(self, usecs: int, method: SleepMethod | str = SleepMethod.USLEEP) -> None:
        if usecs < 0:
            raise ValueError("usecs must not be negative")
        method = SleepMethod(method)
        if method is SleepMethod.ITIMER and usecs == 0:
            raise ValueError("an interval timer needs a positive duration")
        self.usecs = usecs
        self.method = method

    @property
    def seconds(self) -> float:
        return self.usecs / 1_000_000.0

    def run(self, iterations: int) -> int:
        """Sleep ``iterations`` times; return the sleeps made."""
        if self.method is SleepMethod.ITIMER:
            return self._run_itimer(iterations)
        seconds = self.seconds
        for _ in range(iterations):
            if self.method is SleepMethod.SELECT:
                select.select([], [], [], seconds)
            else:
                # time.sleep resumes after interruptions, as nanosleep with
                # its remaining time does
                time.sleep(seconds)
        return iterations

    def _run_itimer(self, iterations: int) -> int:
        alarm = {signal.SIGALRM}
        previous_mask = signal.pthread_sigmask(signal.SIG_BLOCK, alarm)
        try:
            for _ in range(iterations):
                signal.setitimer(signal.ITIMER_REAL, self.seconds)
                signal.sigwait(alarm)
        finally:
            signal.setitimer(signal.ITIMER_REAL, 0)
            signal.pthread_sigmask(signal.SIG_SETMASK, previous_mask)
        return iterations

    def label(self, realtime: bool = False) -> str:
        """Return the name under which the result is reported."""
        scheduler = "realtime " if realtime else ""
        return f"{scheduler}{self.method.value} {self.usecs} microseconds"


def set_realtime() -> bool:
    """Move this process to the highest round-robin real-time priority.

    Returns False when the system refuses.
    """
    try:
        priority = os.sched_get_priority_max(os.SCHED_RR)
        os.sched_setscheduler(0, os.SCHED_RR, os.sched_param(priority))
    except (OSError, AttributeError):
        return False
    return True