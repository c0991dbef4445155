"""Semaphore hand-off latency between a process and a forked partner."""

from __future__ import annotations

import multiprocessing
import os
import signal
from typing import Optional, Tuple

from microbench.sched import handle_scheduler

DEFAULT_TIMEOUT = 10.0


class SemaphoreLatency:
    """Two processes pass control back and forth through two semaphores."""

    def __init__(self, timeout: Optional[float] = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout
        self.pid: Optional[int] = None
        self._sems: Optional[Tuple] = None

    def setup(self) -> None:
        """Create the semaphores and fork the partner process."""
        ctx = multiprocessing.get_context("fork")
        sems = (ctx.Semaphore(0), ctx.Semaphore(0))
        handle_scheduler(0, 0, 1)
        pid = os.fork()
        if pid == 0:
            try:
                handle_scheduler(0, 1, 1)
                sems[1].release()
                while True:
                    sems[0].acquire()
                    sems[1].release()
            finally:
                os._exit(0)
        self.pid = pid
        self._sems = sems

    def run(self, iterations: int) -> int:
        """Do ``iterations`` hand-offs; return the semaphore operations made."""
        if self._sems is None:
            raise RuntimeError("setup() has not been called")
        mine, theirs = self._sems[1], self._sems[0]
        for _ in range(iterations):
            if not mine.acquire(timeout=self.timeout):
                raise TimeoutError("error on semaphore: partner did not answer")
            theirs.release()
        return 2 * iterations

    def cleanup(self) -> None:
        if self.pid:
            try:
                os.kill(self.pid, signal.SIGKILL)
            except ProcessLookupError:
                pass
            os.waitpid(self.pid, 0)
            self.pid = None
        self._sems = None

    def __enter__(self) -> "SemaphoreLatency":
        self.setup()
        return self

    def __exit__(self, *args) -> None:
        self.cleanup()