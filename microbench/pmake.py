"""Time for a batch of parallel jobs that each do a fixed amount of work."""

from __future__ import annotations

import os
import signal
from typing import Dict, List

from microbench.sched import handle_scheduler

_DEREFS_PER_ITERATION = 10


class ParallelMake:
    """Fork ``jobs`` workers that each chase a pointer ``work_iterations`` times."""

    def __init__(self, jobs: int, work_iterations: int = 0) -> None:
        if jobs <= 0:
            raise ValueError("jobs must be positive")
        if work_iterations < 0:
            raise ValueError("work_iterations must not be negative")
        self.jobs = jobs
        self.work_iterations = work_iterations
        self.pids: List[int] = []
        # a single cell that points at itself
        self._chain: Dict[int, int] = {0: 0}
        self._p = 0
        self._placed = False

    def work(self, iterations: int) -> int:
        """Follow the self-referencing pointer; return the dereferences made."""
        chain = self._chain
        p = self._p
        for _ in range(iterations):
            for _ in range(_DEREFS_PER_ITERATION):
                p = chain[p]
        self._p = p
        return iterations * _DEREFS_PER_ITERATION

    def run(self, iterations: int) -> int:
        """Run ``iterations`` batches of jobs; return the jobs completed.

        A worker that did not exit normally stops the run with
        :class:`ChildProcessError` after the other workers are killed.
        """
        if not self._placed:
            handle_scheduler(0, 0, self.jobs)
            self._placed = True
        completed = 0
        for _ in range(iterations):
            for i in range(self.jobs):
                pid = os.fork()
                if pid == 0:
                    try:
                        handle_scheduler(0, i + 1, self.jobs)
                        self.work(self.work_iterations)
                        os._exit(0)
                    finally:
                        os._exit(1)
                self.pids.append(pid)
            while self.pids:
                _, status = os.waitpid(self.pids[0], 0)
                self.pids.pop(0)
                if not os.WIFEXITED(status):
                    self.cleanup()
                    raise ChildProcessError("worker process died")
                completed += 1
        return completed

    def cleanup(self) -> None:
        """Kill and reap any workers still running."""
        for pid in self.pids:
            try:
                os.kill(pid, signal.SIGKILL)
            except ProcessLookupError:
                pass
            try:
                os.waitpid(pid, 0)
            except ChildProcessError:
                pass
        self.pids = []