"""Process creation costs: procedure call, fork, fork+exec, fork+shell."""

from __future__ import annotations

import os
import signal
from typing import Callable, List

from microbench.sched import handle_scheduler

PROG = "/tmp/hello"
SHELL = "/bin/sh"


def _accumulate(total: int, value: int) -> int:
    return total + value


def do_procedure(iterations: int, value: int = 0) -> int:
    """Call a trivial procedure ``iterations`` times; return the calls made."""
    handle_scheduler(0, 0, 1)
    calls = 0
    total = 0
    for _ in range(iterations):
        total = _accumulate(total, value)
        calls += 1
    return calls


def _run_children(iterations: int, child_action: Callable[[], None]) -> List[int]:
    previous = signal.signal(signal.SIGCHLD, signal.SIG_DFL)
    handle_scheduler(0, 0, 1)
    codes = []
    try:
        for _ in range(iterations):
            pid = os.fork()
            if pid == 0:
                try:
                    handle_scheduler(0, 1, 1)
                    child_action()
                finally:
                    os._exit(1)
            _, status = os.waitpid(pid, 0)
            codes.append(os.waitstatus_to_exitcode(status))
    finally:
        if previous is not None:
            signal.signal(signal.SIGCHLD, previous)
    return codes


def do_fork(iterations: int) -> List[int]:
    """Fork children that exit at once; return their exit codes."""
    return _run_children(iterations, lambda: None)


def do_forkexec(iterations: int, program: str = PROG) -> List[int]:
    """Fork and execute ``program`` with an empty environment; return exit codes."""

    def child() -> None:
        os.close(1)
        os.execve(program, [program], {})

    return _run_children(iterations, child)


def do_shell(iterations: int, program: str = PROG) -> List[int]:
    """Fork and run ``program`` through ``/bin/sh -c``; return exit codes."""

    def child() -> None:
        os.close(1)
        os.execv(SHELL, ["sh", "-c", program])

    return _run_children(iterations, child)