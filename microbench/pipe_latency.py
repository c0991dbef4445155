"""Pipe round-trip latency between a process and a forked echo child."""

from __future__ import annotations

import os
import signal
from typing import Optional

from microbench.sched import handle_scheduler


def _echo(read_fd: int, write_fd: int) -> None:
    while True:
        data = os.read(read_fd, 1)
        if not data:
            return
        os.write(write_fd, data)


class PipeLatency:
    """Pass one byte to a child through a pipe and back through another."""

    def __init__(self) -> None:
        self.pid: Optional[int] = None
        self._write_fd: Optional[int] = None
        self._read_fd: Optional[int] = None

    def setup(self) -> None:
        """Create both pipes, fork the echo child and make one round trip."""
        to_child_r, to_child_w = os.pipe()
        from_child_r, from_child_w = os.pipe()
        handle_scheduler(0, 0, 1)
        pid = os.fork()
        if pid == 0:
            try:
                os.close(to_child_w)
                os.close(from_child_r)
                handle_scheduler(0, 1, 1)
                _echo(to_child_r, from_child_w)
            finally:
                os._exit(0)
        os.close(to_child_r)
        os.close(from_child_w)
        self.pid = pid
        self._write_fd = to_child_w
        self._read_fd = from_child_r
        try:
            self._round_trip()
        except BaseException:
            self.cleanup()
            raise

    def _round_trip(self) -> None:
        if os.write(self._write_fd, b"\0") != 1 or len(os.read(self._read_fd, 1)) != 1:
            raise OSError("read/write on pipe failed")

    def run(self, iterations: int) -> int:
        """Do ``iterations`` round trips and return how many were made."""
        if self._write_fd is None or self._read_fd is None:
            raise RuntimeError("setup() has not been called")
        for _ in range(iterations):
            self._round_trip()
        return iterations

    def cleanup(self) -> None:
        if self.pid:
            try:
                os.kill(self.pid, signal.SIGKILL)
            except ProcessLookupError:
                pass
            os.waitpid(self.pid, 0)
            self.pid = None
        for fd in (self._write_fd, self._read_fd):
            if fd is not None:
                os.close(fd)
        self._write_fd = None
        self._read_fd = None

    def __enter__(self) -> "PipeLatency":
        self.setup()
        return self

    def __exit__(self, *args) -> None:
        self.cleanup()