"""AF_UNIX stream socket latency between a process and a forked echo child."""

from __future__ import annotations

import os
import signal
import socket
from typing import Optional

from microbench.sched import handle_scheduler


class UnixLatency:
    """Ping-pong ``msize``-byte messages with a child over a socket pair."""

    def __init__(self, msize: int = 1) -> None:
        if msize <= 0:
            raise ValueError("message size must be positive")
        self.msize = msize
        self.pid: Optional[int] = None
        self.sock: Optional[socket.socket] = None
        self._buf = bytes(msize)

    def setup(self) -> None:
        """Create the socket pair and fork the echoing child."""
        parent, child = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
        handle_scheduler(0, 0, 1)
        pid = os.fork()
        if pid == 0:
            try:
                parent.close()
                handle_scheduler(0, 1, 1)
                while True:
                    data = child.recv(self.msize, socket.MSG_WAITALL)
                    if len(data) != self.msize:
                        break
                    child.sendall(data)
            finally:
                os._exit(0)
        child.close()
        self.pid = pid
        self.sock = parent

    def run(self, iterations: int) -> int:
        """Do ``iterations`` round trips; return the bytes sent and received back."""
        if self.sock is None:
            raise RuntimeError("setup() has not been called")
        sock = self.sock
        for _ in range(iterations):
            try:
                sock.sendall(self._buf)
                reply = sock.recv(self.msize, socket.MSG_WAITALL)
            except OSError as exc:
                self.cleanup()
                raise ConnectionError("echo child went away") from exc
            if len(reply) != self.msize:
                self.cleanup()
                raise ConnectionError("echo child went away")
        return iterations * self.msize

    def cleanup(self) -> None:
        if self.pid:
            try:
                os.kill(self.pid, signal.SIGKILL)
            except ProcessLookupError:
                pass
            os.waitpid(self.pid, 0)
            self.pid = None
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def __enter__(self) -> "UnixLatency":
        self.setup()
        return self

    def __exit__(self, *args) -> None:
        self.cleanup()