"""Latency of select() over many descriptors on a file or a TCP socket."""

from __future__ import annotations

import contextlib
import os
import resource
import select
import signal
import socket
import tempfile
from typing import List, Optional

from microbench.tcp import SockOpt, sockport, tcp_accept, tcp_connect, tcp_server

KINDS = ("file", "tcp")
DEFAULT_NUM = 200


def _more_fds() -> None:
    """Raise the soft descriptor limit to the hard limit."""
    soft, hard = resource.getrlimit(resource.RLIMIT_NOFILE)
    if soft != hard:
        with contextlib.suppress(ValueError, OSError):
            resource.setrlimit(resource.RLIMIT_NOFILE, (hard, hard))


class SelectLatency:
    """Select for writing on ``num`` duplicates of one file or TCP descriptor."""

    def __init__(self, kind: str, num: int = DEFAULT_NUM, port: int = 0) -> None:
        if kind not in KINDS:
            raise ValueError(f"kind must be one of {', '.join(KINDS)}")
        if num <= 0:
            raise ValueError("num must be positive")
        self.kind = kind
        self.num = num
        self.port = port
        self.fname: Optional[str] = None
        self.pid: Optional[int] = None
        self.fds: List[int] = []
        self._listener: Optional[socket.socket] = None

    def _start_server(self) -> None:
        if self.kind == "file":
            fd, self.fname = tempfile.mkstemp(prefix="lat_select")
            os.close(fd)
            return
        listener = tcp_server(self.port, SockOpt.REUSE)
        parent = os.getpid()
        pid = os.fork()
        if pid == 0:
            try:
                while os.getppid() == parent:
                    conn = tcp_accept(listener, SockOpt.NONE)
                    conn.recv(1)
                    conn.close()
            finally:
                os._exit(0)
        self._listener = listener
        self.pid = pid

    def _open(self) -> int:
        if self.kind == "file":
            return os.open(self.fname, os.O_RDONLY)
        sock = tcp_connect("localhost", sockport(self._listener), SockOpt.NONE)
        return sock.detach()

    def setup(self) -> None:
        """Create the file or server and open ``num`` duplicate descriptors."""
        _more_fds()
        try:
            self._start_server()
            fid = self._open()
            try:
                for _ in range(self.num):
                    try:
                        self.fds.append(os.dup(fid))
                    except OSError:
                        break
            finally:
                os.close(fid)
            if len(self.fds) != self.num:
                raise OSError(
                    f"could only open {len(self.fds)} of {self.num} descriptors"
                )
        except BaseException:
            self.cleanup()
            raise

    def run(self, iterations: int) -> int:
        """Poll the descriptors ``iterations`` times; return how many were ready last."""
        if not self.fds:
            raise RuntimeError("setup() has not been called")
        ready = 0
        for _ in range(iterations):
            _, writable, _ = select.select([], self.fds, [], 0)
            ready = len(writable)
        return ready

    def cleanup(self) -> None:
        for fd in self.fds:
            with contextlib.suppress(OSError):
                os.close(fd)
        self.fds = []
        if self.pid:
            with contextlib.suppress(ProcessLookupError):
                os.kill(self.pid, signal.SIGKILL)
            os.waitpid(self.pid, 0)
            self.pid = None
        if self._listener is not None:
            self._listener.close()
            self._listener = None
        if self.fname is not None:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(self.fname)
            self.fname = None

    def __enter__(self) -> "SelectLatency":
        self.setup()
        return self

    def __exit__(self, *args) -> None:
        self.cleanup()