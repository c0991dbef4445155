"""Cost of connecting to an AF_UNIX stream server."""

from __future__ import annotations

import contextlib
import os
import socket

CONNAME = "/tmp/af_unix"


class UnixConnectLatency:
    """Connect to and disconnect from a UNIX-domain server repeatedly."""

    def __init__(self, path: str = CONNAME) -> None:
        self.path = path

    def run(self, iterations: int) -> int:
        """Make ``iterations`` connections; return how many failed."""
        failures = 0
        for _ in range(iterations):
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            try:
                sock.connect(self.path)
            except OSError:
                failures += 1
            finally:
                sock.close()
        return failures


def serve(listener: socket.socket, path: str) -> int:
    """Accept connections until one sends ``b"0"``.

    Returns the number of ordinary connections; the listener is closed and
    its path removed.
    """
    served = 0
    try:
        while True:
            conn, _ = listener.accept()
            with conn:
                data = conn.recv(1)
            if data == b"0":
                return served
            served += 1
    finally:
        listener.close()
        with contextlib.suppress(FileNotFoundError):
            os.unlink(path)


def shutdown_server(path: str = CONNAME) -> None:
    """Ask the server listening on ``path`` to stop."""
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        sock.connect(path)
        sock.sendall(b"0")