"""TCP request/response latency: a client, an echo server and its shutdown."""

from __future__ import annotations

import socket
import struct
import threading
from typing import Optional

from microbench.tcp import SockOpt, tcp_accept, tcp_connect

DEFAULT_PORT = 31234
_HEADER = struct.Struct("!i")


def _read_header(sock: socket.socket) -> Optional[int]:
    data = sock.recv(_HEADER.size, socket.MSG_WAITALL)
    if len(data) != _HEADER.size:
        return None
    return _HEADER.unpack(data)[0]


def _echo(sock: socket.socket, msize: int) -> None:
    while True:
        data = sock.recv(msize)
        if not data:
            return
        sock.sendall(data)


def _echo_and_close(sock: socket.socket, msize: int) -> None:
    with sock:
        try:
            _echo(sock, msize)
        except OSError:
            pass


class TcpLatency:
    """Round trips of ``msize``-byte messages to an echo server."""

    def __init__(self, server: str, port: int = DEFAULT_PORT, msize: int = 1) -> None:
        if msize <= 0:
            raise ValueError("message size must be positive")
        self.server = server
        self.port = port
        self.msize = msize
        self.sock: Optional[socket.socket] = None
        self._buf = bytes(msize)

    def setup(self) -> None:
        """Connect and tell the server the message size."""
        self.sock = tcp_connect(self.server, self.port, SockOpt.NONE)
        self.sock.sendall(_HEADER.pack(self.msize))

    def run(self, iterations: int) -> int:
        """Do ``iterations`` round trips; return the bytes sent and received back."""
        if self.sock is None:
            raise RuntimeError("setup() has not been called")
        sock = self.sock
        for _ in range(iterations):
            sock.sendall(self._buf)
            reply = sock.recv(self.msize, socket.MSG_WAITALL)
            if len(reply) != self.msize:
                raise ConnectionError("short reply from server")
            self._buf = reply
        return iterations * self.msize

    def cleanup(self) -> None:
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def __enter__(self) -> "TcpLatency":
        self.setup()
        return self

    def __exit__(self, *args) -> None:
        self.cleanup()


def serve_connection(sock: socket.socket) -> bool:
    """Echo messages on one connection.

    Returns False when the connection carried no header, which asks the
    server to shut down.
    """
    msize = _read_header(sock)
    if msize is None:
        return False
    _echo(sock, msize)
    return True


def serve(listener: socket.socket) -> int:
    """Accept and echo connections until a shutdown request arrives.

    Returns the number of echo connections served; the listener is closed.
    """
    served = 0
    try:
        while True:
            conn = tcp_accept(listener, SockOpt.NONE)
            msize = _read_header(conn)
            if msize is None:
                conn.close()
                return served
            served += 1
            threading.Thread(
                target=_echo_and_close, args=(conn, msize), daemon=True
            ).start()
    finally:
        listener.close()


def shutdown_server(host: str, port: int = DEFAULT_PORT) -> None:
    """Ask the server at ``host``:``port`` to stop."""
    tcp_connect(host, port, SockOpt.NONE).close()