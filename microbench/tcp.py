"""Helpers for creating, accepting and connecting TCP sockets."""

from __future__ import annotations

import enum
import functools
import os
import socket
from typing import Optional

SOCKBUF = 1024 * 1024
LISTEN_BACKLOG = 100
_CONNECT_RETRIES = 10

_pid_port = 0


class SockOpt(enum.IntFlag):
    """Socket tuning options applied by :func:`sock_optimize`."""

    NONE = 0
    READ = 1
    WRITE = 2
    REUSE = 4
    PID = 8


def _grow_buffer(sock: socket.socket, option: int) -> int:
    size = SOCKBUF
    while size > 0:
        try:
            sock.setsockopt(socket.SOL_SOCKET, option, size)
            return size
        except OSError:
            size >>= 1
    return 0


def sock_optimize(sock: socket.socket, flags: int = SockOpt.NONE) -> None:
    """Enlarge buffers and set address reuse on ``sock`` as ``flags`` ask."""
    flags = SockOpt(flags)
    if flags & SockOpt.READ:
        _grow_buffer(sock, socket.SO_RCVBUF)
    if flags & SockOpt.WRITE:
        _grow_buffer(sock, socket.SO_SNDBUF)
    if flags & SockOpt.REUSE:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)


def tcp_server(port: int = 0, flags: int = SockOpt.NONE) -> socket.socket:
    """Return a listening TCP socket bound to ``port`` on all interfaces.

    Port 0 lets the system choose; :func:`sockport` reports the choice.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    try:
        sock_optimize(sock, flags)
        sock.bind(("", port))
        sock.listen(LISTEN_BACKLOG)
    except BaseException:
        sock.close()
        raise
    return sock


def tcp_accept(sock: socket.socket, flags: int = SockOpt.NONE) -> socket.socket:
    """Accept one connection on ``sock`` and return the new socket."""
    while True:
        try:
            conn, _ = sock.accept()
        except InterruptedError:
            continue
        sock_optimize(conn, flags)
        return conn


@functools.lru_cache(maxsize=None)
def _resolve(host: str) -> str:
    return socket.gethostbyname(host)


def _bind_pid_port(sock: socket.socket) -> None:
    """Bind to a local port derived from the process id."""
    global _pid_port
    if not _pid_port:
        _pid_port = (os.getpid() << 4) & 0xFFFF
        if _pid_port < 1024:
            _pid_port += 1024
    for _ in range(0x10000):
        _pid_port = (_pid_port + 1) & 0xFFFF
        try:
            sock.bind(("", _pid_port))
            return
        except OSError:
            continue
    raise OSError("no local port available to bind")


def tcp_connect(host: str, port: int, flags: int = SockOpt.NONE) -> socket.socket:
    """Connect to ``host``:``port`` and return the connected socket.

    Refused or reset connections are retried a few times before
    :class:`ConnectionError` is raised.
    """
    address = (_resolve(host), port)
    last_error: Optional[BaseException] = None
    for _ in range(_CONNECT_RETRIES + 1):
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
        try:
            if SockOpt(flags) & SockOpt.PID:
                _bind_pid_port(sock)
            sock_optimize(sock, flags)
            sock.connect(address)
        except (ConnectionResetError, ConnectionRefusedError, BlockingIOError) as exc:
            sock.close()
            last_error = exc
            continue
        except BaseException:
            sock.close()
            raise
        return sock
    raise ConnectionError(f"could not connect to {host}:{port}") from last_error


def sockport(sock: socket.socket) -> int:
    """Return the local port number of ``sock``."""
    return sock.getsockname()[1]