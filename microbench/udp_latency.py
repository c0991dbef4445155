"""UDP request/response latency with sequence-numbered datagrams."""

from __future__ import annotations

import socket
import struct
from typing import Optional

DEFAULT_PORT = 31235
MAX_MSIZE = 10 * 1024 * 1024
RECV_TIMEOUT = 15.0
_SEQ = struct.Struct("!i")


class UdpLatency:
    """Round trips of ``msize``-byte datagrams carrying a sequence number."""

    def __init__(self, server: str, port: int = DEFAULT_PORT, msize: int = 4) -> None:
        if msize < _SEQ.size:
            raise ValueError(f"message size must be >= {_SEQ.size}")
        if msize > MAX_MSIZE:
            raise ValueError(f"message size must be <= {MAX_MSIZE}")
        self.server = server
        self.port = port
        self.msize = msize
        self.timeout = RECV_TIMEOUT
        self.seq = 0
        self.sock: Optional[socket.socket] = None
        self._buf = bytearray(msize)

    def setup(self) -> None:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.connect((socket.gethostbyname(self.server), self.port))
        except BaseException:
            sock.close()
            raise
        sock.settimeout(self.timeout)
        self.sock = sock
        self.seq = 0

    def run(self, iterations: int) -> int:
        """Do ``iterations`` round trips; return the next sequence number."""
        if self.sock is None:
            raise RuntimeError("setup() has not been called")
        sock, buf = self.sock, self._buf
        for _ in range(iterations):
            _SEQ.pack_into(buf, 0, self.seq)
            self.seq += 1
            if sock.send(buf) != self.msize:
                raise OSError("send failed")
            try:
                received = sock.recv_into(buf, self.msize)
            except TimeoutError as exc:
                raise TimeoutError("Recv timed out") from exc
            if received != self.msize:
                raise OSError("recv got wrong size")
        return self.seq

    def cleanup(self) -> None:
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def __enter__(self) -> "UdpLatency":
        self.setup()
        return self

    def __exit__(self, *args) -> None:
        self.cleanup()


def serve(sock: socket.socket) -> int:
    """Answer datagrams on ``sock`` until a negative sequence number arrives.

    Returns the number of datagrams answered; the socket is closed.
    """
    buf = bytearray(MAX_MSIZE)
    view = memoryview(buf)
    seq = 0
    answered = 0
    try:
        while True:
            nbytes, peer = sock.recvfrom_into(buf)
            if nbytes < _SEQ.size:
                continue
            sent = _SEQ.unpack_from(buf)[0]
            if sent < 0:
                return answered
            seq += 1
            if sent != seq:
                seq = sent
            _SEQ.pack_into(buf, 0, seq)
            sock.sendto(view[:nbytes], peer)
            answered += 1
    finally:
        view.release()
        sock.close()


def shutdown_server(host: str, port: int = DEFAULT_PORT) -> None:
    """Send the negative sequence numbers that stop a server."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.connect((socket.gethostbyname(host), port))
        for n in range(-1, -5, -1):
            try:
                sock.send(_SEQ.pack(n))
            except ConnectionRefusedError:
                break