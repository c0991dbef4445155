import socket
import struct
from concurrent.futures import ThreadPoolExecutor

import pytest

from microbench.tcp import SockOpt, sockport, tcp_server
from microbench.tcp_latency import (
    TcpLatency,
    serve,
    serve_connection,
    shutdown_server,
)


def test_client_round_trips_against_server():
    listener = tcp_server(0, SockOpt.REUSE)
    port = sockport(listener)
    with ThreadPoolExecutor(1) as pool:
        future = pool.submit(serve, listener)
        with TcpLatency("127.0.0.1", port, 16) as bench:
            assert bench.run(50) == 50 * 16
            assert bench.run(0) == 0
        shutdown_server("127.0.0.1", port)
        assert future.result(timeout=10) == 1


def test_serve_connection_echoes_payload():
    a, b = socket.socketpair()
    with a, b:
        a.sendall(struct.pack("!i", 4))
        a.sendall(b"ping")
        a.shutdown(socket.SHUT_WR)
        assert serve_connection(b) is True
        assert a.recv(4, socket.MSG_WAITALL) == b"ping"


def test_serve_connection_without_header_requests_shutdown():
    a, b = socket.socketpair()
    a.close()
    with b:
        assert serve_connection(b) is False


def test_run_before_setup_raises():
    with pytest.raises(RuntimeError):
        TcpLatency("127.0.0.1", 1, 1).run(1)


def test_message_size_must_be_positive():
    with pytest.raises(ValueError):
        TcpLatency("127.0.0.1", 1, 0)