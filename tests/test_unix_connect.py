import os
import socket
import tempfile
from concurrent.futures import ThreadPoolExecutor

import pytest

from microbench.unix_connect import UnixConnectLatency, serve, shutdown_server


@pytest.fixture
def socket_path():
    with tempfile.TemporaryDirectory(prefix="uc") as directory:
        yield os.path.join(directory, "sock")


def _listener(path):
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.bind(path)
    sock.listen(100)
    return sock


def test_connections_are_served_and_counted(socket_path):
    listener = _listener(socket_path)
    with ThreadPoolExecutor(1) as pool:
        future = pool.submit(serve, listener, socket_path)
        assert UnixConnectLatency(socket_path).run(20) == 0
        shutdown_server(socket_path)
        assert future.result(timeout=10) == 20
    assert not os.path.exists(socket_path)


def test_missing_server_counts_failures(socket_path):
    assert UnixConnectLatency(socket_path).run(3) == 3


def test_shutdown_without_server_raises(socket_path):
    with pytest.raises(OSError):
        shutdown_server(socket_path)