import pytest

from microbench.syscall_latency import FNAME, SyscallBench


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "data.txt"
    path.write_bytes(b"some bytes\n")
    return str(path)


@pytest.fixture
def missing_file(tmp_path):
    return str(tmp_path / "missing")


def test_default_path():
    assert SyscallBench().path == FNAME


def test_null_and_devices(data_file):
    with SyscallBench(data_file) as bench:
        assert bench.null(6) == 6
        assert bench.write(5) == 5
        assert bench.read(4) == 4


def test_file_calls(data_file):
    with SyscallBench(data_file) as bench:
        assert bench.stat(3) == 3
        assert bench.fstat(3) == 3
        assert bench.open_close(3) == 3


def test_zero_iterations(data_file):
    with SyscallBench(data_file) as bench:
        assert bench.stat(0) == 0


def test_stat_missing_file_raises(missing_file):
    with SyscallBench(missing_file) as bench:
        with pytest.raises(FileNotFoundError):
            bench.stat(1)


def test_fstat_missing_file_raises(missing_file):
    with SyscallBench(missing_file) as bench:
        with pytest.raises(FileNotFoundError):
            bench.fstat(1)


def test_open_close_missing_file_raises(missing_file):
    with SyscallBench(missing_file) as bench:
        with pytest.raises(FileNotFoundError):
            bench.open_close(1)


def test_reuse_after_close(data_file):
    bench = SyscallBench(data_file)
    assert bench.fstat(2) == 2
    bench.close()
    bench.close()
    assert bench.fstat(2) == 2
    bench.close()