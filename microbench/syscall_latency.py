"""Costs of simple system calls: getppid, read, write, stat, fstat, open."""

from __future__ import annotations

import os
from typing import Optional

FNAME = "/usr/include/linux/types.h"
_NULL_DEVICE = "/dev/null"
_ZERO_DEVICE = "/dev/zero"


class SyscallBench:
    """Loops over one system call each; every loop returns the calls made."""

    def __init__(self, path: str = FNAME) -> None:
        self.path = path
        self._null_fd: Optional[int] = None
        self._zero_fd: Optional[int] = None
        self._file_fd: Optional[int] = None

    def null(self, iterations: int) -> int:
        for _ in range(iterations):
            os.getppid()
        return iterations

    def write(self, iterations: int) -> int:
        """Write one byte to /dev/null per iteration."""
        if self._null_fd is None:
            self._null_fd = os.open(_NULL_DEVICE, os.O_WRONLY)
        fd = self._null_fd
        for _ in range(iterations):
            if os.write(fd, b"\0") != 1:
                raise OSError(f"short write to {_NULL_DEVICE}")
        return iterations

    def read(self, iterations: int) -> int:
        """Read one byte from /dev/zero per iteration."""
        if self._zero_fd is None:
            self._zero_fd = os.open(_ZERO_DEVICE, os.O_RDONLY)
        fd = self._zero_fd
        for _ in range(iterations):
            if len(os.read(fd, 1)) != 1:
                raise OSError(f"short read from {_ZERO_DEVICE}")
        return iterations

    def stat(self, iterations: int) -> int:
        for _ in range(iterations):
            os.stat(self.path)
        return iterations

    def fstat(self, iterations: int) -> int:
        if self._file_fd is None:
            self._file_fd = os.open(self.path, os.O_RDONLY)
        fd = self._file_fd
        for _ in range(iterations):
            os.fstat(fd)
        return iterations

    def open_close(self, iterations: int) -> int:
        for _ in range(iterations):
            os.close(os.open(self.path, os.O_RDONLY))
        return iterations

    def close(self) -> None:
        """Close any descriptors the loops opened."""
        for fd in (self._null_fd, self._zero_fd, self._file_fd):
            if fd is not None:
                os.close(fd)
        self._null_fd = self._zero_fd = self._file_fd = None

    def __enter__(self) -> "SyscallBench":
        return self

    def __exit__(self, *args) -> None:
        self.close()