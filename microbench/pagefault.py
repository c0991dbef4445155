"""Cost of faulting in the pages of a memory-mapped file."""

from __future__ import annotations

import contextlib
import mmap
import os
import random
import shutil
import stat
from typing import List, Optional

MIN_SIZE = 1024 * 1024


class PagefaultBench:
    """Touch every page of a mapped file in random order, then remap it."""

    def __init__(self, path: str, clone: bool = False) -> None:
        self.path = path
        self.clone = clone
        self.pagesize = mmap.PAGESIZE
        self.npages = os.stat(path).st_size // self.pagesize
        self.size = 0
        self.fd: Optional[int] = None
        self.pages: List[int] = []
        self._map: Optional[mmap.mmap] = None
        self._file = path

    def _remap(self) -> None:
        if self._map is not None:
            self._map.close()
        self._map = mmap.mmap(self.fd, self.size, mmap.MAP_SHARED, mmap.PROT_READ)

    def setup(self) -> None:
        """Open (a private copy of) the file, choose a page order and map it."""
        source = self.path
        if self.clone:
            copy = f"{self.path}{os.getpid()}"
            try:
                shutil.copyfile(self.path, copy)
                os.chmod(copy, stat.S_IRUSR | stat.S_IWUSR)
            except OSError:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(copy)
                raise
            source = copy
        self._file = source
        self.fd = os.open(source, os.O_RDONLY)
        if self.clone:
            os.unlink(source)
        try:
            size = os.fstat(self.fd).st_size
            self.size = size - size % self.pagesize
            self.npages = self.size // self.pagesize
            if self.size < MIN_SIZE:
                raise ValueError(f"{source} too small")
            self.pages = [i * self.pagesize for i in range(self.npages)]
            random.Random(os.getpid()).shuffle(self.pages)
            self._remap()
        except BaseException:
            self.cleanup()
            raise

    def run(self, iterations: int) -> int:
        """Read one byte of every page, then remap; return the sum of bytes read."""
        if self._map is None:
            raise RuntimeError("setup() has not been called")
        total = 0
        for _ in range(iterations):
            view = self._map
            for offset in self.pages:
                total += view[offset]
            self._remap()
        return total

    def run_mmap(self, iterations: int) -> int:
        """Only unmap and remap; return the remaps made."""
        if self._map is None:
            raise RuntimeError("setup() has not been called")
        for _ in range(iterations):
            self._remap()
        return iterations

    def cleanup(self) -> None:
        if self._map is not None:
            self._map.close()
            self._map = None
        if self.fd is not None:
            os.close(self.fd)
            self.fd = None
        self.pages = []

    def __enter__(self) -> "PagefaultBench":
        self.setup()
        return self

    def __exit__(self, *args) -> None:
        self.cleanup()