"""
Bounded Window Reader — load at most `cap` bytes from each end of a file.

APPROACH
────────
1. Never hold a whole multi-GB video in memory: a file is seen through at
   most two windows, the first `cap` bytes (head) and the last `cap` bytes
   (tail).  Files that fit inside the cap are read once, as a single window.
2. Memory-mapped reads (mmap) when the OS allows it, plain seek + read()
   otherwise.
3. I/O never raises past this module.  A file that cannot be opened, sized,
   mapped or read simply produces no windows, so a batch over a whole SD
   card keeps going when one file is bad.

Window orders:
  • "tail_first"    — dimension probing.  moov usually sits at the end of
                      camera footage; fast-start files are the fallback.
  • "head_and_tail" — marker scanning.  The marker may be anywhere, so both
                      windows are always loaded.
  • "head"          — formats whose header always sits at the start (AVI).
"""

import os
import mmap
import logging
from dataclasses import dataclass
from typing import BinaryIO, Iterator, Optional

logger = logging.getLogger(__name__)

MiB = 1024 * 1024

# Per-window caps
DIMENSION_WINDOW_CAP = 2 * MiB
MARKER_WINDOW_CAP = 10 * MiB

WINDOW_ORDERS = ("tail_first", "head_and_tail", "head")


@dataclass(frozen=True)
class ScanWindow:
    """A contiguous slice of a file.  Windows are never merged."""
    data: bytes
    base: int                   # file offset of data[0]
    label: str = "whole"        # "whole", "head" or "tail"

    @property
    def length(self) -> int:
        return len(self.data)

    @property
    def end(self) -> int:
        return self.base + len(self.data)


class WindowReader:
    """
    Random-access reader over one open file, mmap-backed when possible.

    Usage:
        with open(path, "rb") as f:
            with WindowReader(f, os.fstat(f.fileno()).st_size) as reader:
                data = reader.read_at(offset, size)
    """

    def __init__(
        self,
        fd: BinaryIO,
        total_size: int,
        use_mmap: bool = True,
    ):
        self._fd = fd
        self._size = total_size
        self._mmap: Optional[mmap.mmap] = None
        self._using_mmap = False

        # Empty files cannot be mapped
        if use_mmap and total_size > 0:
            self._try_mmap()

    def _try_mmap(self):
        try:
            self._mmap = mmap.mmap(
                self._fd.fileno(),
                0,
                access=mmap.ACCESS_READ,
            )
            self._using_mmap = True
        except (OSError, ValueError, OverflowError) as e:
            logger.debug("mmap unavailable (%s), using buffered reads", e)
            self._mmap = None
            self._using_mmap = False

    @property
    def is_mmap(self) -> bool:
        return self._using_mmap

    @property
    def size(self) -> int:
        return self._size

    def read_at(self, offset: int, size: int) -> bytes:
        """
        Read up to `size` bytes starting at `offset`.

        Out-of-range requests return b"".  May raise OSError on the
        seek + read path; callers in this module catch it.
        """
        if offset < 0 or offset >= self._size:
            return b""
        size = min(size, self._size - offset)
        if size <= 0:
            return b""

        if self._using_mmap and self._mmap is not None:
            try:
                return self._mmap[offset:offset + size]
            except (IndexError, ValueError):
                pass

        self._fd.seek(offset)
        return self._fd.read(size)

    def window(self, label: str, cap: int) -> ScanWindow:
        """Load the "whole", "head" or "tail" window under `cap`."""
        if label == "tail":
            base = max(0, self._size - cap)
        else:
            base = 0
        return ScanWindow(self.read_at(base, cap), base, label)

    def close(self):
        """Release mmap resources."""
        if self._mmap is not None:
            try:
                self._mmap.close()
            except (OSError, ValueError):
                pass
            self._mmap = None
            self._using_mmap = False

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def plan_windows(file_size: int, cap: int, order: str) -> list[str]:
    """Window labels to load, in order, for a file of `file_size` bytes."""
    _check_args(cap, order)
    if file_size <= cap:
        return ["whole"]
    if order == "tail_first":
        return ["tail", "head"]
    if order == "head_and_tail":
        return ["head", "tail"]
    return ["head"]


def _check_args(cap: int, order: str):
    if order not in WINDOW_ORDERS:
        raise ValueError(f"unknown window order: {order!r}")
    if cap <= 0:
        raise ValueError("window cap must be positive")


def _read_windows(path, cap: int, order: str) -> Iterator[ScanWindow]:
    # Raises OSError; the public wrappers decide what a failure means.
    with open(path, "rb") as f:
        file_size = os.fstat(f.fileno()).st_size
        with WindowReader(f, file_size) as reader:
            for label in plan_windows(file_size, cap, order):
                win = reader.window(label, cap)
                logger.debug("%s: %s window @%d (%d bytes, mmap=%s)",
                             path, label, win.base, win.length, reader.is_mmap)
                yield win


def iter_windows(path, cap: int, order: str = "tail_first") -> Iterator[ScanWindow]:
    """
    Lazily yield the windows of `path`.

    The next window is only read when the caller asks for it, so a
    tail-first probe that succeeds on the tail never touches the head.
    An I/O failure ends the iteration quietly.
    """
    _check_args(cap, order)
    try:
        yield from _read_windows(path, cap, order)
    except OSError as e:
        logger.debug("window read failed for %s: %s", path, e)


def load_windows(path, cap: int, order: str = "tail_first") -> list[ScanWindow]:
    """Eager form of iter_windows.  Empty list on any I/O failure."""
    _check_args(cap, order)
    try:
        return list(_read_windows(path, cap, order))
    except OSError as e:
        logger.debug("window load failed for %s: %s", path, e)
        return []
