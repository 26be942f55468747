"""Shared ownership of Unix file descriptors carried in messages."""

from __future__ import annotations

import os
import threading

_FD_INVALID = -1


class FdAlreadyTaken(Exception):
    """The descriptor has already been taken out of its UnixFd."""

    def __str__(self) -> str:
        return "the file descriptor has already been taken"


class _FdCell:
    """Holds one descriptor and closes it when no reference remains."""

    __slots__ = ("_fd", "_lock", "__weakref__")

    def __init__(self, fd: int) -> None:
        self._fd = fd
        self._lock = threading.Lock()

    def take(self) -> int | None:
        with self._lock:
            fd = self._fd
            if fd == _FD_INVALID:
                return None
            self._fd = _FD_INVALID
            return fd

    def get(self) -> int | None:
        fd = self._fd
        return None if fd == _FD_INVALID else fd

    def __del__(self) -> None:
        try:
            fd = self.take()
            if fd is not None:
                os.close(fd)
        except Exception:
            pass


class UnixFd:
    """A file descriptor that is closed once no UnixFd refers to it any more.

    ``copy.copy`` gives another reference to the same descriptor; ``dup``
    gives an independent descriptor. ``get_raw_fd`` keeps ownership here,
    ``take_raw_fd`` hands it to the caller for every reference at once.
    """

    __slots__ = ("_cell",)

    def __init__(self, fd: int) -> None:
        self._cell = _FdCell(fd)

    @classmethod
    def _sharing(cls, cell: _FdCell) -> UnixFd:
        obj = cls.__new__(cls)
        obj._cell = cell
        return obj

    def __copy__(self) -> UnixFd:
        return UnixFd._sharing(self._cell)

    def __repr__(self) -> str:
        return f"UnixFd({self.get_raw_fd()!r})"

    def get_raw_fd(self) -> int | None:
        """Return the descriptor without taking ownership, or None if taken."""
        return self._cell.get()

    def take_raw_fd(self) -> int | None:
        """Take ownership of the descriptor; later calls on any reference give None."""
        return self._cell.take()

    def dup(self) -> UnixFd:
        """Return a UnixFd owning a duplicate of the descriptor.

        Raises FdAlreadyTaken if the descriptor was taken, OSError if dup fails.
        """
        fd = self._cell.get()
        if fd is None:
            raise FdAlreadyTaken()
        return UnixFd(os.dup(fd))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnixFd):
            return NotImplemented
        return self._cell is other._cell or self.get_raw_fd() == other.get_raw_fd()

    def __hash__(self) -> int:
        fd = self.get_raw_fd()
        return hash(fd if fd is not None else 0)