"""Cursors that walk over a marshalled D-Bus buffer."""

from __future__ import annotations

from typing import Any, Sequence

from .errors import BadFdIndex, NotEnoughBytes
from .util import (
    ByteOrder,
    align_offset,
    parse_u16,
    parse_u32,
    parse_u64,
    unmarshal_signature,
    unmarshal_str,
)


def _signed(value: int, bits: int) -> int:
    if value >= 1 << (bits - 1):
        return value - (1 << bits)
    return value


class Cursor:
    """A read position within an immutable byte buffer."""

    __slots__ = ("_buf", "_view", "_offset")

    def __init__(self, buf, offset: int = 0) -> None:
        self._buf = buf if isinstance(buf, bytes) else bytes(buf)
        self._view = memoryview(self._buf)
        self._offset = offset

    def __repr__(self) -> str:
        return f"Cursor(offset={self._offset}, length={len(self._buf)})"

    def _copy(self) -> Cursor:
        return Cursor(self._buf, self._offset)

    def consumed(self) -> int:
        """Number of bytes read so far."""
        return self._offset

    def align_to(self, alignment: int) -> int:
        """Skip zero padding up to the next multiple of alignment; return its size."""
        padding = align_offset(alignment, self._view, self._offset)
        self._offset += padding
        return padding

    def remainder(self) -> memoryview:
        """Read-only view of the bytes not yet read."""
        return self._view[self._offset :]

    def read_u8(self) -> int:
        if self._offset >= len(self._buf):
            raise NotEnoughBytes()
        self._offset += 1
        return self._buf[self._offset - 1]

    def _read_fixed(self, parse, size: int, byteorder: ByteOrder) -> int:
        self.align_to(size)
        value = parse(self.remainder(), byteorder)
        self._offset += size
        return value

    def read_i16(self, byteorder: ByteOrder) -> int:
        return _signed(self.read_u16(byteorder), 16)

    def read_u16(self, byteorder: ByteOrder) -> int:
        return self._read_fixed(parse_u16, 2, byteorder)

    def read_i32(self, byteorder: ByteOrder) -> int:
        return _signed(self.read_u32(byteorder), 32)

    def read_u32(self, byteorder: ByteOrder) -> int:
        return self._read_fixed(parse_u32, 4, byteorder)

    def read_i64(self, byteorder: ByteOrder) -> int:
        return _signed(self.read_u64(byteorder), 64)

    def read_u64(self, byteorder: ByteOrder) -> int:
        return self._read_fixed(parse_u64, 8, byteorder)

    def read_str(self, byteorder: ByteOrder) -> str:
        self.align_to(4)
        used, value = unmarshal_str(byteorder, self.remainder())
        self._offset += used
        return value

    def read_signature(self) -> str:
        used, value = unmarshal_signature(self.remainder())
        self._offset += used
        return value

    def read_u8_slice(self, byteorder: ByteOrder) -> bytes:
        """Read a byte array: u32 length followed by that many bytes."""
        self.align_to(4)
        length = self.read_u32(byteorder)
        return self.read_raw(length)

    def read_raw(self, length: int) -> bytes:
        if length > len(self.remainder()):
            raise NotEnoughBytes()
        start = self._offset
        self._offset += length
        return self._buf[start : self._offset]

    def advance(self, advance_by: int) -> None:
        self._offset += advance_by


class UnmarshalContext:
    """A cursor paired with the byte order and file descriptors of a message."""

    __slots__ = ("byteorder", "fds", "_cursor")

    def __init__(
        self,
        fds: Sequence[Any],
        byteorder: ByteOrder,
        buf,
        offset: int = 0,
    ) -> None:
        self.fds = fds
        self.byteorder = byteorder
        self._cursor = Cursor(buf, offset)

    def __repr__(self) -> str:
        return (
            f"UnmarshalContext(byteorder={self.byteorder}, fds={len(self.fds)}, "
            f"offset={self._cursor.consumed()})"
        )

    def copy(self) -> UnmarshalContext:
        """Return an independent context at the same position."""
        other = UnmarshalContext.__new__(UnmarshalContext)
        other.fds = self.fds
        other.byteorder = self.byteorder
        other._cursor = self._cursor._copy()
        return other

    def sub_context(self, length: int) -> UnmarshalContext:
        """Consume length bytes and return a context limited to them."""
        region = self.read_raw(length)
        return UnmarshalContext(self.fds, self.byteorder, region, 0)

    def align_to(self, alignment: int) -> int:
        return self._cursor.align_to(alignment)

    def remainder(self) -> memoryview:
        return self._cursor.remainder()

    def read_u8(self) -> int:
        return self._cursor.read_u8()

    def read_i16(self) -> int:
        return self._cursor.read_i16(self.byteorder)

    def read_u16(self) -> int:
        return self._cursor.read_u16(self.byteorder)

    def read_i32(self) -> int:
        return self._cursor.read_i32(self.byteorder)

    def read_u32(self) -> int:
        return self._cursor.read_u32(self.byteorder)

    def read_unixfd(self):
        """Read a descriptor index and return the matching descriptor."""
        index = self._cursor.read_u32(self.byteorder)
        if index >= len(self.fds):
            raise BadFdIndex(index)
        return self.fds[index]

    def read_i64(self) -> int:
        return self._cursor.read_i64(self.byteorder)

    def read_u64(self) -> int:
        return self._cursor.read_u64(self.byteorder)

    def read_str(self) -> str:
        return self._cursor.read_str(self.byteorder)

    def read_signature(self) -> str:
        return self._cursor.read_signature()

    def read_u8_slice(self) -> bytes:
        return self._cursor.read_u8_slice(self.byteorder)

    def read_raw(self, length: int) -> bytes:
        return self._cursor.read_raw(length)