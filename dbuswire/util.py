"""Low-level helpers for reading and writing D-Bus wire primitives."""

from __future__ import annotations

from enum import Enum

from .errors import (
    InvalidUtf8,
    NotEnoughBytes,
    PaddingContainedData,
    StringContainsNullByte,
)


class ByteOrder(Enum):
    """Byte order of a marshalled message."""

    LITTLE_ENDIAN = "little"
    BIG_ENDIAN = "big"


def pad_to_align(align_to: int, buf: bytearray) -> None:
    """Append zero bytes until the length of buf is a multiple of align_to."""
    remainder = len(buf) % align_to
    if remainder:
        buf.extend(bytes(align_to - remainder))


def _write(val: int, size: int, byteorder: ByteOrder, buf: bytearray) -> None:
    mask = (1 << (size * 8)) - 1
    buf.extend((val & mask).to_bytes(size, byteorder.value))


def _insert(byteorder: ByteOrder, val: int, size: int, buf: bytearray, offset: int) -> None:
    if offset < 0 or offset + size > len(buf):
        raise IndexError(f"cannot insert {size} bytes at offset {offset}")
    mask = (1 << (size * 8)) - 1
    buf[offset : offset + size] = (val & mask).to_bytes(size, byteorder.value)


def _parse(number, size: int, byteorder: ByteOrder) -> int:
    if len(number) < size:
        raise NotEnoughBytes()
    return int.from_bytes(bytes(number[:size]), byteorder.value)


def write_u16(val: int, byteorder: ByteOrder, buf: bytearray) -> None:
    """Append a 16-bit unsigned integer."""
    _write(val, 2, byteorder, buf)


def write_u32(val: int, byteorder: ByteOrder, buf: bytearray) -> None:
    """Append a 32-bit unsigned integer."""
    _write(val, 4, byteorder, buf)


def write_u64(val: int, byteorder: ByteOrder, buf: bytearray) -> None:
    """Append a 64-bit unsigned integer."""
    _write(val, 8, byteorder, buf)


def insert_u16(byteorder: ByteOrder, val: int, buf: bytearray, offset: int = 0) -> None:
    """Overwrite two bytes of buf at offset with val."""
    _insert(byteorder, val, 2, buf, offset)


def insert_u32(byteorder: ByteOrder, val: int, buf: bytearray, offset: int = 0) -> None:
    """Overwrite four bytes of buf at offset with val."""
    _insert(byteorder, val, 4, buf, offset)


def insert_u64(byteorder: ByteOrder, val: int, buf: bytearray, offset: int = 0) -> None:
    """Overwrite eight bytes of buf at offset with val."""
    _insert(byteorder, val, 8, buf, offset)


def write_string(val: str, byteorder: ByteOrder, buf: bytearray) -> None:
    """Append a string: u32 byte length, UTF-8 bytes and a null byte."""
    raw = val.encode("utf-8")
    write_u32(len(raw), byteorder, buf)
    buf.extend(raw)
    buf.append(0)


def write_signature(val: str, buf: bytearray) -> None:
    """Append a signature: u8 length, bytes and a null byte."""
    raw = val.encode("utf-8")
    buf.append(len(raw) & 0xFF)
    buf.extend(raw)
    buf.append(0)


def parse_u16(number, byteorder: ByteOrder) -> int:
    """Read a 16-bit unsigned integer from the start of number."""
    return _parse(number, 2, byteorder)


def parse_u32(number, byteorder: ByteOrder) -> int:
    """Read a 32-bit unsigned integer from the start of number."""
    return _parse(number, 4, byteorder)


def parse_u64(number, byteorder: ByteOrder) -> int:
    """Read a 64-bit unsigned integer from the start of number."""
    return _parse(number, 8, byteorder)


def align_offset(align_to: int, buf, offset: int) -> int:
    """Return the padding needed at offset to reach align_to.

    The padding bytes must be present and all zero.
    """
    padding = (align_to - offset % align_to) % align_to
    if len(buf) - offset < padding:
        raise NotEnoughBytes()
    if any(buf[offset : offset + padding]):
        raise PaddingContainedData()
    return padding


def _decode(raw) -> str:
    try:
        return bytes(raw).decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidUtf8() from None


def unmarshal_signature(buf) -> tuple[int, str]:
    """Decode a signature at the start of buf; return (bytes used, signature)."""
    if len(buf) == 0:
        raise NotEnoughBytes()
    length = buf[0]
    if len(buf) < length + 2:
        raise NotEnoughBytes()
    return length + 2, _decode(buf[1 : 1 + length])


def unmarshal_str(byteorder: ByteOrder, buf) -> tuple[int, str]:
    """Decode a string at the start of buf; return (bytes used, string)."""
    length = parse_u32(buf, byteorder)
    if len(buf) < length + 5:
        raise NotEnoughBytes()
    string = _decode(buf[4 : 4 + length])
    if "\0" in string:
        raise StringContainsNullByte()
    return length + 5, string


def unmarshal_string(byteorder: ByteOrder, buf) -> tuple[int, str]:
    """Decode a string at the start of buf; return (bytes used, string)."""
    return unmarshal_str(byteorder, buf)