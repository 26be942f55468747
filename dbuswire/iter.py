"""Walk a marshalled message value by value without decoding it all at once."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Sequence

from .context import UnmarshalContext
from .decode import Codec
from .errors import WrongSignature
from .params import unmarshal_base
from .signature import (
    Array,
    Base,
    Dict,
    Struct,
    VariantType,
    alignment,
    parse_description,
)
from .util import ByteOrder, align_offset, parse_u32, unmarshal_signature


@dataclass
class Offset:
    """A read position shared by an iterator and the iterators it spawns."""

    value: int = 0


def _as_bytes(source) -> bytes:
    return source if isinstance(source, bytes) else bytes(source)


def _read_base(base: Base, offset: Offset, source: bytes, byteorder: ByteOrder) -> BaseIter:
    ctx = UnmarshalContext((), byteorder, source, offset.value)
    value = unmarshal_base(base, ctx)
    offset.value = len(source) - len(ctx.remainder())
    return BaseIter(value)


class ParamIter:
    """One value in a message; containers yield their children via recurse()."""

    def recurse(self) -> ParamIter | None:
        """Return an iterator over the next child, or None when there are no more."""
        return None

    def is_base(self) -> bool:
        return False

    def base(self) -> Any:
        """The decoded value if this is a basic value, else None."""
        return None

    def __iter__(self) -> Iterator[ParamIter]:
        while (child := self.recurse()) is not None:
            yield child


class BaseIter(ParamIter):
    """A basic value that has already been decoded."""

    def __init__(self, value: Any) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"BaseIter({self.value!r})"

    def is_base(self) -> bool:
        return True

    def base(self) -> Any:
        return self.value


class _Walker(ParamIter):
    def __init__(self, byteorder: ByteOrder, source: bytes, offset: Offset) -> None:
        self.byteorder = byteorder
        self.source = source
        self.offset = offset


class StructIter(_Walker):
    """The fields of a struct, in order."""

    def __init__(self, byteorder: ByteOrder, source: bytes, offset: Offset, fields) -> None:
        super().__init__(byteorder, source, offset)
        self.fields = tuple(fields)
        self._counter = 0

    def recurse(self) -> ParamIter | None:
        if self._counter >= len(self.fields):
            return None
        sig = self.fields[self._counter]
        self._counter += 1
        return param_iter(sig, self.offset, self.source, self.byteorder)


class DictEntryIter(_Walker):
    """A dict entry: its key first, then its value."""

    def __init__(
        self, byteorder: ByteOrder, source: bytes, offset: Offset, key_sig: Base, val_sig
    ) -> None:
        super().__init__(byteorder, source, offset)
        self.key_sig = key_sig
        self.val_sig = val_sig
        self._counter = 0

    def recurse(self) -> ParamIter | None:
        if self._counter == 0:
            child = _read_base(self.key_sig, self.offset, self.source, self.byteorder)
        elif self._counter == 1:
            child = param_iter(self.val_sig, self.offset, self.source, self.byteorder)
        else:
            return None
        self._counter += 1
        return child


class VariantIter(_Walker):
    """The single value held by a variant."""

    def __init__(self, byteorder: ByteOrder, source: bytes, offset: Offset, val_sig) -> None:
        super().__init__(byteorder, source, offset)
        self.val_sig = val_sig
        self._done = False

    def recurse(self) -> ParamIter | None:
        if self._done:
            return None
        self._done = True
        return param_iter(self.val_sig, self.offset, self.source, self.byteorder)


class _Collection(_Walker):
    def __init__(
        self, byteorder: ByteOrder, source: bytes, offset: Offset, max_bytes: int
    ) -> None:
        super().__init__(byteorder, source, offset)
        self.start_offset = offset.value
        self.max_bytes = max_bytes

    def _exhausted(self) -> bool:
        return self.offset.value - self.start_offset >= self.max_bytes


class ArrayIter(_Collection):
    """The elements of an array."""

    def __init__(
        self, byteorder: ByteOrder, source: bytes, offset: Offset, element_sig, max_bytes: int
    ) -> None:
        super().__init__(byteorder, source, offset, max_bytes)
        self.element_sig = element_sig

    def recurse(self) -> ParamIter | None:
        if self._exhausted():
            return None
        return param_iter(self.element_sig, self.offset, self.source, self.byteorder)


class DictIter(_Collection):
    """The entries of a dict."""

    def __init__(
        self,
        byteorder: ByteOrder,
        source: bytes,
        offset: Offset,
        key_sig: Base,
        val_sig,
        max_bytes: int,
    ) -> None:
        super().__init__(byteorder, source, offset, max_bytes)
        self.key_sig = key_sig
        self.val_sig = val_sig

    def recurse(self) -> ParamIter | None:
        if self._exhausted():
            return None
        # every dict entry starts on an 8 byte boundary
        self.offset.value += align_offset(8, self.source, self.offset.value)
        return DictEntryIter(
            self.byteorder, self.source, self.offset, self.key_sig, self.val_sig
        )


def _collection_header(
    offset: Offset, source: bytes, byteorder: ByteOrder, element_alignment: int
) -> int:
    length = parse_u32(source[offset.value :], byteorder)
    offset.value += 4
    offset.value += align_offset(element_alignment, source, offset.value)
    return length


def param_iter(sig, offset: Offset, source, byteorder: ByteOrder) -> ParamIter:
    """Start iterating over one value of type sig at offset, which it advances."""
    source = _as_bytes(source)
    offset.value += align_offset(alignment(sig), source, offset.value)

    if isinstance(sig, Base):
        return _read_base(sig, offset, source, byteorder)
    if isinstance(sig, Array):
        length = _collection_header(offset, source, byteorder, alignment(sig.element))
        return ArrayIter(byteorder, source, offset, sig.element, length)
    if isinstance(sig, Struct):
        return StructIter(byteorder, source, offset, sig.fields)
    if isinstance(sig, Dict):
        length = _collection_header(offset, source, byteorder, 8)
        return DictIter(byteorder, source, offset, sig.key, sig.value, length)
    if isinstance(sig, VariantType):
        used, desc = unmarshal_signature(source[offset.value :])
        types = parse_description(desc)
        if len(types) != 1:
            raise WrongSignature()
        offset.value += used
        val_sig = types[0]
        offset.value += align_offset(alignment(val_sig), source, offset.value)
        return VariantIter(byteorder, source, offset, val_sig)
    raise TypeError(f"not a signature type: {sig!r}")


class MessageIter:
    """Walks the top-level values of a message body, one signature at a time."""

    def __init__(
        self, byteorder: ByteOrder, source, offset: Offset, sigs: Sequence
    ) -> None:
        self.byteorder = byteorder
        self.source = _as_bytes(source)
        self.offset = offset
        self.sigs = tuple(sigs)
        self._counter = 0

    def next_iter(self) -> ParamIter | None:
        """Iterator over the next top-level value, or None after the last."""
        if self._counter >= len(self.sigs):
            return None
        child = param_iter(self.sigs[self._counter], self.offset, self.source, self.byteorder)
        self._counter += 1
        return child

    def unmarshal_next(self, codec: Codec) -> Any:
        """Decode the next top-level value with codec, or return None after the last."""
        if self._counter >= len(self.sigs):
            return None
        ctx = UnmarshalContext((), self.byteorder, self.source, self.offset.value)
        value = codec.unmarshal(ctx)
        self.offset.value = len(self.source) - len(ctx.remainder())
        self._counter += 1
        return value