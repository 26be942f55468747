"""Typed decoders for structs, arrays, dicts and variants."""

from __future__ import annotations

import struct
from typing import Any

from .context import UnmarshalContext
from .decode import BaseCodec, Codec
from .errors import NotAllBytesUsed, UnmarshalError, WrongSignature
from .signature import (
    Array,
    Base,
    Dict,
    Struct,
    VariantType,
    alignment,
    bytes_always_valid,
    parse_description,
    to_str,
)
from .util import ByteOrder
from .validate import ValidationFailure, validate_marshalled

_FORMATS = {
    Base.BYTE: "B",
    Base.INT16: "h",
    Base.UINT16: "H",
    Base.INT32: "i",
    Base.UINT32: "I",
    Base.INT64: "q",
    Base.UINT64: "Q",
    Base.DOUBLE: "d",
}


def _require_codec(value: Any) -> Codec:
    if not isinstance(value, Codec):
        raise TypeError(f"not a codec: {value!r}")
    return value


class TupleCodec(Codec):
    """Decodes a struct into a tuple, one codec per field."""

    def __init__(self, *args: Codec) -> None:
        if not args:
            raise ValueError("a struct needs at least one field")
        self.elements = tuple(_require_codec(arg) for arg in args)

    def signature(self) -> Struct:
        return Struct(tuple(element.signature() for element in self.elements))

    def unmarshal(self, ctx: UnmarshalContext) -> tuple:
        ctx.align_to(8)
        values = []
        for element in self.elements:
            ctx.align_to(element.alignment())
            values.append(element.unmarshal(ctx))
        return tuple(values)


class ListCodec(Codec):
    """Decodes an array into a list of elements decoded by one codec."""

    def __init__(self, element: Codec) -> None:
        self.element = _require_codec(element)

    def signature(self) -> Array:
        return Array(self.element.signature())

    def _fixed_base(self) -> Base | None:
        if isinstance(self.element, BaseCodec) and bytes_always_valid(self.element.base):
            return self.element.base
        return None

    def _unmarshal_fixed(self, ctx: UnmarshalContext, base: Base) -> list:
        bytes_in_array = ctx.read_u32()
        size = alignment(base)
        ctx.align_to(size)
        if bytes_in_array % size:
            raise NotAllBytesUsed()
        raw = ctx.read_raw(bytes_in_array)
        prefix = "<" if ctx.byteorder is ByteOrder.LITTLE_ENDIAN else ">"
        return [value for (value,) in struct.iter_unpack(prefix + _FORMATS[base], raw)]

    def unmarshal(self, ctx: UnmarshalContext) -> list:
        base = self._fixed_base()
        if base is not None:
            return self._unmarshal_fixed(ctx, base)

        ctx.align_to(4)
        bytes_in_array = ctx.read_u32()
        element_alignment = self.element.alignment()
        ctx.align_to(element_alignment)

        sub = ctx.sub_context(bytes_in_array)
        values = []
        while len(sub.remainder()):
            sub.align_to(element_alignment)
            values.append(self.element.unmarshal(sub))
        return values


class BytesCodec(Codec):
    """Decodes a byte array into bytes."""

    def signature(self) -> Array:
        return Array(Base.BYTE)

    def unmarshal(self, ctx: UnmarshalContext) -> bytes:
        ctx.align_to(self.alignment())
        return ctx.read_u8_slice()


class DictCodec(Codec):
    """Decodes an array of dict entries into a dict."""

    def __init__(self, key: Codec, value: Codec) -> None:
        self.key = _require_codec(key)
        self.value = _require_codec(value)
        if not isinstance(self.key.signature(), Base):
            raise TypeError(f"dict keys must be of a basic type, not {self.key!r}")

    def signature(self) -> Dict:
        return Dict(self.key.signature(), self.value.signature())

    def unmarshal(self, ctx: UnmarshalContext) -> dict:
        ctx.align_to(4)
        bytes_in_dict = ctx.read_u32()
        # aligned even when the dict is empty
        ctx.align_to(8)

        sub = ctx.sub_context(bytes_in_dict)
        value_alignment = self.value.alignment()
        result = {}
        while len(sub.remainder()):
            sub.align_to(8)
            key = self.key.unmarshal(sub)
            sub.align_to(value_alignment)
            result[key] = self.value.unmarshal(sub)
        return result


class Variant:
    """A variant's signature and the bytes of its still undecoded value."""

    __slots__ = ("_sig", "_sub_ctx")

    def __init__(self, sig, sub_ctx: UnmarshalContext) -> None:
        self._sig = sig
        self._sub_ctx = sub_ctx

    def __repr__(self) -> str:
        return f"Variant({to_str(self._sig)!r})"

    def value_sig(self):
        """The signature type of the contained value."""
        return self._sig

    def get(self, codec: Codec) -> Any:
        """Decode the value with codec; raise WrongSignature if the types differ."""
        if self._sig != codec.signature():
            raise WrongSignature()
        return codec.unmarshal(self._sub_ctx.copy())

    @classmethod
    def unmarshal_with_sig(cls, sig, ctx: UnmarshalContext) -> Variant:
        """Validate a value of type sig at ctx and capture its bytes."""
        ctx.align_to(alignment(sig))
        try:
            used = validate_marshalled(ctx.byteorder, 0, ctx.remainder(), sig)
        except ValidationFailure as failure:
            raise failure.error from None
        return cls(sig, ctx.sub_context(used))


class VariantCodec(Codec):
    """Decodes a variant into a Variant whose value is decoded on demand."""

    def signature(self) -> VariantType:
        return VariantType()

    def unmarshal(self, ctx: UnmarshalContext) -> Variant:
        desc = ctx.read_signature()
        try:
            types = parse_description(desc)
        except UnmarshalError:
            raise WrongSignature() from None
        if len(types) != 1:
            raise WrongSignature()
        return Variant.unmarshal_with_sig(types[0], ctx)