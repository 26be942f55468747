"""Decode marshalled values into generic parameters driven by a signature."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any

from .context import UnmarshalContext
from .errors import EmptyStruct, InvalidBoolean, WrongSignature
from .signature import (
    Array,
    Base,
    Dict,
    Struct,
    VariantType,
    alignment,
    parse_description,
)
from .wrappers import ObjectPath, SignatureWrapper


@dataclass
class ArrayParam:
    """An array of values that all have element_sig."""

    element_sig: Any
    values: list = field(default_factory=list)


@dataclass
class DictParam:
    """A dict from basic keys of key_sig to values of value_sig."""

    key_sig: Base
    value_sig: Any
    map: dict = field(default_factory=dict)


@dataclass
class StructParam:
    """The fields of a struct, in order."""

    fields: list = field(default_factory=list)


@dataclass
class VariantParam:
    """A value together with the signature it was sent with."""

    sig: Any
    value: Any


def unmarshal_base(typ: Base, ctx: UnmarshalContext):
    """Decode one basic value of type typ."""
    if typ is Base.BYTE:
        return ctx.read_u8()
    if typ is Base.UINT16:
        return ctx.read_u16()
    if typ is Base.INT16:
        return ctx.read_i16()
    if typ is Base.UINT32:
        return ctx.read_u32()
    if typ is Base.UNIX_FD:
        return ctx.read_unixfd()
    if typ is Base.INT32:
        return ctx.read_i32()
    if typ is Base.UINT64:
        return ctx.read_u64()
    if typ is Base.INT64:
        return ctx.read_i64()
    if typ is Base.DOUBLE:
        bits = ctx.read_u64()
        return struct.unpack("<d", bits.to_bytes(8, "little"))[0]
    if typ is Base.BOOLEAN:
        value = ctx.read_u32()
        if value == 0:
            return False
        if value == 1:
            return True
        raise InvalidBoolean()
    if typ is Base.STRING:
        return ctx.read_str()
    if typ is Base.OBJECT_PATH:
        return ObjectPath(ctx.read_str())
    if typ is Base.SIGNATURE:
        return SignatureWrapper(ctx.read_signature())
    raise TypeError(f"not a basic type: {typ!r}")


def unmarshal_with_sig(sig, ctx: UnmarshalContext):
    """Decode one value of any type sig."""
    if isinstance(sig, Base):
        return unmarshal_base(sig, ctx)
    return unmarshal_container(sig, ctx)


def unmarshal_variant(ctx: UnmarshalContext) -> VariantParam:
    """Decode a variant: its signature followed by the value."""
    types = parse_description(ctx.read_signature())
    if len(types) != 1:
        raise WrongSignature()
    sig = types[0]
    return VariantParam(sig, unmarshal_with_sig(sig, ctx))


def unmarshal_container(typ, ctx: UnmarshalContext):
    """Decode one value of a container type."""
    if isinstance(typ, Array):
        bytes_in_array = ctx.read_u32()
        ctx.align_to(alignment(typ.element))
        sub = ctx.sub_context(bytes_in_array)
        values = []
        while len(sub.remainder()):
            values.append(unmarshal_with_sig(typ.element, sub))
        return ArrayParam(typ.element, values)

    if isinstance(typ, Dict):
        bytes_in_dict = ctx.read_u32()
        ctx.align_to(8)
        sub = ctx.sub_context(bytes_in_dict)
        entries = {}
        while len(sub.remainder()):
            sub.align_to(8)
            key = unmarshal_base(typ.key, sub)
            entries[key] = unmarshal_with_sig(typ.value, sub)
        return DictParam(typ.key, typ.value, entries)

    if isinstance(typ, Struct):
        ctx.align_to(8)
        if not typ.fields:
            raise EmptyStruct()
        return StructParam([unmarshal_with_sig(f, ctx) for f in typ.fields])

    if isinstance(typ, VariantType):
        return unmarshal_variant(ctx)

    raise TypeError(f"not a container type: {typ!r}")