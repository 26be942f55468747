"""Typed decoders for D-Bus values and the generic unmarshal entry point."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .context import UnmarshalContext
from .params import unmarshal_base
from .signature import Base, alignment, to_str
from .wrappers import ObjectPath, SignatureWrapper


class Codec(ABC):
    """Knows the signature of one D-Bus type and how to decode its values."""

    @abstractmethod
    def signature(self):
        """The signature type of the values this codec decodes."""

    def alignment(self) -> int:
        """Alignment in bytes of the encoded values."""
        return alignment(self.signature())

    def sig_str(self) -> str:
        """The signature rendered as a string."""
        return to_str(self.signature())

    def has_sig(self, sig: str) -> bool:
        """True if sig starts with this codec's signature."""
        return sig.startswith(self.sig_str())

    @abstractmethod
    def unmarshal(self, ctx: UnmarshalContext) -> Any:
        """Decode one value at the context's position and advance past it."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.sig_str()!r})"


class BaseCodec(Codec):
    """Decodes values of one basic type."""

    __slots__ = ("base",)

    def __init__(self, base: Base) -> None:
        if not isinstance(base, Base):
            raise TypeError(f"not a basic type: {base!r}")
        self.base = base

    def signature(self) -> Base:
        return self.base

    def unmarshal(self, ctx: UnmarshalContext) -> Any:
        return unmarshal_base(self.base, ctx)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BaseCodec):
            return NotImplemented
        return self.base is other.base

    def __hash__(self) -> int:
        return hash((BaseCodec, self.base))


class ObjectPathCodec(Codec):
    """Decodes a string and checks that it is a valid object path."""

    def signature(self) -> Base:
        return Base.OBJECT_PATH

    def unmarshal(self, ctx: UnmarshalContext) -> ObjectPath:
        return ObjectPath(ctx.read_str())


class SignatureCodec(Codec):
    """Decodes a signature string and checks that it is valid."""

    def signature(self) -> Base:
        return Base.SIGNATURE

    def unmarshal(self, ctx: UnmarshalContext) -> SignatureWrapper:
        return SignatureWrapper(ctx.read_signature())


def unmarshal(codec: Codec, ctx: UnmarshalContext) -> Any:
    """Decode one value with codec from ctx."""
    return codec.unmarshal(ctx)


BYTE = BaseCodec(Base.BYTE)
BOOLEAN = BaseCodec(Base.BOOLEAN)
INT16 = BaseCodec(Base.INT16)
UINT16 = BaseCodec(Base.UINT16)
INT32 = BaseCodec(Base.INT32)
UINT32 = BaseCodec(Base.UINT32)
INT64 = BaseCodec(Base.INT64)
UINT64 = BaseCodec(Base.UINT64)
DOUBLE = BaseCodec(Base.DOUBLE)
STRING = BaseCodec(Base.STRING)
UNIX_FD = BaseCodec(Base.UNIX_FD)
OBJECT_PATH = ObjectPathCodec()
SIGNATURE = SignatureCodec()