"""D-Bus type signatures: parsing, printing and alignment."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .errors import InvalidSignature

MAX_SIGNATURE_LENGTH = 255
MAX_NESTING = 32


class Base(Enum):
    """The basic (non-container) D-Bus types, keyed by their type code."""

    BYTE = "y"
    BOOLEAN = "b"
    INT16 = "n"
    UINT16 = "q"
    INT32 = "i"
    UINT32 = "u"
    UNIX_FD = "h"
    INT64 = "x"
    UINT64 = "t"
    DOUBLE = "d"
    STRING = "s"
    OBJECT_PATH = "o"
    SIGNATURE = "g"

    def __str__(self) -> str:
        return self.value


_BASE_BY_CODE = {base.value: base for base in Base}

_BASE_ALIGNMENT = {
    Base.BYTE: 1,
    Base.BOOLEAN: 4,
    Base.INT16: 2,
    Base.UINT16: 2,
    Base.INT32: 4,
    Base.UINT32: 4,
    Base.UNIX_FD: 4,
    Base.INT64: 8,
    Base.UINT64: 8,
    Base.DOUBLE: 8,
    Base.STRING: 4,
    Base.OBJECT_PATH: 4,
    Base.SIGNATURE: 1,
}

# Types whose encoded size equals their alignment and where every bit pattern is valid.
_ALWAYS_VALID = frozenset(
    {
        Base.BYTE,
        Base.INT16,
        Base.UINT16,
        Base.INT32,
        Base.UINT32,
        Base.INT64,
        Base.UINT64,
        Base.DOUBLE,
    }
)


@dataclass(frozen=True)
class Array:
    """An array of elements of one type."""

    element: "Type"

    def __str__(self) -> str:
        return to_str(self)


@dataclass(frozen=True)
class Dict:
    """An array of dict entries with a basic key type."""

    key: Base
    value: "Type"

    def __post_init__(self) -> None:
        if not isinstance(self.key, Base):
            raise InvalidSignature()

    def __str__(self) -> str:
        return to_str(self)


@dataclass(frozen=True)
class Struct:
    """A struct with at least one field."""

    fields: tuple

    def __post_init__(self) -> None:
        fields = tuple(self.fields)
        if not fields:
            raise InvalidSignature()
        object.__setattr__(self, "fields", fields)

    def __str__(self) -> str:
        return to_str(self)


@dataclass(frozen=True)
class VariantType:
    """A variant: a value that carries its own signature."""

    def __str__(self) -> str:
        return "v"


Type = Union[Base, Array, Dict, Struct, VariantType]


class _Parser:
    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    @property
    def at_end(self) -> bool:
        return self._pos >= len(self._text)

    def _peek(self) -> str | None:
        return None if self.at_end else self._text[self._pos]

    def _next(self) -> str:
        if self.at_end:
            raise InvalidSignature()
        char = self._text[self._pos]
        self._pos += 1
        return char

    def parse(self, arrays: int, structs: int) -> Type:
        code = self._next()
        base = _BASE_BY_CODE.get(code)
        if base is not None:
            return base
        if code == "v":
            return VariantType()
        if code == "a":
            if arrays + 1 > MAX_NESTING:
                raise InvalidSignature()
            if self._peek() == "{":
                return self._parse_dict(arrays + 1, structs)
            return Array(self.parse(arrays + 1, structs))
        if code == "(":
            if structs + 1 > MAX_NESTING:
                raise InvalidSignature()
            fields = []
            while self._peek() != ")":
                fields.append(self.parse(arrays, structs + 1))
            self._next()
            return Struct(tuple(fields))
        raise InvalidSignature()

    def _parse_dict(self, arrays: int, structs: int) -> Dict:
        self._next()
        if structs + 1 > MAX_NESTING:
            raise InvalidSignature()
        key = _BASE_BY_CODE.get(self._next())
        if key is None:
            raise InvalidSignature()
        value = self.parse(arrays, structs + 1)
        if self._next() != "}":
            raise InvalidSignature()
        return Dict(key, value)


def parse_description(sig: str) -> list:
    """Parse a signature string into the list of complete types it holds."""
    if len(sig) > MAX_SIGNATURE_LENGTH:
        raise InvalidSignature()
    parser = _Parser(sig)
    types = []
    while not parser.at_end:
        types.append(parser.parse(0, 0))
    return types


def alignment(typ: Type) -> int:
    """Alignment in bytes of values of the given type."""
    if isinstance(typ, Base):
        return _BASE_ALIGNMENT[typ]
    if isinstance(typ, (Array, Dict)):
        return 4
    if isinstance(typ, Struct):
        return 8
    if isinstance(typ, VariantType):
        return 1
    raise TypeError(f"not a signature type: {typ!r}")


def bytes_always_valid(typ: Type) -> bool:
    """True if any bytes of the type's size form a valid value of it."""
    return isinstance(typ, Base) and typ in _ALWAYS_VALID


def to_str(typ: Type) -> str:
    """Render a type as its signature string."""
    if isinstance(typ, Base):
        return typ.value
    if isinstance(typ, Array):
        return "a" + to_str(typ.element)
    if isinstance(typ, Dict):
        return "a{" + typ.key.value + to_str(typ.value) + "}"
    if isinstance(typ, Struct):
        return "(" + "".join(to_str(field) for field in typ.fields) + ")"
    if isinstance(typ, VariantType):
        return "v"
    raise TypeError(f"not a signature type: {typ!r}")