"""Exceptions raised while decoding D-Bus wire data."""

from __future__ import annotations


class UnmarshalError(Exception):
    """Bytes could not be decoded as the expected D-Bus value."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnmarshalError):
            return NotImplemented
        return type(self) is type(other) and self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))

    def __str__(self) -> str:
        if self.args:
            return super().__str__()
        doc = type(self).__doc__ or type(self).__name__
        return doc.strip().splitlines()[0]


class NotEnoughBytes(UnmarshalError):
    """The buffer ended before the value was complete."""


class NotEnoughBytesForCollection(UnmarshalError):
    """The buffer is shorter than the byte count an array or dict claims."""


class PaddingContainedData(UnmarshalError):
    """A padding byte was not zero."""


class InvalidBoolean(UnmarshalError):
    """A boolean was encoded as something other than 0 or 1."""


class InvalidUtf8(UnmarshalError):
    """A string or signature was not valid UTF-8."""


class StringContainsNullByte(UnmarshalError):
    """A string contained an embedded null byte."""


class WrongSignature(UnmarshalError):
    """The signature found does not match the one expected."""


class BadFdIndex(UnmarshalError):
    """A file descriptor index points outside the message's descriptors."""

    def __init__(self, index: int) -> None:
        super().__init__(index)
        self.index = index

    def __str__(self) -> str:
        return f"file descriptor index {self.index} is out of range"


class NotAllBytesUsed(UnmarshalError):
    """The byte count does not hold a whole number of elements."""


class EmptyStruct(UnmarshalError):
    """A struct signature has no fields."""


class NoMatchingVariantFound(UnmarshalError):
    """No case of a variant type matched the signature found."""


class InvalidObjectPath(UnmarshalError):
    """A string is not a valid object path."""


class InvalidSignature(UnmarshalError):
    """A string is not a valid type signature."""