"""Validated string wrappers for object paths and signatures."""

from __future__ import annotations

import re

from .errors import InvalidObjectPath, InvalidSignature
from .signature import MAX_SIGNATURE_LENGTH, parse_description

_PATH_ELEMENT = re.compile(r"[A-Za-z0-9_]+")


def validate_object_path(path: str) -> None:
    """Raise InvalidObjectPath unless path is a valid D-Bus object path."""
    if not isinstance(path, str) or not path.startswith("/"):
        raise InvalidObjectPath()
    if path == "/":
        return
    if not all(_PATH_ELEMENT.fullmatch(part) for part in path[1:].split("/")):
        raise InvalidObjectPath()


def validate_signature(sig: str) -> None:
    """Raise InvalidSignature unless sig is a valid D-Bus signature."""
    if not isinstance(sig, str) or len(sig) > MAX_SIGNATURE_LENGTH:
        raise InvalidSignature()
    parse_description(sig)


class ObjectPath:
    """A string checked at creation to be a valid object path."""

    __slots__ = ("_path",)

    def __init__(self, path: str) -> None:
        if not isinstance(path, str):
            raise TypeError(f"object path must be a str, not {type(path).__name__}")
        validate_object_path(path)
        self._path = path

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"ObjectPath({self._path!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectPath):
            return NotImplemented
        return self._path == other._path

    def __hash__(self) -> int:
        return hash((ObjectPath, self._path))


class SignatureWrapper:
    """A string checked at creation to be a valid signature."""

    __slots__ = ("_sig",)

    def __init__(self, sig: str) -> None:
        if not isinstance(sig, str):
            raise TypeError(f"signature must be a str, not {type(sig).__name__}")
        validate_signature(sig)
        self._sig = sig

    def __str__(self) -> str:
        return self._sig

    def __repr__(self) -> str:
        return f"SignatureWrapper({self._sig!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SignatureWrapper):
            return NotImplemented
        return self._sig == other._sig

    def __hash__(self) -> int:
        return hash((SignatureWrapper, self._sig))