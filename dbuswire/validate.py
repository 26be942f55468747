"""Check marshalled bytes for validity against a signature without decoding them."""

from __future__ import annotations

from .errors import (
    InvalidBoolean,
    NotEnoughBytes,
    NotEnoughBytesForCollection,
    UnmarshalError,
    WrongSignature,
)
from .signature import (
    Array,
    Base,
    Dict,
    Struct,
    VariantType,
    alignment,
    bytes_always_valid,
    parse_description,
)
from .util import ByteOrder, align_offset, parse_u32, unmarshal_signature, unmarshal_str
from .wrappers import validate_object_path, validate_signature


class ValidationFailure(Exception):
    """Marshalled data is invalid; carries the position and the underlying error."""

    def __init__(self, position: int, error: UnmarshalError) -> None:
        super().__init__(position, error)
        self.position = position
        self.error = error

    def __str__(self) -> str:
        return f"invalid data at byte {self.position}: {self.error}"


_FIXED_SIZES = {
    Base.BYTE: 1,
    Base.INT16: 2,
    Base.UINT16: 2,
    Base.INT32: 4,
    Base.UINT32: 4,
    Base.UNIX_FD: 4,
    Base.INT64: 8,
    Base.UINT64: 8,
    Base.DOUBLE: 8,
}


def _view(raw) -> memoryview:
    if isinstance(raw, memoryview):
        return raw
    try:
        return memoryview(raw)
    except TypeError:
        return memoryview(bytes(raw))


def _at(position: int, func, *args):
    try:
        return func(*args)
    except UnmarshalError as err:
        raise ValidationFailure(position, err) from None


def validate_marshalled(byteorder: ByteOrder, offset: int, raw, sig) -> int:
    """Validate one value of type sig at offset; return the bytes it uses."""
    if isinstance(sig, Base):
        return validate_marshalled_base(byteorder, offset, raw, sig)
    return validate_marshalled_container(byteorder, offset, raw, sig)


def validate_marshalled_base(byteorder: ByteOrder, offset: int, buf, sig: Base) -> int:
    """Validate one value of a basic type at offset; return the bytes it uses."""
    buf = _view(buf)
    padding = _at(offset, align_offset, alignment(sig), buf, offset)
    start = offset + padding

    size = _FIXED_SIZES.get(sig)
    if size is not None:
        if len(buf[start:]) < size:
            raise ValidationFailure(start, NotEnoughBytes())
        return size + padding

    if sig is Base.BOOLEAN:
        if len(buf[start:]) < 4:
            raise ValidationFailure(start, NotEnoughBytes())
        value = _at(start, parse_u32, buf[start : start + 4], byteorder)
        if value not in (0, 1):
            raise ValidationFailure(start, InvalidBoolean())
        return 4 + padding

    if sig is Base.STRING:
        used, _ = _at(start, unmarshal_str, byteorder, buf[start:])
        return used + padding

    if sig is Base.OBJECT_PATH:
        used, string = _at(start, unmarshal_str, byteorder, buf[start:])
        _at(start, validate_object_path, string)
        return used + padding

    if sig is Base.SIGNATURE:
        used, string = _at(start, unmarshal_signature, buf[offset:])
        _at(offset, validate_signature, string)
        return used + padding

    raise TypeError(f"not a basic type: {sig!r}")


def _validate_array(byteorder: ByteOrder, offset: int, buf: memoryview, elem) -> int:
    padding = _at(offset, align_offset, 4, buf, offset)
    offset += padding
    bytes_in_array = _at(offset, parse_u32, buf[offset:], byteorder)
    offset += 4

    if len(buf[offset:]) < bytes_in_array:
        raise ValidationFailure(offset, NotEnoughBytesForCollection())

    elem_alignment = alignment(elem)
    first_elem_padding = _at(offset, align_offset, elem_alignment, buf, offset)
    offset += first_elem_padding

    if len(buf[offset:]) < bytes_in_array:
        raise ValidationFailure(offset, NotEnoughBytesForCollection())

    if bytes_always_valid(elem):
        if bytes_in_array % elem_alignment:
            raise ValidationFailure(offset, NotEnoughBytes())
    else:
        array_end = offset + bytes_in_array
        bounded = buf[:array_end]
        used = 0
        while used < bytes_in_array:
            used += validate_marshalled(byteorder, offset + used, bounded, elem)
    return padding + 4 + first_elem_padding + bytes_in_array


def _validate_dict(byteorder: ByteOrder, offset: int, buf: memoryview, sig: Dict) -> int:
    padding = _at(offset, align_offset, 4, buf, offset)
    offset += padding
    bytes_in_dict = _at(offset, parse_u32, buf[offset:], byteorder)
    offset += 4

    if len(buf[offset:]) < bytes_in_dict:
        raise ValidationFailure(offset, NotEnoughBytesForCollection())

    before_elements = _at(offset, align_offset, 8, buf, offset)
    offset += before_elements

    if len(buf[offset:]) < bytes_in_dict:
        raise ValidationFailure(offset, NotEnoughBytesForCollection())

    # entries must not see anything beyond the dict's claimed end
    bounded = buf[: offset + bytes_in_dict]
    used = 0
    while used < bytes_in_dict:
        position = offset + used
        used += _at(position, align_offset, 8, bounded, position)
        used += validate_marshalled_base(byteorder, offset + used, bounded, sig.key)
        used += validate_marshalled(byteorder, offset + used, bounded, sig.value)
    return padding + before_elements + 4 + used


def _validate_struct(byteorder: ByteOrder, offset: int, buf: memoryview, sig: Struct) -> int:
    padding = _at(offset, align_offset, 8, buf, offset)
    offset += padding
    used = 0
    for field in sig.fields:
        used += validate_marshalled(byteorder, offset + used, buf, field)
    return padding + used


def _validate_variant(byteorder: ByteOrder, offset: int, buf: memoryview) -> int:
    sig_used, sig_str = _at(offset, unmarshal_signature, buf[offset:])
    types = _at(offset, parse_description, sig_str)
    if len(types) != 1:
        raise ValidationFailure(offset, WrongSignature())
    value_used = validate_marshalled(byteorder, offset + sig_used, buf, types[0])
    return sig_used + value_used


def validate_marshalled_container(byteorder: ByteOrder, offset: int, buf, sig) -> int:
    """Validate one value of a container type at offset; return the bytes it uses."""
    buf = _view(buf)
    if isinstance(sig, Array):
        return _validate_array(byteorder, offset, buf, sig.element)
    if isinstance(sig, Dict):
        return _validate_dict(byteorder, offset, buf, sig)
    if isinstance(sig, Struct):
        return _validate_struct(byteorder, offset, buf, sig)
    if isinstance(sig, VariantType):
        return _validate_variant(byteorder, offset, buf)
    raise TypeError(f"not a container type: {sig!r}")