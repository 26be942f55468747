# dbuswire

Decode and validate values in the D-Bus wire format.

`dbuswire` reads marshalled D-Bus values straight from bytes, in either byte
order, following the format's alignment and zero-padding rules. Every decoding
problem is raised as a subclass of `dbuswire.errors.UnmarshalError`, for
example `NotEnoughBytes`, `PaddingContainedData`, `InvalidBoolean`,
`WrongSignature` or `BadFdIndex`.

## Modules

- `dbuswire.util` – `ByteOrder` and low-level helpers: `parse_u16/32/64`,
  `write_u16/32/64`, `insert_u16/32/64`, `write_string`, `write_signature`,
  `pad_to_align`, `align_offset`, `unmarshal_str`, `unmarshal_signature`.
- `dbuswire.context` – `Cursor` and `UnmarshalContext`, a read position over a
  buffer together with its byte order and file descriptors
  (`read_u8`, `read_i32`, `read_str`, `read_signature`, `read_unixfd`,
  `sub_context`, `copy`, ...).
- `dbuswire.signature` – signature types (`Base`, `Array`, `Dict`, `Struct`,
  `VariantType`), `parse_description`, `to_str`, `alignment`,
  `bytes_always_valid`.
- `dbuswire.wrappers` – `ObjectPath` and `SignatureWrapper`, strings checked on
  creation, and the checks `validate_object_path` and `validate_signature`.
- `dbuswire.unixfd` – `UnixFd`, a file descriptor closed once no reference to
  it remains, with `get_raw_fd`, `take_raw_fd` and `dup`.
- `dbuswire.decode` – the `Codec` base class, `BaseCodec`, `ObjectPathCodec`,
  `SignatureCodec`, ready-made codecs (`BYTE`, `BOOLEAN`, `INT16`, `UINT16`,
  `INT32`, `UINT32`, `INT64`, `UINT64`, `DOUBLE`, `STRING`, `UNIX_FD`,
  `OBJECT_PATH`, `SIGNATURE`) and the entry point `unmarshal(codec, ctx)`.
- `dbuswire.containers` – `TupleCodec`, `ListCodec`, `BytesCodec`,
  `DictCodec`, `VariantCodec` and `Variant`, whose value is decoded on demand
  with `Variant.get(codec)`.
- `dbuswire.params` – decoding driven only by a signature, into plain values
  and `ArrayParam`, `DictParam`, `StructParam`, `VariantParam`
  (`unmarshal_with_sig`, `unmarshal_base`, `unmarshal_container`,
  `unmarshal_variant`).
- `dbuswire.validate` – `validate_marshalled`, which checks bytes against a
  signature without building values and returns the number of bytes used, or
  raises `ValidationFailure` carrying the `position` and the `error`.
- `dbuswire.iter` – `MessageIter`, `param_iter` and the `ParamIter` family, to
  walk nested values one at a time with `recurse()`.

## Decoding values

```python
from dbuswire.util import ByteOrder
from dbuswire.context import UnmarshalContext
from dbuswire.decode import BaseCodec, unmarshal
from dbuswire.containers import TupleCodec
from dbuswire.signature import Base

# (ys): byte 1, padding, then the string "AB"
buf = bytes([1, 0, 0, 0, 2, 0, 0, 0]) + b"AB\0"
ctx = UnmarshalContext([], ByteOrder.LITTLE_ENDIAN, buf, 0)
codec = TupleCodec(BaseCodec(Base.BYTE), BaseCodec(Base.STRING))
print(unmarshal(codec, ctx))  # (1, 'AB')
```

Variants keep their bytes until asked for a value of a given type:

```python
from dbuswire.containers import VariantCodec
from dbuswire.context import UnmarshalContext
from dbuswire.decode import BYTE
from dbuswire.util import ByteOrder

ctx = UnmarshalContext([], ByteOrder.LITTLE_ENDIAN, bytes([1, ord("y"), 0, 42]), 0)
variant = VariantCodec().unmarshal(ctx)
print(variant.get(BYTE))  # 42
```

## Validating raw data

```python
from dbuswire.validate import ValidationFailure, validate_marshalled
from dbuswire.signature import parse_description
from dbuswire.util import ByteOrder

sig = parse_description("(yu)")[0]
raw = bytes([8, 0, 1, 0, 14, 0, 0, 0])  # a 1 inside the padding
try:
    validate_marshalled(ByteOrder.LITTLE_ENDIAN, 0, raw, sig)
except ValidationFailure as failure:
    print(failure.position, failure.error)  # 1 A padding byte was not zero.
```

## What it does not do

`dbuswire` reads and checks values. It does not encode whole values or
messages (only the primitive `write_*` helpers in `dbuswire.util` are
provided), does not parse message headers, and does not connect to a bus or
send and receive messages.

## Running the tests

```
pip install -e .[test]
pytest
```