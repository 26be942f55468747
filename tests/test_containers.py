import pytest

from dbuswire.containers import (
    BytesCodec,
    DictCodec,
    ListCodec,
    TupleCodec,
    Variant,
    VariantCodec,
)
from dbuswire.context import UnmarshalContext
from dbuswire.decode import (
    BOOLEAN,
    BYTE,
    DOUBLE,
    INT16,
    INT32,
    INT64,
    OBJECT_PATH,
    SIGNATURE,
    STRING,
    UINT16,
    UINT32,
    UINT64,
    unmarshal,
)
from dbuswire.errors import (
    InvalidBoolean,
    NotAllBytesUsed,
    NotEnoughBytes,
    WrongSignature,
)
from dbuswire.signature import Array, Base, Dict, Struct, VariantType
from dbuswire.util import (
    ByteOrder,
    insert_u32,
    pad_to_align,
    write_signature,
    write_string,
    write_u16,
    write_u32,
    write_u64,
)
from dbuswire.wrappers import ObjectPath, SignatureWrapper

LE = ByteOrder.LITTLE_ENDIAN
BE = ByteOrder.BIG_ENDIAN


def _ctx(data, byteorder=LE):
    return UnmarshalContext([], byteorder, bytes(data), 0)


def _string(value, buf):
    pad_to_align(4, buf)
    write_string(value, LE, buf)


def _encode_dict(entries, write_key, write_value):
    buf = bytearray()
    write_u32(0, LE, buf)
    pad_to_align(8, buf)
    start = len(buf)
    for key, value in entries.items():
        pad_to_align(8, buf)
        write_key(key, buf)
        write_value(value, buf)
    insert_u32(LE, len(buf) - start, buf, 0)
    return bytes(buf)


def _variant(buf, sig, align, writer):
    write_signature(sig, buf)
    pad_to_align(align, buf)
    writer(buf)


VARIANT_CASES = [
    ("y", 1, lambda b: b.append(0x41), BYTE, 0x41),
    ("n", 2, lambda b: write_u16(-1234, LE, b), INT16, -1234),
    ("q", 2, lambda b: write_u16(1234, LE, b), UINT16, 1234),
    ("i", 4, lambda b: write_u32(-1234567, LE, b), INT32, -1234567),
    ("u", 4, lambda b: write_u32(1234567, LE, b), UINT32, 1234567),
    ("x", 8, lambda b: write_u64(-1234568901234, LE, b), INT64, -1234568901234),
    ("t", 8, lambda b: write_u64(1234568901234, LE, b), UINT64, 1234568901234),
    ("s", 4, lambda b: write_string("Hello world!", LE, b), STRING, "Hello world!"),
    ("g", 1, lambda b: write_signature("sy", b), SIGNATURE, SignatureWrapper("sy")),
    ("b", 4, lambda b: write_u32(1, LE, b), BOOLEAN, True),
]


def test_signatures():
    assert TupleCodec(BYTE, STRING).signature() == Struct((Base.BYTE, Base.STRING))
    assert TupleCodec(BYTE, STRING).sig_str() == "(ys)"
    assert ListCodec(UINT32).sig_str() == "au"
    assert BytesCodec().signature() == Array(Base.BYTE)
    assert DictCodec(STRING, VariantCodec()).signature() == Dict(Base.STRING, VariantType())
    assert DictCodec(STRING, VariantCodec()).sig_str() == "a{sv}"
    assert VariantCodec().signature() == VariantType()


def test_alignments_and_has_sig():
    assert TupleCodec(BYTE).alignment() == 8
    assert ListCodec(UINT64).alignment() == 4
    assert DictCodec(BYTE, BYTE).alignment() == 4
    assert VariantCodec().alignment() == 1
    assert VariantCodec().has_sig("v")
    assert not VariantCodec().has_sig("s")


def test_tuple_codec_requires_fields():
    with pytest.raises(ValueError):
        TupleCodec()


def test_dict_codec_rejects_container_key():
    with pytest.raises(TypeError):
        DictCodec(ListCodec(BYTE), BYTE)


def test_byte_array():
    orig = bytes(x % 255 for x in range(1024))
    buf = bytearray()
    write_u32(len(orig), LE, buf)
    buf.extend(orig)
    assert bytes(buf[:4]) == bytes([0, 4, 0, 0])
    assert len(buf) == 1028

    ctx = _ctx(buf)
    assert BytesCodec().unmarshal(ctx) == orig
    assert len(ctx.remainder()) == 0
    assert ListCodec(BYTE).unmarshal(_ctx(buf)) == list(orig)


def test_array_of_byte_arrays():
    orig1 = bytes(x % 255 for x in range(1024))
    orig2 = bytes((x + 4) % 255 for x in range(1024))
    buf = bytearray()
    write_u32(0, LE, buf)
    for arr in (orig1, orig2):
        pad_to_align(4, buf)
        write_u32(len(arr), LE, buf)
        buf.extend(arr)
    insert_u32(LE, len(buf) - 4, buf, 0)
    assert ListCodec(BytesCodec()).unmarshal(_ctx(buf)) == [orig1, orig2]


def test_string_array():
    data = bytes([14, 0, 0, 0, 1, 0, 0, 0, ord("a"), 0, 0, 0, 1, 0, 0, 0, ord("b"), 0])
    ctx = _ctx(data)
    assert ListCodec(STRING).unmarshal(ctx) == ["a", "b"]
    assert len(ctx.remainder()) == 0


@pytest.mark.parametrize(
    "key_codec, write_key",
    [
        (UINT64, lambda k, b: write_u64(k, LE, b)),
        (BYTE, lambda k, b: b.append(k)),
        (INT16, lambda k, b: write_u16(k, LE, b)),
    ],
)
def test_dict_of_strings(key_codec, write_key):
    original = {0: "abc", 1: "dce", 2: "fgh"}
    data = _encode_dict(original, write_key, _string)
    assert DictCodec(key_codec, STRING).unmarshal(_ctx(data)) == original


def test_tuple_of_mixed_values():
    data = bytes([30, 0, 0, 0, 1, 0, 0, 0, 100, 0, 0, 0]) + (-123).to_bytes(
        4, "little", signed=True
    )
    codec = TupleCodec(BYTE, BOOLEAN, BYTE, INT32)
    assert codec.unmarshal(_ctx(data)) == (30, True, 100, -123)


def test_tuple_with_path_and_signature():
    data = bytes(
        [1, 0, 0, 0, 6, 0, 0, 0]
        + list(b"/a/b/c")
        + [0, 8]
        + list(b"ss(aiau)")
        + [0, 0, 0, 0, 0, 0, 0, 0]
    )
    codec = TupleCodec(BYTE, OBJECT_PATH, SIGNATURE, UINT32)
    ctx = _ctx(data)
    assert codec.unmarshal(ctx) == (
        1,
        ObjectPath("/a/b/c"),
        SignatureWrapper("ss(aiau)"),
        0,
    )
    assert len(ctx.remainder()) == 0


def test_tuple_with_u64_max():
    data = bytes([1, 0, 0, 0, 6, 0, 0, 0] + list(b"/a/b/c") + [0, 1] + [0xFF] * 8)
    codec = TupleCodec(BYTE, OBJECT_PATH, BYTE, UINT64)
    assert codec.unmarshal(_ctx(data)) == (
        1,
        ObjectPath("/a/b/c"),
        1,
        0xFFFFFFFFFFFFFFFF,
    )


def test_generic_unmarshal_of_tuple():
    data = bytes(8) + bytes([4, 0, 0, 0]) + b"ABCD\0"
    assert unmarshal(TupleCodec(INT32, INT32, STRING), _ctx(data)) == (0, 0, "ABCD")


@pytest.mark.parametrize(
    "data, codec, expected",
    [
        ([4, 0, 0, 0, 32, 0, 0, 0], ListCodec(UINT32), [32]),
        ([8, 0, 0, 0, 32, 0, 0, 0, 32, 0, 0, 0], ListCodec(UINT32), [32, 32]),
        (
            [16, 0, 0, 0, 0, 0, 0, 0, 32, 0, 0, 0, 0, 0, 0, 0, 32, 0, 0, 0, 0, 0, 0, 0],
            ListCodec(UINT64),
            [32, 32],
        ),
        (
            [
                32, 0, 0, 0, 0, 0, 0, 0, 32, 0, 0, 0, 0, 0, 0, 0, 64, 0, 0, 0, 0, 0, 0, 0,
                32, 0, 0, 0, 0, 0, 0, 0, 64, 0, 0, 0, 0, 0, 0, 0,
            ],
            ListCodec(TupleCodec(UINT64, UINT64)),
            [(32, 64), (32, 64)],
        ),
        (
            [12, 0, 0, 0, 0, 0, 0, 0, 64, 0, 0, 0, 0, 0, 0, 0, 32, 0, 0, 0],
            DictCodec(UINT64, UINT32),
            {64: 32},
        ),
        (
            [16, 0, 0, 0, 0, 0, 0, 0, 32, 0, 0, 0, 0, 0, 0, 0, 64, 0, 0, 0, 0, 0, 0, 0],
            DictCodec(UINT32, UINT64),
            {32: 64},
        ),
    ],
)
def test_marshalled_collections(data, codec, expected):
    ctx = _ctx(data)
    assert codec.unmarshal(ctx) == expected
    assert len(ctx.remainder()) == 0


def test_array_after_byte_is_padded():
    ctx = _ctx([0xFF, 0, 0, 0, 4, 0, 0, 0, 32, 0, 0, 0])
    assert BYTE.unmarshal(ctx) == 0xFF
    assert ListCodec(UINT32).unmarshal(ctx) == [32]


def test_dict_after_byte_is_padded():
    ctx = _ctx([0xFF, 0, 0, 0, 12, 0, 0, 0, 64, 0, 0, 0, 0, 0, 0, 0, 32, 0, 0, 0])
    assert BYTE.unmarshal(ctx) == 0xFF
    assert DictCodec(UINT64, UINT32).unmarshal(ctx) == {64: 32}


@pytest.mark.parametrize("byteorder", [LE, BE])
def test_i16_array_in_both_byte_orders(byteorder):
    values = [-100, -200, -300, -400, -500, -600]
    buf = bytearray()
    write_u32(2 * len(values), byteorder, buf)
    for value in values:
        write_u16(value, byteorder, buf)
    assert ListCodec(INT16).unmarshal(_ctx(buf, byteorder)) == values


def test_mixed_body_of_arrays():
    buf = bytearray()
    write_u32(6, LE, buf)
    buf.extend(range(6))
    buf.append(0)
    pad_to_align(2, buf)
    write_u16(-10, LE, buf)
    pad_to_align(4, buf)
    write_u32(7, LE, buf)
    buf.extend(range(7))
    pad_to_align(2, buf)
    write_u16(-2000, LE, buf)
    pad_to_align(4, buf)
    write_u32(8, LE, buf)
    buf.extend(range(8))

    ctx = _ctx(buf)
    assert BytesCodec().unmarshal(ctx) == bytes(range(6))
    assert BYTE.unmarshal(ctx) == 0
    assert INT16.unmarshal(ctx) == -10
    assert BytesCodec().unmarshal(ctx) == bytes(range(7))
    assert INT16.unmarshal(ctx) == -2000
    assert BytesCodec().unmarshal(ctx) == bytes(range(8))


def test_double_array():
    buf = bytearray()
    write_u32(16, LE, buf)
    pad_to_align(8, buf)
    write_u64(0x3FF0000000000000, LE, buf)
    write_u64(0x4000000000000000, LE, buf)
    assert ListCodec(DOUBLE).unmarshal(_ctx(buf)) == [1.0, 2.0]


def test_fixed_array_with_partial_element():
    data = bytes([6, 0, 0, 0, 1, 0, 0, 0, 2, 0])
    with pytest.raises(NotAllBytesUsed):
        ListCodec(UINT32).unmarshal(_ctx(data))


def test_array_longer_than_buffer():
    data = bytes([20, 0, 0, 0, 1, 0, 0, 0, ord("a"), 0])
    with pytest.raises(NotEnoughBytes):
        ListCodec(STRING).unmarshal(_ctx(data))


def test_bool_array():
    data = bytes([8, 0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 0])
    assert ListCodec(BOOLEAN).unmarshal(_ctx(data)) == [True, False]
    bad = bytes([4, 0, 0, 0, 2, 0, 0, 0])
    with pytest.raises(InvalidBoolean):
        ListCodec(BOOLEAN).unmarshal(_ctx(bad))


def test_variant_with_sig():
    buf = bytearray()
    _string("test.interface", buf)
    _string("test_property", buf)
    _variant(buf, "y", 1, lambda b: b.append(42))

    ctx = _ctx(buf)
    assert STRING.unmarshal(ctx) == "test.interface"
    assert STRING.unmarshal(ctx) == "test_property"
    variant = VariantCodec().unmarshal(ctx)
    assert variant.value_sig() == Base.BYTE
    assert variant.get(BYTE) == 42
    assert len(ctx.remainder()) == 0


@pytest.mark.parametrize(
    "data, codec, expected",
    [
        ([1, ord("u"), 0, 0, 32, 0, 0, 0], UINT32, 32),
        (
            [4, ord("("), ord("t"), ord("t"), ord(")"), 0, 0, 0,
             32, 0, 0, 0, 0, 0, 0, 0, 64, 0, 0, 0, 0, 0, 0, 0],
            TupleCodec(UINT64, UINT64),
            (32, 64),
        ),
        ([1, ord("y"), 0, 32], BYTE, 32),
        ([1, ord("y"), 0, 16], BYTE, 16),
    ],
)
def test_marshalled_variants(data, codec, expected):
    ctx = _ctx(data)
    variant = VariantCodec().unmarshal(ctx)
    assert variant.get(codec) == expected
    assert len(ctx.remainder()) == 0


@pytest.mark.parametrize("sig, align, writer, codec, expected", VARIANT_CASES)
def test_single_variants(sig, align, writer, codec, expected):
    buf = bytearray()
    _variant(buf, sig, align, writer)
    variant = VariantCodec().unmarshal(_ctx(buf))
    assert variant.get(codec) == expected
    assert variant.get(codec) == expected


def test_array_of_variants():
    cases = [case for case in VARIANT_CASES if case[1] <= 4]
    buf = bytearray()
    write_u32(0, LE, buf)
    for sig, align, writer, _, _ in cases:
        _variant(buf, sig, align, writer)
    insert_u32(LE, len(buf) - 4, buf, 0)

    variants = ListCodec(VariantCodec()).unmarshal(_ctx(buf))
    assert len(variants) == len(cases)
    for variant, (_, _, _, codec, expected) in zip(variants, cases):
        assert variant.get(codec) == expected


def test_dict_of_variants():
    entries = {str(i): case for i, case in enumerate(VARIANT_CASES)}
    data = _encode_dict(
        entries,
        _string,
        lambda case, b: _variant(b, case[0], case[1], case[2]),
    )
    result = DictCodec(STRING, VariantCodec()).unmarshal(_ctx(data))
    assert sorted(result) == sorted(entries)
    for key, (_, _, _, codec, expected) in entries.items():
        assert result[key].get(codec) == expected


def test_variant_get_with_wrong_codec():
    variant = VariantCodec().unmarshal(_ctx([1, ord("y"), 0, 7]))
    with pytest.raises(WrongSignature):
        variant.get(UINT32)


def test_variant_of_struct():
    buf = bytearray()
    write_signature("(yuyt)", buf)
    pad_to_align(8, buf)
    buf.append(10)
    pad_to_align(4, buf)
    write_u32(100, LE, buf)
    buf.append(20)
    pad_to_align(8, buf)
    write_u64(200, LE, buf)

    variant = VariantCodec().unmarshal(_ctx(buf))
    assert variant.value_sig() == Struct((Base.BYTE, Base.UINT32, Base.BYTE, Base.UINT64))
    assert variant.get(TupleCodec(BYTE, UINT32, BYTE, UINT64)) == (10, 100, 20, 200)


def test_variant_of_struct_with_empty_signature():
    buf = bytearray()
    write_signature("(yugt)", buf)
    pad_to_align(8, buf)
    buf.append(10)
    pad_to_align(4, buf)
    write_u32(100, LE, buf)
    write_signature("", buf)
    pad_to_align(8, buf)
    write_u64(200, LE, buf)

    variant = VariantCodec().unmarshal(_ctx(buf))
    codec = TupleCodec(BYTE, UINT32, SIGNATURE, UINT64)
    assert variant.get(codec) == (10, 100, SignatureWrapper(""), 200)


@pytest.mark.parametrize(
    "data",
    [
        [2, ord("y"), ord("y"), 0, 1, 2],
        [1, ord("("), 0],
        [1, ord("z"), 0, 0],
        [0, 0],
    ],
)
def test_variant_with_bad_signature(data):
    with pytest.raises(WrongSignature):
        VariantCodec().unmarshal(_ctx(data))


def test_variant_with_invalid_value():
    with pytest.raises(InvalidBoolean):
        VariantCodec().unmarshal(_ctx([1, ord("b"), 0, 0, 2, 0, 0, 0]))


def test_variant_with_truncated_value():
    with pytest.raises(NotEnoughBytes):
        VariantCodec().unmarshal(_ctx([1, ord("u"), 0, 0, 1, 0]))


def test_variant_constructed_directly():
    variant = Variant(Base.UINT32, _ctx([7, 0, 0, 0]))
    assert variant.value_sig() == Base.UINT32
    assert variant.get(UINT32) == 7


def test_variant_unmarshal_with_sig_consumes_value():
    ctx = _ctx([0, 0, 0, 0, 5, 0, 0, 0, 9])
    ctx.read_u8()
    variant = Variant.unmarshal_with_sig(Base.UINT32, ctx)
    assert variant.get(UINT32) == 5
    assert BYTE.unmarshal(ctx) == 9