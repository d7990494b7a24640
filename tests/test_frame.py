import struct

import pytest

from beeframe.checksum import compute_checksum
from beeframe.frame import (
    FrameParser,
    NavField,
    ProtocolError,
    build_layout,
    decode_value,
    format_record,
)
from beeframe.protocol import FRAME_CHECK, FRAME_HEADER, ChecksumType, DataType, FieldSpec


def _specs(checksum="add8"):
    specs = [
        FieldSpec(FRAME_HEADER, "uchar", "0xAA"),
        FieldSpec(FRAME_HEADER, "uchar", "0x55"),
        FieldSpec("speed", "short"),
        FieldSpec("angle", "float"),
    ]
    if checksum is not None:
        specs.append(FieldSpec(FRAME_CHECK, "--", checksum))
    return specs


def _payload(speed, angle, little=True):
    prefix = "<" if little else ">"
    return struct.pack(prefix + "hf", speed, angle)


def _frame(layout, payload, little=True):
    return layout.header + payload + compute_checksum(
        layout.checksum, layout.header, payload, little
    )


def test_layout_lengths():
    layout = build_layout(_specs())
    assert layout.header == b"\xaa\x55"
    assert layout.data_length == DataType.SHORT.size() + DataType.FLOAT.size()
    assert layout.check_length == ChecksumType.ADD8.length()
    assert layout.frame_length == 2 + layout.data_length + layout.check_length
    assert [f.name for f in layout.fields] == ["speed", "angle"]


def test_header_accepts_plain_hex():
    specs = [FieldSpec(FRAME_HEADER, "uchar", "aa"), FieldSpec("x", "uchar")]
    assert build_layout(specs).header == b"\xaa"


@pytest.mark.parametrize(
    "specs",
    [
        [],
        [FieldSpec("x", "uchar"), FieldSpec(FRAME_HEADER, "uchar", "0xAA")],
        [
            FieldSpec(FRAME_HEADER, "uchar", "0xAA"),
            FieldSpec("x", "uchar"),
            FieldSpec(FRAME_HEADER, "uchar", "0x55"),
        ],
        [
            FieldSpec(FRAME_HEADER, "uchar", "0xAA"),
            FieldSpec(FRAME_CHECK, "--", "add8"),
            FieldSpec("x", "uchar"),
        ],
        [FieldSpec(FRAME_HEADER, "uchar", "0x100"), FieldSpec("x", "uchar")],
        [FieldSpec(FRAME_HEADER, "uchar", "zz"), FieldSpec("x", "uchar")],
        [FieldSpec(FRAME_HEADER, "uchar", "0xAA")],
        [FieldSpec(FRAME_HEADER, "uchar", "0xAA"), FieldSpec("x", "quad")],
        [
            FieldSpec(FRAME_HEADER, "uchar", "0xAA"),
            FieldSpec("x", "uchar"),
            FieldSpec(FRAME_CHECK, "--", "md5"),
        ],
    ],
)
def test_invalid_protocols(specs):
    with pytest.raises(ProtocolError):
        build_layout(specs)


def test_charts_limit_lines():
    specs = [FieldSpec(FRAME_HEADER, "uchar", "0xAA")]
    specs += [FieldSpec(f"v{i}", "uchar", curve1=True, curve3=(i == 0)) for i in range(4)]
    layout = build_layout(specs)
    assert layout.charts[0] == ["v0", "v1", "v2"]
    assert layout.charts[1] == []
    assert layout.charts[2] == ["v0"]
    assert [f.curves for f in layout.fields] == [(1, 0, 1), (2, 0, 0), (3, 0, 0), (0, 0, 0)]


@pytest.mark.parametrize("little", [True, False])
@pytest.mark.parametrize(
    "checksum", [None, "add8", "add8_0", "xor8", "xor8_0", "add16", "crc16_xmodem"]
)
def test_round_trip(checksum, little):
    layout = build_layout(_specs(checksum))
    parser = FrameParser(layout, little)
    parser.feed(_frame(layout, _payload(-300, 1.5, little), little))
    fields = parser.next_frame()
    assert [f.value for f in fields] == [-300, 1.5]
    assert parser.buffered == b""


def test_garbage_before_frame_is_dropped():
    layout = build_layout(_specs())
    parser = FrameParser(layout)
    parser.feed(b"\x01\x02\x03" + _frame(layout, _payload(7, 0.25)))
    assert [f.value for f in parser.next_frame()] == [7, 0.25]


def test_bad_checksum_frame_is_skipped():
    layout = build_layout(_specs())
    good = _frame(layout, _payload(5, 2.0))
    bad = bytearray(_frame(layout, _payload(9, 3.0)))
    bad[-1] ^= 0xFF
    parser = FrameParser(layout)
    parser.feed(bytes(bad) + good)
    frames = list(parser.frames())
    assert len(frames) == 1
    assert frames[0][0].value == 5


def test_partial_header_at_end_is_kept():
    layout = build_layout(_specs())
    parser = FrameParser(layout)
    parser.feed(b"\x00" * layout.frame_length + b"\xaa")
    assert parser.next_frame() is None
    assert parser.buffered == b"\xaa"


def test_no_header_clears_buffer():
    layout = build_layout(_specs())
    parser = FrameParser(layout)
    parser.feed(b"\x00" * (layout.frame_length + 2))
    assert parser.next_frame() is None
    assert parser.buffered == b""


def test_frame_split_across_feeds():
    layout = build_layout(_specs())
    frame = _frame(layout, _payload(11, -0.5))
    parser = FrameParser(layout)
    parser.feed(b"\x07" * layout.frame_length + frame[:3])
    assert parser.next_frame() is None
    parser.feed(frame[3:])
    assert [f.value for f in parser.next_frame()] == [11, -0.5]


def test_frames_yields_all():
    layout = build_layout(_specs())
    parser = FrameParser(layout)
    data = b"".join(_frame(layout, _payload(n, float(n))) for n in range(4))
    parser.feed(data)
    assert [f[0].value for f in parser.frames()] == [0, 1, 2, 3]


def test_decode_rejects_wrong_length():
    parser = FrameParser(build_layout(_specs()))
    with pytest.raises(ProtocolError):
        parser.decode(b"\x00\x01")


def test_decode_keeps_raw_bytes():
    layout = build_layout(_specs(None))
    payload = _payload(4, 8.0)
    fields = FrameParser(layout).decode(payload)
    assert b"".join(f.raw for f in fields) == payload
    assert layout.fields[0].value == 0


@pytest.mark.parametrize(
    "data_type, code",
    [
        (DataType.CHAR, "b"),
        (DataType.UCHAR, "B"),
        (DataType.SHORT, "h"),
        (DataType.USHORT, "H"),
        (DataType.INT, "i"),
        (DataType.UINT, "I"),
        (DataType.DOUBLE, "d"),
    ],
)
@pytest.mark.parametrize("little", [True, False])
def test_decode_value_round_trip(data_type, code, little):
    value = 100
    raw = struct.pack(("<" if little else ">") + code, value)
    assert decode_value(data_type, raw, little) == value


def test_decode_value_fixed_cases():
    assert decode_value(DataType.SHORT, b"\xff\xff") == -1
    assert decode_value(DataType.USHORT, b"\xff\xff") == 65535
    assert decode_value(DataType.BYTES3, b"\xff\xff\xff") == -1
    assert decode_value(DataType.BYTES3, b"\x00\x00\x01", False) == decode_value(
        DataType.BYTES3, b"\x01\x00\x00", True
    )


def test_decode_value_wrong_size():
    with pytest.raises(ProtocolError):
        decode_value(DataType.INT, b"\x00\x01")


def test_format_record():
    fields = [
        NavField("a", DataType.SHORT, value=3),
        NavField("b", DataType.DOUBLE, value=0.5),
    ]
    assert format_record(fields) == "3, 0.500000\r\n"
    assert format_record(fields, nav=True, header=True) == "a, b\r\n3, 0.5\r\n"
    assert format_record(fields, header=True).splitlines()[0] == "a, b"