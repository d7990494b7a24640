"""Frame layout built from a protocol definition, and a streaming frame parser."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator, Optional, Sequence, Union

from beeframe.checksum import verify_checksum
from beeframe.protocol import (
    FRAME_CHECK,
    FRAME_HEADER,
    ChecksumType,
    DataType,
    FieldSpec,
    parse_checksum_type,
    parse_data_type,
)

PLOT_MAX_LINE = 3
CHART_COUNT = 3

Number = Union[int, float]


class ProtocolError(ValueError):
    """Raised when a protocol definition or a frame payload is invalid."""


@dataclass
class NavField:
    """A data field of a frame and, after decoding, its value."""

    name: str
    data_type: DataType
    accumulate: bool = False
    curves: tuple[int, int, int] = (0, 0, 0)
    script: str = ""
    value: Number = 0
    raw: bytes = b""

    @property
    def size(self) -> int:
        """Bytes the field occupies in the frame."""
        return self.data_type.size()


@dataclass
class FrameLayout:
    """Header bytes, data fields and checksum of a frame."""

    header: bytes
    fields: list[NavField] = field(default_factory=list)
    checksum: ChecksumType = ChecksumType.NONE
    charts: list[list[str]] = field(
        default_factory=lambda: [[] for _ in range(CHART_COUNT)]
    )

    @property
    def header_length(self) -> int:
        return len(self.header)

    @property
    def data_length(self) -> int:
        return sum(f.size for f in self.fields)

    @property
    def check_length(self) -> int:
        return self.checksum.length()

    @property
    def frame_length(self) -> int:
        return self.header_length + self.data_length + self.check_length


def _parse_header_byte(text: str) -> int:
    try:
        value = int(text.strip(), 16)
    except ValueError:
        raise ProtocolError(f"invalid frame header value: {text!r}") from None
    if not 0 <= value <= 0xFF:
        raise ProtocolError(f"invalid frame header value: {text!r}")
    return value


def build_layout(fields: Sequence[FieldSpec]) -> FrameLayout:
    """Check a protocol definition and work out the frame it describes.

    The header rows must come first and be contiguous, a checksum row may
    only be the last row, and at least one header byte and one data field
    are required. Each chart plots at most ``PLOT_MAX_LINE`` fields.
    """
    if not fields:
        raise ProtocolError("the frame protocol is empty")

    header = bytearray()
    layout = FrameLayout(header=b"")
    last_name = ""

    for position, spec in enumerate(fields):
        if position == 0 and spec.name != FRAME_HEADER:
            raise ProtocolError("the frame must start with a header")
        if spec.name == FRAME_HEADER and last_name not in ("", FRAME_HEADER):
            raise ProtocolError("header bytes must be contiguous at the start")
        if spec.name == FRAME_CHECK and position != len(fields) - 1:
            raise ProtocolError("only one checksum is allowed, at the end")

        if spec.name == FRAME_HEADER:
            header.append(_parse_header_byte(spec.data))
        elif spec.name == FRAME_CHECK:
            try:
                layout.checksum = parse_checksum_type(spec.data)
            except ValueError as exc:
                raise ProtocolError(f"invalid checksum type: {spec.data!r}") from exc
        else:
            try:
                data_type = parse_data_type(spec.type)
            except ValueError as exc:
                raise ProtocolError(
                    f"invalid data type for {spec.name!r}: {spec.type!r}"
                ) from exc
            curves = []
            for chart, wanted in zip(layout.charts, (spec.curve1, spec.curve2, spec.curve3)):
                if wanted and len(chart) < PLOT_MAX_LINE:
                    chart.append(spec.name)
                    curves.append(len(chart))
                else:
                    curves.append(0)
            layout.fields.append(
                NavField(
                    name=spec.name,
                    data_type=data_type,
                    accumulate=spec.accum_check,
                    curves=(curves[0], curves[1], curves[2]),
                    script=spec.data,
                )
            )
        last_name = spec.name

    layout.header = bytes(header)
    if layout.header_length <= 0 or layout.data_length <= 0:
        raise ProtocolError("a frame needs a header and data")
    return layout


_STRUCT_CODES = {
    DataType.CHAR: "b",
    DataType.UCHAR: "B",
    DataType.SHORT: "h",
    DataType.USHORT: "H",
    DataType.INT: "i",
    DataType.UINT: "I",
    DataType.FLOAT: "f",
    DataType.DOUBLE: "d",
}


def decode_value(data_type: DataType, raw: bytes, little_endian: bool = True) -> Number:
    """Decode the bytes of one field; three-byte values are signed."""
    if len(raw) != data_type.size():
        raise ProtocolError(
            f"{data_type.value} needs {data_type.size()} bytes, got {len(raw)}"
        )
    if data_type is DataType.BYTES3:
        return int.from_bytes(raw, "little" if little_endian else "big", signed=True)
    prefix = "<" if little_endian else ">"
    return struct.unpack(prefix + _STRUCT_CODES[data_type], raw)[0]


class FrameParser:
    """Finds frames in a byte stream, checks them and decodes their fields."""

    def __init__(self, layout: FrameLayout, little_endian: bool = True) -> None:
        self.layout = layout
        self.little_endian = little_endian
        self._buffer = bytearray()

    @property
    def buffered(self) -> bytes:
        """Bytes received but not yet consumed."""
        return bytes(self._buffer)

    def feed(self, data: bytes) -> None:
        """Append received bytes to the buffer."""
        self._buffer += data

    def frames(self) -> Iterator[list[NavField]]:
        """Yield every frame that can be decoded from the buffer."""
        while (frame := self.next_frame()) is not None:
            yield frame

    def next_frame(self) -> Optional[list[NavField]]:
        """Return the next decoded frame, or None when no full frame is buffered."""
        while len(self._buffer) >= self.layout.frame_length:
            result = self._attempt()
            if result is not None:
                return result
        return None

    def _attempt(self) -> Optional[list[NavField]]:
        buf = self._buffer
        layout = self.layout
        header = layout.header
        start = buf.find(header)
        if start < 0:
            # Keep a trailing partial header so the next read can complete it.
            for keep in range(layout.header_length - 1, 0, -1):
                index = buf.find(header[:keep])
                if index >= 0 and index + keep == len(buf):
                    del buf[:index]
                    return None
            buf.clear()
            return None

        if len(buf) - start < layout.frame_length:
            del buf[:start]
            return None

        data_start = start + layout.header_length
        check_start = data_start + layout.data_length
        payload = bytes(buf[data_start:check_start])
        check = bytes(buf[check_start:check_start + layout.check_length])

        if layout.checksum is not ChecksumType.NONE and not verify_checksum(
            layout.checksum, header, payload, check, self.little_endian
        ):
            del buf[:data_start]
            return None

        try:
            result: Optional[list[NavField]] = self.decode(payload)
        except ProtocolError:
            result = None
        del buf[:start + layout.frame_length]
        return result

    def decode(self, payload: bytes) -> list[NavField]:
        """Decode the data part of a frame (no header, no checksum)."""
        if len(payload) != self.layout.data_length:
            raise ProtocolError(
                f"payload is {len(payload)} bytes, expected {self.layout.data_length}"
            )
        decoded = []
        offset = 0
        for template in self.layout.fields:
            raw = bytes(payload[offset:offset + template.size])
            offset += template.size
            decoded.append(
                replace(
                    template,
                    raw=raw,
                    value=decode_value(template.data_type, raw, self.little_endian),
                )
            )
        return decoded


def _value_text(value: Number, nav: bool) -> str:
    if isinstance(value, int):
        return str(value)
    return repr(float(value)) if nav else f"{value:.6f}"


def format_record(fields: Iterable[NavField], nav: bool = False, header: bool = False) -> str:
    """Comma separated line of field values, CRLF terminated.

    With ``header`` a line of field names comes first; with ``nav`` floating
    point values are written at full precision instead of six decimals.
    """
    items = list(fields)
    lines = []
    if header:
        lines.append(", ".join(item.name for item in items))
    lines.append(", ".join(_value_text(item.value, nav) for item in items))
    return "".join(line + "\r\n" for line in lines)