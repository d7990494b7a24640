"""Protocol field definitions and their storage in INI files."""

from __future__ import annotations

import configparser
import re
from dataclasses import dataclass, field
from enum import Enum
from os import PathLike
from pathlib import Path
from typing import Union

FRAME_HEADER = "frame_header"
FRAME_CHECK = "frame_check"
INI_OTHER = "Other"
DEFAULT_HZ = 200
DATA_SECTION_PREFIX = "Data"

PathType = Union[str, "PathLike[str]"]


class DataType(Enum):
    """Wire types a frame field can carry."""

    CHAR = "char"
    UCHAR = "uchar"
    SHORT = "short"
    USHORT = "ushort"
    BYTES3 = "3bytes"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    DOUBLE = "double"

    def size(self) -> int:
        """Number of bytes the type occupies in a frame."""
        return _TYPE_SIZES[self]


_TYPE_SIZES = {
    DataType.CHAR: 1,
    DataType.UCHAR: 1,
    DataType.SHORT: 2,
    DataType.USHORT: 2,
    DataType.BYTES3: 3,
    DataType.INT: 4,
    DataType.UINT: 4,
    DataType.FLOAT: 4,
    DataType.DOUBLE: 8,
}


class ChecksumType(Enum):
    """Checksums that may close a frame."""

    NONE = "none"
    ADD8 = "add8"
    ADD8_0 = "add8_0"
    XOR8 = "xor8"
    XOR8_0 = "xor8_0"
    ADD16 = "add16"
    CRC16_XMODEM = "crc16_xmodem"

    def length(self) -> int:
        """Number of checksum bytes on the wire."""
        return _CHECK_LENGTHS[self]


_CHECK_LENGTHS = {
    ChecksumType.NONE: 0,
    ChecksumType.ADD8: 1,
    ChecksumType.ADD8_0: 1,
    ChecksumType.XOR8: 1,
    ChecksumType.XOR8_0: 1,
    ChecksumType.ADD16: 2,
    ChecksumType.CRC16_XMODEM: 2,
}


@dataclass
class FieldSpec:
    """One row of a protocol definition as the user edits it."""

    name: str
    type: str = DataType.CHAR.value
    data: str = ""
    accum_check: bool = False
    curve1: bool = False
    curve2: bool = False
    curve3: bool = False


@dataclass
class ProtocolFile:
    """A protocol definition together with byte order and frame rate."""

    fields: list[FieldSpec] = field(default_factory=list)
    little_endian: bool = True
    hz: int = DEFAULT_HZ


def parse_data_type(text: str) -> DataType:
    """Return the data type named by ``text``; raise ValueError if unknown."""
    key = text.strip().lower()
    for member in DataType:
        if member.value == key:
            return member
    raise ValueError(f"unknown data type: {text!r}")


def parse_checksum_type(text: str) -> ChecksumType:
    """Return the checksum type named by ``text``; an empty name means none."""
    key = text.strip().lower()
    if not key:
        return ChecksumType.NONE
    for member in ChecksumType:
        if member.value == key:
            return member
    raise ValueError(f"unknown checksum type: {text!r}")


_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_UNESCAPES = {"n": "\n", "r": "\r", "t": "\t"}
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


def _quote(text: str) -> str:
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in text) + '"'


def _unquote(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return _ESCAPE_RE.sub(lambda m: _UNESCAPES.get(m.group(1), m.group(1)), text[1:-1])
    return text


def _ini_value(value: Union[bool, int, str]) -> str:
    """Render a value as stored in the INI file: booleans as words, text quoted."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    return _quote(value)


def _to_bool(text: str) -> bool:
    value = _unquote(text).strip().lower()
    return value not in ("", "0", "false")


def _to_uint(text: str) -> int:
    try:
        value = int(_unquote(text).strip())
    except ValueError:
        return 0
    return value if value >= 0 else 0


def _new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # keep key case
    return parser


def write_protocol_ini(protocol: ProtocolFile, path: PathType) -> None:
    """Write ``protocol`` to an INI file, replacing whatever was there."""
    parser = _new_parser()
    for index, spec in enumerate(protocol.fields):
        section = f"{DATA_SECTION_PREFIX}_{index:04d}"
        entries = {
            "accumCheck": spec.accum_check,
            "name": spec.name,
            "type": spec.type,
            "data": spec.data,
            "curve1": spec.curve1,
            "curve2": spec.curve2,
            "curve3": spec.curve3,
        }
        parser[section] = {key: _ini_value(value) for key, value in entries.items()}
    parser[INI_OTHER] = {
        "endian": _ini_value(bool(protocol.little_endian)),
        "hz": _ini_value(int(protocol.hz)),
    }
    with open(path, "w", encoding="utf-8") as handle:
        parser.write(handle)


def load_protocol_ini(path: PathType) -> ProtocolFile:
    """Read a protocol definition written by :func:`write_protocol_ini`."""
    file_path = Path(path)
    if not file_path.is_file():
        raise FileNotFoundError(f"protocol file not found: {file_path}")
    parser = _new_parser()
    with open(file_path, encoding="utf-8") as handle:
        parser.read_file(handle)

    result = ProtocolFile()
    for section in sorted(parser.sections()):
        values = parser[section]
        if section.startswith(DATA_SECTION_PREFIX):
            result.fields.append(
                FieldSpec(
                    name=_unquote(values.get("name", "")),
                    type=_unquote(values.get("type", "")),
                    data=_unquote(values.get("data", "")),
                    accum_check=_to_bool(values.get("accumCheck", "")),
                    curve1=_to_bool(values.get("curve1", "")),
                    curve2=_to_bool(values.get("curve2", "")),
                    curve3=_to_bool(values.get("curve3", "")),
                )
            )
        elif section == INI_OTHER:
            result.little_endian = _to_bool(values.get("endian", ""))
            result.hz = _to_uint(values.get("hz", ""))
    return result