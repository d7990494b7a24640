"""Editable table of protocol rows and the connection indicator style."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from beeframe.protocol import (
    FRAME_CHECK,
    FRAME_HEADER,
    ChecksumType,
    DataType,
    FieldSpec,
    parse_checksum_type,
)

DEFAULT_HEADER_VALUE = "0xAA"
CHECK_TYPE_TEXT = "--"

LED_GREY = 0
LED_RED = 1
LED_GREEN = 2

_LED_COLOURS = {LED_RED: "#AA2222", LED_GREEN: "#339933"}
_LED_DEFAULT = "#d0d0d0"


@dataclass
class ProtocolTable:
    """Ordered rows of a protocol definition being edited."""

    rows: list[FieldSpec] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> FieldSpec:
        return self.rows[index]

    def add_row(self, name: Optional[str] = None) -> int:
        """Append a data row; unnamed rows are called ``name_<n>``."""
        if name is None:
            name = f"name_{len(self.rows) + 1}"
        self.rows.append(FieldSpec(name=name, type=DataType.CHAR.value))
        return len(self.rows) - 1

    def add_header(self, value: str = DEFAULT_HEADER_VALUE) -> int:
        """Append a one-byte frame header row holding ``value`` in hex."""
        self.rows.append(FieldSpec(name=FRAME_HEADER, type=DataType.UCHAR.value, data=value))
        return len(self.rows) - 1

    def add_checksum(self, kind: Union[ChecksumType, str] = ChecksumType.NONE) -> int:
        """Append the checksum row; the checksum type is kept in its data."""
        checksum = kind if isinstance(kind, ChecksumType) else parse_checksum_type(kind)
        self.rows.append(FieldSpec(name=FRAME_CHECK, type=CHECK_TYPE_TEXT, data=checksum.value))
        return len(self.rows) - 1

    def delete_row(self, index: int) -> FieldSpec:
        """Remove and return the row at ``index``."""
        self._check_index(index)
        return self.rows.pop(index)

    def move_row(self, source: int, target: Optional[int] = None) -> int:
        """Move a row so it ends up at ``target``, or last when ``target`` is None."""
        self._check_index(source)
        if target is not None:
            self._check_index(target)
        row = self.rows.pop(source)
        if target is None:
            self.rows.append(row)
            return len(self.rows) - 1
        self.rows.insert(target, row)
        return target

    def clear(self) -> None:
        """Remove every row."""
        self.rows.clear()

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.rows):
            raise IndexError(f"row index out of range: {index}")


def led_style(size: int = 10, color: int = LED_GREY) -> str:
    """Style sheet of a round indicator: grey (0), red (1) or green (2)."""
    background = _LED_COLOURS.get(color, _LED_DEFAULT)
    return (
        f"min-width:{size}px;min-height:{size}px;"
        f"max-width:{size}px;max-height:{size}px;"
        f"border-radius:{size // 2}px;background-color:{background};"
    )