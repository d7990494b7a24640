"""Frame checksums: 8-bit sums and xors, 16-bit sum and CRC-16/XMODEM."""

from __future__ import annotations

from functools import reduce
from operator import xor

from beeframe.protocol import ChecksumType


def _make_crc_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte << 8
        for _ in range(8):
            crc = ((crc << 1) ^ 0x1021) if crc & 0x8000 else (crc << 1)
        table.append(crc & 0xFFFF)
    return tuple(table)


_CRC_TABLE = _make_crc_table()


def crc16_xmodem(data: bytes) -> int:
    """CRC-16/XMODEM (polynomial 0x1021, initial value 0) of ``data``."""
    crc = 0
    for byte in data:
        crc = _CRC_TABLE[((crc >> 8) ^ byte) & 0xFF] ^ ((crc << 8) & 0xFFFF)
    return crc


def _word(value: int, little_endian: bool) -> bytes:
    return value.to_bytes(2, "little" if little_endian else "big")


def compute_checksum(
    kind: ChecksumType, header: bytes, payload: bytes, little_endian: bool
) -> bytes:
    """Checksum bytes as they appear on the wire after ``payload``.

    Only the ``_0`` variants cover the frame header as well as the payload.
    """
    if kind is ChecksumType.NONE:
        return b""
    if kind is ChecksumType.ADD8:
        return bytes([sum(payload) & 0xFF])
    if kind is ChecksumType.ADD8_0:
        return bytes([(sum(header) + sum(payload)) & 0xFF])
    if kind is ChecksumType.XOR8:
        return bytes([reduce(xor, payload, 0)])
    if kind is ChecksumType.XOR8_0:
        return bytes([reduce(xor, payload, reduce(xor, header, 0))])
    if kind is ChecksumType.ADD16:
        return _word(sum(payload) & 0xFFFF, little_endian)
    if kind is ChecksumType.CRC16_XMODEM:
        return _word(crc16_xmodem(payload), little_endian)
    raise ValueError(f"unsupported checksum type: {kind!r}")


def verify_checksum(
    kind: ChecksumType,
    header: bytes,
    payload: bytes,
    check: bytes,
    little_endian: bool,
) -> bool:
    """True if ``check`` is the correct checksum for the frame."""
    if len(check) != kind.length():
        return False
    return bytes(check) == compute_checksum(kind, header, payload, little_endian)