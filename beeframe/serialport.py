"""Serial port link used to receive frames and send commands."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import serial
from serial.tools import list_ports as _list_ports

BAUDRATES = (4800, 9600, 19200, 115200, 230400, 460800, 921600)
DEFAULT_BAUDRATE = 115200
DATA_BITS = (5, 6, 7, 8)
DEFAULT_DATA_BITS = 8

_HEX_RE = re.compile(r"[0-9a-fA-F]*")


class Parity(Enum):
    """Parity settings, valued as the serial library expects them."""

    NONE = serial.PARITY_NONE
    ODD = serial.PARITY_ODD
    EVEN = serial.PARITY_EVEN
    SPACE = serial.PARITY_SPACE
    MARK = serial.PARITY_MARK


class StopBits(Enum):
    """Stop bit settings, valued as the serial library expects them."""

    ONE = serial.STOPBITS_ONE
    ONE_POINT_FIVE = serial.STOPBITS_ONE_POINT_FIVE
    TWO = serial.STOPBITS_TWO


@dataclass(frozen=True)
class SerialSettings:
    """Port name (or pyserial URL) and line settings."""

    port: str
    baudrate: int = DEFAULT_BAUDRATE
    data_bits: int = DEFAULT_DATA_BITS
    stop_bits: StopBits = StopBits.ONE
    parity: Parity = Parity.NONE

    def __post_init__(self) -> None:
        if not self.port:
            raise ValueError("a port name is required")
        if self.baudrate <= 0:
            raise ValueError(f"baud rate must be positive, got {self.baudrate}")
        if self.data_bits not in DATA_BITS:
            raise ValueError(f"data bits must be one of {DATA_BITS}, got {self.data_bits}")


class SerialLink:
    """An open-able serial connection without flow control.

    Reads never block: :meth:`read_available` returns only bytes already
    received. Access to the port is serialised so a reader thread and a
    sender may share the link.
    """

    def __init__(self, settings: SerialSettings) -> None:
        self.settings = settings
        self._port: Optional[serial.SerialBase] = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._port is not None and self._port.is_open

    def open(self) -> None:
        """Open the port; raises serial.SerialException when that fails."""
        with self._lock:
            if self._port is not None and self._port.is_open:
                return
            port = serial.serial_for_url(self.settings.port, do_not_open=True)
            port.baudrate = self.settings.baudrate
            port.bytesize = self.settings.data_bits
            port.stopbits = self.settings.stop_bits.value
            port.parity = self.settings.parity.value
            port.xonxoff = False
            port.rtscts = False
            port.dsrdtr = False
            port.timeout = 0
            port.open()
            self._port = port

    def close(self) -> None:
        """Close the port if it is open."""
        with self._lock:
            if self._port is not None:
                self._port.close()
                self._port = None

    def read_available(self) -> bytes:
        """Return every byte received so far, or b"" when there is none."""
        with self._lock:
            port = self._require_open()
            waiting = port.in_waiting
            return bytes(port.read(waiting)) if waiting > 0 else b""

    def send(self, data: bytes) -> int:
        """Write ``data`` to the port and return the number of bytes written."""
        if not data:
            raise ValueError("data must not be empty")
        with self._lock:
            port = self._require_open()
            written = port.write(bytes(data))
        if not written:
            raise serial.SerialException("sending data failed")
        return written

    def _require_open(self) -> serial.SerialBase:
        if self._port is None or not self._port.is_open:
            raise serial.SerialException("the serial port is not open")
        return self._port

    def __enter__(self) -> "SerialLink":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def list_ports() -> list[str]:
    """Names of the serial ports present on this machine."""
    return [info.device for info in _list_ports.comports()]


def parse_hex_command(text: str) -> bytes:
    """Turn a hex string such as ``"AA55"`` into the bytes to send.

    The text must be non-empty, made of hex digits only, with an even count.
    """
    if not text:
        raise ValueError("data must not be empty")
    if not _HEX_RE.fullmatch(text) or len(text) % 2:
        raise ValueError(f"malformed hex data: {text!r}")
    return bytes.fromhex(text)