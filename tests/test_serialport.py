from unittest import mock

import pytest
import serial

from beeframe.serialport import (
    Parity,
    SerialLink,
    SerialSettings,
    StopBits,
    list_ports,
    parse_hex_command,
)


def test_parse_hex_command_decodes_bytes():
    assert parse_hex_command("AA55") == b"\xaa\x55"
    assert parse_hex_command("0a0B") == b"\x0a\x0b"


@pytest.mark.parametrize("text", ["ABC", "zz", "aa 55", "0x12"])
def test_parse_hex_command_rejects_malformed(text):
    with pytest.raises(ValueError):
        parse_hex_command(text)


def test_parse_hex_command_rejects_empty():
    with pytest.raises(ValueError):
        parse_hex_command("")


def test_settings_defaults():
    settings = SerialSettings("loop://")
    assert settings.baudrate == 115200
    assert settings.data_bits == 8
    assert settings.stop_bits is StopBits.ONE
    assert settings.parity is Parity.NONE


@pytest.mark.parametrize("bits", [4, 9])
def test_settings_reject_bad_data_bits(bits):
    with pytest.raises(ValueError):
        SerialSettings("loop://", data_bits=bits)


def test_settings_reject_empty_port():
    with pytest.raises(ValueError):
        SerialSettings("")


def test_loopback_round_trip():
    settings = SerialSettings("loop://", parity=Parity.EVEN, stop_bits=StopBits.TWO)
    with SerialLink(settings) as link:
        assert link.is_open
        assert link.send(b"\xaa\x01\x02") == 3
        assert link.read_available() == b"\xaa\x01\x02"
        assert link.read_available() == b""
    assert not link.is_open


def test_send_on_closed_link_raises():
    link = SerialLink(SerialSettings("loop://"))
    with pytest.raises(serial.SerialException):
        link.send(b"\x01")


def test_read_on_closed_link_raises():
    link = SerialLink(SerialSettings("loop://"))
    with pytest.raises(serial.SerialException):
        link.read_available()


def test_send_empty_raises():
    with SerialLink(SerialSettings("loop://")) as link:
        with pytest.raises(ValueError):
            link.send(b"")


def test_list_ports_returns_device_names():
    ports = [mock.Mock(device="/dev/ttyUSB0"), mock.Mock(device="/dev/ttyUSB1")]
    with mock.patch("serial.tools.list_ports.comports", return_value=ports):
        assert list_ports() == ["/dev/ttyUSB0", "/dev/ttyUSB1"]