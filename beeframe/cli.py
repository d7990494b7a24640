"""Command line front end: check protocols, capture from a serial port, replay recordings."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from contextlib import ExitStack
from datetime import datetime
from pathlib import Path
from typing import IO, Optional, Sequence

from beeframe.aggregate import Aggregator, format_value
from beeframe.frame import FrameLayout, FrameParser, NavField, build_layout, format_record
from beeframe.protocol import ProtocolFile, load_protocol_ini
from beeframe.replay import NAV_NAME, ONE_SECOND_NAME, RAW_NAME, replay_file
from beeframe.serialport import (
    DATA_BITS,
    DEFAULT_BAUDRATE,
    DEFAULT_DATA_BITS,
    Parity,
    SerialLink,
    SerialSettings,
    StopBits,
    list_ports,
    parse_hex_command,
)

TEN_SECOND_NAME = "tenSecFile.csv"
MIN_HZ = 1
MAX_HZ = 2000
POLL_INTERVAL = 0.1

_STOP_BITS = {"1": StopBits.ONE, "1.5": StopBits.ONE_POINT_FIVE, "2": StopBits.TWO}
_PARITIES = {member.name.lower(): member for member in Parity}


def _timestamp_dir() -> Path:
    return Path("data") / datetime.now().strftime("%Y-%m-%d_%H-%M-%S")


def _check_hz(hz: int) -> int:
    if not MIN_HZ <= hz <= MAX_HZ:
        raise ValueError(f"frame rate must be between {MIN_HZ} and {MAX_HZ}, got {hz}")
    return hz


def _load(path: str, hz_override: Optional[int]) -> tuple[ProtocolFile, FrameLayout, int]:
    protocol = load_protocol_ini(path)
    layout = build_layout(protocol.fields)
    hz = _check_hz(hz_override if hz_override is not None else protocol.hz)
    return protocol, layout, hz


def _describe(fields: Sequence[NavField]) -> str:
    return ", ".join(f"{item.name}={format_value(item.value, item.data_type)}" for item in fields)


def _cmd_check(args: argparse.Namespace) -> int:
    protocol, layout, hz = _load(args.protocol, args.hz)
    print(f"frame length: {layout.frame_length}")
    print(f"header: {layout.header.hex().upper()}")
    print(f"checksum: {layout.checksum.value}")
    print(f"byte order: {'little' if protocol.little_endian else 'big'} endian")
    print(f"rate: {hz} Hz")
    print("fields: " + ", ".join(f"{f.name} ({f.data_type.value})" for f in layout.fields))
    for number, chart in enumerate(layout.charts, start=1):
        if chart:
            print(f"chart {number}: " + ", ".join(chart))
    return 0


def _cmd_replay(args: argparse.Namespace) -> int:
    protocol, layout, hz = _load(args.protocol, args.hz)
    parser = FrameParser(layout, protocol.little_endian)
    result = replay_file(parser, args.raw, hz, args.out)
    print(f"output directory: {result.output_dir}")
    print(f"bytes: {result.bytes_read}")
    print(f"frames: {result.frames}")
    print(f"windows: {result.windows}")
    return 0


def _settings(args: argparse.Namespace) -> SerialSettings:
    return SerialSettings(
        port=args.port,
        baudrate=args.baudrate,
        data_bits=args.data_bits,
        stop_bits=_STOP_BITS[args.stop_bits],
        parity=_PARITIES[args.parity],
    )


def _open_text(stack: ExitStack, path: Path) -> IO[str]:
    return stack.enter_context(open(path, "w", encoding="utf-8", newline=""))


def _cmd_capture(args: argparse.Namespace) -> int:
    protocol, layout, hz = _load(args.protocol, args.hz)
    parser = FrameParser(layout, protocol.little_endian)
    settings = _settings(args)
    command = parse_hex_command(args.command) if args.command else None
    one_second = Aggregator(hz, 1)
    ten_second = Aggregator(hz, 10)
    saving = args.save_raw or args.save_1s or args.save_10s
    out_dir = Path(args.out) if args.out else _timestamp_dir()
    frames = 0

    with ExitStack() as stack:
        if saving:
            out_dir.mkdir(parents=True, exist_ok=True)
            print(f"output directory: {out_dir}")
        raw_out = stack.enter_context(open(out_dir / RAW_NAME, "wb")) if args.save_raw else None
        nav_out = _open_text(stack, out_dir / NAV_NAME) if args.save_raw else None
        one_out = _open_text(stack, out_dir / ONE_SECOND_NAME) if args.save_1s else None
        ten_out = _open_text(stack, out_dir / TEN_SECOND_NAME) if args.save_10s else None

        link = stack.enter_context(SerialLink(settings))
        if command is not None:
            link.send(command)

        deadline = None if args.duration is None else time.monotonic() + args.duration
        try:
            while True:
                data = link.read_available()
                if data:
                    if raw_out is not None:
                        raw_out.write(data)
                    parser.feed(data)
                    for frame in parser.frames():
                        frames += 1
                        if nav_out is not None:
                            nav_out.write(format_record(frame, nav=True))
                        window = one_second.add(frame)
                        if window is not None:
                            print(_describe(window.fields), flush=True)
                            if one_out is not None:
                                one_out.write(format_record(window.fields))
                        window = ten_second.add(frame)
                        if window is not None and ten_out is not None:
                            ten_out.write(format_record(window.fields))
                if args.frames is not None and frames >= args.frames:
                    break
                if deadline is not None and time.monotonic() >= deadline:
                    break
                time.sleep(args.interval)
        except KeyboardInterrupt:
            pass

    print(f"frames: {frames}")
    return 0


def _cmd_send(args: argparse.Namespace) -> int:
    payload = parse_hex_command(args.data)
    with SerialLink(_settings(args)) as link:
        written = link.send(payload)
    print(f"sent {written} bytes")
    return 0


def _cmd_ports(args: argparse.Namespace) -> int:
    for name in list_ports():
        print(name)
    return 0


def _add_protocol_args(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("protocol", help="protocol INI file")
    sub.add_argument("--hz", type=int, default=None, help="frame rate, overrides the protocol file")


def _add_port_args(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("--port", required=True, help="port name or pyserial URL")
    sub.add_argument("--baudrate", type=int, default=DEFAULT_BAUDRATE)
    sub.add_argument("--data-bits", type=int, choices=DATA_BITS, default=DEFAULT_DATA_BITS)
    sub.add_argument("--stop-bits", choices=tuple(_STOP_BITS), default="1")
    sub.add_argument("--parity", choices=tuple(_PARITIES), default="none")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="beeframe", description="Binary frame protocol tool.")
    parser.add_argument("-v", "--verbose", action="store_true", help="log progress")
    commands = parser.add_subparsers(dest="command_name", required=True)

    check = commands.add_parser("check", help="validate a protocol and show its frame")
    _add_protocol_args(check)
    check.set_defaults(handler=_cmd_check)

    replay = commands.add_parser("replay", help="decode a recorded raw file")
    _add_protocol_args(replay)
    replay.add_argument("raw", help="raw byte file")
    replay.add_argument("--out", default=None, help="output directory")
    replay.set_defaults(handler=_cmd_replay)

    capture = commands.add_parser("capture", help="receive and decode frames from a serial port")
    _add_protocol_args(capture)
    _add_port_args(capture)
    capture.add_argument("--out", default=None, help="output directory")
    capture.add_argument("--save-raw", action="store_true", help="save raw bytes and every frame")
    capture.add_argument("--save-1s", action="store_true", help="save one-second aggregates")
    capture.add_argument("--save-10s", action="store_true", help="save ten-second aggregates")
    capture.add_argument("--command", default=None, help="hex command to send once opened")
    capture.add_argument("--duration", type=float, default=None, help="stop after seconds")
    capture.add_argument("--frames", type=int, default=None, help="stop after this many frames")
    capture.add_argument("--interval", type=float, default=POLL_INTERVAL, help="poll interval")
    capture.set_defaults(handler=_cmd_capture)

    send = commands.add_parser("send", help="send a hex command")
    _add_port_args(send)
    send.add_argument("data", help="hex bytes, e.g. AA55")
    send.set_defaults(handler=_cmd_send)

    ports = commands.add_parser("ports", help="list serial ports")
    ports.set_defaults(handler=_cmd_ports)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line; return the exit status."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    try:
        return args.handler(args)
    except (ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())