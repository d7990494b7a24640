"""Binary serial-frame protocols: definition, checksums, stream decoding, aggregation and replay."""

__version__ = "0.1.0"

__all__ = [
    "aggregate",
    "checksum",
    "cli",
    "editor",
    "frame",
    "protocol",
    "replay",
    "serialport",
]