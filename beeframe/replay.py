"""Replaying a recorded raw byte file through a frame parser."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from os import PathLike
from pathlib import Path
from typing import Callable, Optional, Union

from beeframe.aggregate import Aggregator
from beeframe.frame import FrameParser, format_record

log = logging.getLogger(__name__)

PathType = Union[str, "PathLike[str]"]

RAW_NAME = "data.raw"
NAV_NAME = "navFile.csv"
ONE_SECOND_NAME = "oneSecFile.csv"


@dataclass
class ReplayResult:
    """Where the replay wrote its files and what it found."""

    output_dir: Path
    frames: int = 0
    windows: int = 0
    bytes_read: int = 0

    @property
    def raw_path(self) -> Path:
        return self.output_dir / RAW_NAME

    @property
    def nav_path(self) -> Path:
        return self.output_dir / NAV_NAME

    @property
    def one_second_path(self) -> Path:
        return self.output_dir / ONE_SECOND_NAME


def _default_out_dir() -> Path:
    return Path("data") / datetime.now().strftime("%Y-%m-%d_%H-%M-%S")


def replay_file(
    parser: FrameParser,
    raw_path: PathType,
    hz: int,
    out_dir: Optional[PathType] = None,
    progress: Optional[Callable[[int], None]] = None,
) -> ReplayResult:
    """Decode every frame of ``raw_path`` and write the output files.

    The raw bytes are copied, each frame goes to the navigation file and,
    when ``hz`` is positive, one-second aggregates go to their own file.
    ``progress`` receives the percentage of the file read so far.
    """
    source = Path(raw_path)
    if not source.is_file():
        raise FileNotFoundError(f"raw data file not found: {source}")

    target = Path(out_dir) if out_dir is not None else _default_out_dir()
    target.mkdir(parents=True, exist_ok=True)
    log.info("output directory: %s", target)

    stream = FrameParser(parser.layout, parser.little_endian)
    aggregator = Aggregator(hz, 1) if hz > 0 else None
    result = ReplayResult(output_dir=target)
    file_size = source.stat().st_size
    chunk_size = max(parser.layout.frame_length, 1)
    last_reported = 0

    with open(source, "rb") as raw_in, open(result.raw_path, "wb") as raw_out, open(
        result.nav_path, "w", encoding="utf-8", newline=""
    ) as nav_out, open(
        result.one_second_path, "w", encoding="utf-8", newline=""
    ) as second_out:

        def consume() -> None:
            for frame in stream.frames():
                result.frames += 1
                nav_out.write(format_record(frame, nav=True))
                if aggregator is None:
                    continue
                window = aggregator.add(frame)
                if window is not None:
                    result.windows += 1
                    second_out.write(format_record(window.fields))

        log.info("replay started")
        while chunk := raw_in.read(chunk_size):
            raw_out.write(chunk)
            stream.feed(chunk)
            consume()
            result.bytes_read += len(chunk)
            percent = result.bytes_read * 100 // file_size
            if progress is not None:
                progress(percent)
            if percent - last_reported >= 10:
                last_reported = percent
                log.info("%d%%", percent)
        consume()
        log.info("replay finished")

    return result