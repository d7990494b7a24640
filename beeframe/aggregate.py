"""Per-window aggregation of decoded frames: sums for accumulated fields, last value otherwise."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from beeframe.frame import CHART_COUNT, PLOT_MAX_LINE, NavField, Number
from beeframe.protocol import DataType


@dataclass
class WindowResult:
    """Aggregated field values of one completed window."""

    seconds: int
    end_index: int
    fields: list[NavField] = field(default_factory=list)

    @property
    def values(self) -> list[Number]:
        """Aggregated values in field order."""
        return [item.value for item in self.fields]

    def curve_values(self, chart: int) -> list[float]:
        """Values of the fields plotted on ``chart`` (0, 1 or 2), in field order."""
        if not 0 <= chart < CHART_COUNT:
            raise ValueError(f"chart index out of range: {chart}")
        return [
            float(item.value)
            for item in self.fields
            if 1 <= item.curves[chart] <= PLOT_MAX_LINE
        ]


class Aggregator:
    """Collects frames into windows of ``hz * seconds`` frames.

    Fields marked for accumulation are summed over the window and the sum is
    divided by ``seconds``; other fields keep the value of the latest frame.
    """

    def __init__(self, hz: int, seconds: int = 1) -> None:
        if hz <= 0:
            raise ValueError(f"frame rate must be positive, got {hz}")
        if seconds <= 0:
            raise ValueError(f"window length must be positive, got {seconds}")
        self.hz = hz
        self.seconds = seconds
        self.count = 0
        self._current: Optional[list[NavField]] = None

    @property
    def window(self) -> int:
        """Number of frames in one window."""
        return self.hz * self.seconds

    def reset(self) -> None:
        """Forget the frame count and any partly filled window."""
        self.count = 0
        self._current = None

    def add(self, fields: Sequence[NavField]) -> Optional[WindowResult]:
        """Add one decoded frame; return the window result when it completes."""
        starting = self.count % self.window == 0 or self._current is None
        if starting:
            self._current = [replace(item) for item in fields]
        current = self._current
        assert current is not None
        if len(current) != len(fields):
            raise ValueError(
                f"frame has {len(fields)} fields, window holds {len(current)}"
            )

        for slot, item in zip(current, fields):
            if item.accumulate:
                slot.value = (
                    float(item.value) if starting else float(slot.value) + item.value
                )
            else:
                slot.value = item.value

        result = None
        if (self.count + 1) % self.window == 0:
            if self.seconds > 1:
                for slot in current:
                    if slot.accumulate:
                        slot.value = float(slot.value) / self.seconds
            result = WindowResult(self.seconds, self.count, current)
            self._current = None
        self.count += 1
        return result


def format_value(value: Number, data_type: DataType) -> str:
    """Text of an aggregated value: six decimals for floating values."""
    if isinstance(value, float) or data_type in (DataType.FLOAT, DataType.DOUBLE):
        return f"{float(value):.6f}"
    return str(int(value))