import pytest

from beeframe.aggregate import Aggregator, WindowResult, format_value
from beeframe.frame import NavField
from beeframe.protocol import DataType


def frame(counter, total, temp=1.5):
    return [
        NavField("counter", DataType.UCHAR, accumulate=False, curves=(1, 0, 0), value=counter),
        NavField("total", DataType.SHORT, accumulate=True, curves=(0, 1, 0), value=total),
        NavField("temp", DataType.FLOAT, accumulate=False, curves=(2, 0, 0), value=temp),
    ]


def test_window_completes_after_hz_frames():
    agg = Aggregator(2, 1)
    assert agg.add(frame(5, 3)) is None
    result = agg.add(frame(7, 4))
    assert isinstance(result, WindowResult)
    assert result.end_index == 1
    assert result.seconds == 1


def test_accumulated_field_is_summed_and_instant_is_latest():
    agg = Aggregator(2, 1)
    agg.add(frame(5, 3))
    result = agg.add(frame(7, 4))
    assert result.values[0] == 7
    assert result.values[1] == pytest.approx(3 + 4)


def test_multi_second_window_averages_per_second():
    agg = Aggregator(1, 10)
    results = [agg.add(frame(i, 5)) for i in range(10)]
    assert all(r is None for r in results[:-1])
    final = results[-1]
    assert final.values[1] == pytest.approx(5.0)
    assert final.values[0] == 9


def test_next_window_starts_fresh():
    agg = Aggregator(2, 1)
    agg.add(frame(1, 10))
    agg.add(frame(2, 10))
    agg.add(frame(3, 1))
    result = agg.add(frame(4, 2))
    assert result.values[1] == pytest.approx(1 + 2)
    assert result.end_index == 3


def test_input_fields_are_not_modified():
    agg = Aggregator(2, 1)
    first = frame(1, 3)
    agg.add(first)
    agg.add(frame(2, 4))
    assert first[1].value == 3


def test_reset_clears_partial_window():
    agg = Aggregator(2, 1)
    agg.add(frame(1, 100))
    agg.reset()
    assert agg.count == 0
    assert agg.add(frame(1, 2)) is None
    result = agg.add(frame(2, 2))
    assert result.values[1] == pytest.approx(2 + 2)


def test_curve_values_follow_chart_assignment():
    agg = Aggregator(1, 1)
    result = agg.add(frame(6, 8, temp=2.5))
    assert result.curve_values(0) == [6.0, 2.5]
    assert result.curve_values(1) == [8.0]
    assert result.curve_values(2) == []
    with pytest.raises(ValueError):
        result.curve_values(3)


@pytest.mark.parametrize("hz, seconds", [(0, 1), (-1, 1), (5, 0)])
def test_invalid_rates_raise(hz, seconds):
    with pytest.raises(ValueError):
        Aggregator(hz, seconds)


def test_field_count_mismatch_raises():
    agg = Aggregator(3, 1)
    agg.add(frame(1, 1))
    with pytest.raises(ValueError):
        agg.add(frame(1, 1)[:2])


def test_format_value():
    assert format_value(7, DataType.UCHAR) == "7"
    assert format_value(1.5, DataType.FLOAT) == "1.500000"
    assert format_value(3.0, DataType.SHORT) == "3.000000"