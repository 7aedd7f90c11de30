from __future__ import annotations

from datetime import datetime, timezone

import pytest

from models.records import MktResult, ReadingSequence, TemperatureReading


def _reading(hour: int, value: float) -> TemperatureReading:
    return TemperatureReading(
        timestamp=datetime(2024, 1, 1, hour, tzinfo=timezone.utc),
        temperature_celsius=value,
    )


def test_reading_exposes_kelvin_and_unix_timestamp() -> None:
    reading = _reading(0, 25.0)

    assert reading.temperature_kelvin == pytest.approx(298.15)
    assert reading.unix_timestamp == 1704067200
    assert reading.original_data == ""


@pytest.mark.parametrize("value", [-273.15, -300.0, float("nan"), float("inf")])
def test_reading_rejects_unphysical_temperatures(value: float) -> None:
    with pytest.raises(ValueError):
        _reading(0, value)


def test_sequence_keeps_file_order_and_reports_time_bounds() -> None:
    sequence = ReadingSequence((_reading(5, 20.0), _reading(1, 21.0), _reading(9, 19.0)))

    assert sequence.temperatures() == [20.0, 21.0, 19.0]
    assert [reading.timestamp.hour for reading in sequence] == [5, 1, 9]
    assert sequence.start_time == datetime(2024, 1, 1, 1, tzinfo=timezone.utc)
    assert sequence.end_time == datetime(2024, 1, 1, 9, tzinfo=timezone.utc)


def test_empty_sequence_has_no_time_bounds() -> None:
    sequence = ReadingSequence()

    assert len(sequence) == 0
    assert sequence.start_time is None
    assert sequence.end_time is None


def test_mkt_result_kelvin() -> None:
    result = MktResult(mkt_celsius=25.0, activation_energy=83.144, temperature_count=3)

    assert result.mkt_kelvin == pytest.approx(298.15)
