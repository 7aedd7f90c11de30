"""Unit tests for the statistics engine."""

from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from models.errors import StatisticsOverflowError
from models.records import ReadingSequence, TemperatureReading
from services.aggregator import Aggregator, compute_statistics


def _reading(value: float) -> TemperatureReading:
    """Helper to build deterministic temperature readings."""

    return TemperatureReading(timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc), temperature_celsius=value)


def test_aggregate_empty_iterable_returns_default_summary() -> None:
    summary = Aggregator().aggregate([])

    assert summary.count == 0
    assert summary.minimum is None
    assert summary.maximum is None
    assert summary.average is None
    assert summary.standard_deviation is None


def test_compute_statistics_on_empty_sequence_does_not_raise() -> None:
    assert compute_statistics(ReadingSequence()).count == 0


def test_aggregate_computes_statistics() -> None:
    readings = ReadingSequence((_reading(20.0), _reading(30.0), _reading(25.0)))

    summary = Aggregator().aggregate(readings)

    assert summary.count == 3
    assert summary.minimum == 20.0
    assert summary.maximum == 30.0
    assert summary.average == 25.0
    assert summary.standard_deviation == pytest.approx(math.sqrt(50 / 3))


def test_standard_deviation_is_population_not_sample() -> None:
    summary = compute_statistics([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])

    assert summary.average == 5.0
    assert summary.standard_deviation == pytest.approx(2.0)


def test_single_value_has_zero_deviation() -> None:
    summary = compute_statistics([-18.5])

    assert summary.count == 1
    assert summary.minimum == summary.maximum == summary.average == -18.5
    assert summary.standard_deviation == 0.0


@pytest.mark.parametrize("temperatures", [[0.0, 1e200], [1e308, 1e308], [-1e308, 1e308]])
def test_statistics_out_of_float_range_raise_typed_error(temperatures: list[float]) -> None:
    with pytest.raises(StatisticsOverflowError):
        compute_statistics(temperatures)


def test_large_but_representable_spread_is_summarized() -> None:
    summary = compute_statistics([0.0, 1e150])

    assert summary.average == pytest.approx(5e149)
    assert summary.standard_deviation == pytest.approx(5e149)
