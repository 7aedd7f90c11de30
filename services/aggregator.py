"""Descriptive statistics for temperature readings."""

from __future__ import annotations

import math
from typing import Iterable, Union

from models.errors import StatisticsOverflowError
from models.records import Statistics, TemperatureReading

TemperatureInput = Union[TemperatureReading, float, int]


def celsius_values(values: Iterable[TemperatureInput]) -> list[float]:
    return [
        value.temperature_celsius if isinstance(value, TemperatureReading) else float(value)
        for value in values
    ]


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, readings: Iterable[TemperatureInput]) -> Statistics:
        temperatures = celsius_values(readings)
        count = len(temperatures)
        if not count:
            return Statistics()

        try:
            average = math.fsum(temperatures) / count
            deviations = [value - average for value in temperatures]
            variance = math.fsum(deviation * deviation for deviation in deviations) / count
        except OverflowError as exc:
            raise StatisticsOverflowError("Temperatures are too large to summarize.") from exc
        if not math.isfinite(variance):
            raise StatisticsOverflowError("Temperatures are too large to summarize.")
        return Statistics(
            count=count,
            minimum=min(temperatures),
            maximum=max(temperatures),
            average=average,
            standard_deviation=math.sqrt(variance),
        )


def compute_statistics(readings: Iterable[TemperatureInput]) -> Statistics:
    return Aggregator().aggregate(readings)
