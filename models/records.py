"""Domain models shared across services."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Optional, Tuple

ABSOLUTE_ZERO_CELSIUS = -273.15
KELVIN_OFFSET = 273.15


@dataclass(frozen=True, slots=True)
class TemperatureReading:
    """A single timestamped temperature parsed from an uploaded file."""

    timestamp: datetime
    temperature_celsius: float
    original_data: str = ""

    def __post_init__(self) -> None:
        value = self.temperature_celsius
        if not math.isfinite(value) or value <= ABSOLUTE_ZERO_CELSIUS:
            raise ValueError(f"Temperature {value!r} is not a physical Celsius value.")

    @property
    def temperature_kelvin(self) -> float:
        return self.temperature_celsius + KELVIN_OFFSET

    @property
    def unix_timestamp(self) -> int:
        return int(self.timestamp.timestamp())


@dataclass(frozen=True, slots=True)
class ReadingSequence:
    """Readings in the order the file produced them (not time order)."""

    readings: Tuple[TemperatureReading, ...] = ()

    def __len__(self) -> int:
        return len(self.readings)

    def __iter__(self) -> Iterator[TemperatureReading]:
        return iter(self.readings)

    def __getitem__(self, index: int) -> TemperatureReading:
        return self.readings[index]

    def temperatures(self) -> list[float]:
        return [reading.temperature_celsius for reading in self.readings]

    @property
    def start_time(self) -> Optional[datetime]:
        if not self.readings:
            return None
        return min(reading.timestamp for reading in self.readings)

    @property
    def end_time(self) -> Optional[datetime]:
        if not self.readings:
            return None
        return max(reading.timestamp for reading in self.readings)


@dataclass(frozen=True, slots=True)
class Statistics:
    """Descriptive statistics over Celsius temperatures."""

    count: int = 0
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    average: Optional[float] = None
    standard_deviation: Optional[float] = None


@dataclass(frozen=True, slots=True)
class MktResult:
    mkt_celsius: float
    activation_energy: float
    temperature_count: int = field(default=0)

    @property
    def mkt_kelvin(self) -> float:
        return self.mkt_celsius + KELVIN_OFFSET
