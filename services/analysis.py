"""Single entry point running ingestion, statistics and MKT for one file."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from models.records import MktResult, ReadingSequence, Statistics
from services.aggregator import Aggregator
from services.ingestion import Source, ingest
from services.mkt import MktCalculator
from settings import DEFAULT_MAX_UPLOAD_BYTES


@dataclass(frozen=True)
class DatasetAnalysis:
    readings: ReadingSequence
    statistics: Statistics
    mkt: MktResult


def summarize(
    readings: ReadingSequence,
    activation_energy: Optional[float] = None,
    calculator: Optional[MktCalculator] = None,
    aggregator: Optional[Aggregator] = None,
) -> DatasetAnalysis:
    calculator = calculator or MktCalculator()
    aggregator = aggregator or Aggregator()
    return DatasetAnalysis(
        readings=readings,
        statistics=aggregator.aggregate(readings),
        mkt=calculator.calculate(readings, activation_energy),
    )


def analyze(
    source: Source,
    extension: Optional[str] = None,
    activation_energy: Optional[float] = None,
    *,
    calculator: Optional[MktCalculator] = None,
    aggregator: Optional[Aggregator] = None,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> DatasetAnalysis:
    """Ingest a file and compute its statistics and MKT."""
    readings = ingest(source, extension, max_bytes=max_bytes)
    return summarize(readings, activation_energy, calculator, aggregator)
