"""Format-independent parsing of raw timestamp and temperature fields.

Parsers never raise on bad data: they return ``None`` so the ingestion
pipeline can drop the row and carry on with the rest of the file.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Any, Optional, Union

from dateutil import parser as dtparser

from models.records import ABSOLUTE_ZERO_CELSIUS

# Tried in order; d/m/Y precedes m/d/Y so ambiguous dates resolve day-first.
TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%d",
    "%d/%m/%Y %H:%M:%S",
    "%d-%m-%Y %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
)

_EPOCH_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_TEMPERATURE_NOISE = re.compile(r"[^0-9.\-]")
_DECIMAL_PATTERN = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")


def _normalize(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=0)


def _from_epoch(raw: Union[int, float, str]) -> Optional[datetime]:
    try:
        seconds = float(raw)
        if not math.isfinite(seconds):
            return None
        return _normalize(datetime.fromtimestamp(seconds, tz=timezone.utc))
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """Parse a raw field into a UTC ``datetime`` or return ``None``."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return _normalize(raw)
    if isinstance(raw, date):
        return _normalize(datetime(raw.year, raw.month, raw.day))
    if isinstance(raw, (int, float)):
        return _from_epoch(raw)

    candidate = str(raw).strip()
    if not candidate:
        return None

    if _EPOCH_PATTERN.fullmatch(candidate):
        return _from_epoch(candidate)

    for fmt in TIMESTAMP_FORMATS:
        try:
            return _normalize(datetime.strptime(candidate, fmt))
        except ValueError:
            continue

    try:
        return _normalize(dtparser.parse(candidate))
    except (ValueError, OverflowError):
        return None


def parse_temperature(raw: Any) -> Optional[float]:
    """Parse a raw field into Celsius, ignoring unit suffixes and whitespace."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return None
        return value if math.isfinite(value) else None

    cleaned = _TEMPERATURE_NOISE.sub("", str(raw))
    if not cleaned or not _DECIMAL_PATTERN.fullmatch(cleaned):
        return None
    return float(cleaned)


def is_valid_temperature(value: float) -> bool:
    """A temperature is usable when it is finite and above absolute zero."""
    return math.isfinite(value) and value > ABSOLUTE_ZERO_CELSIUS
