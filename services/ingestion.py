"""Validate an uploaded file and normalize it into temperature readings."""

from __future__ import annotations

import logging
from os import PathLike
from pathlib import Path
from typing import BinaryIO, Optional, Union

from models.errors import FileTooLargeError, NoValidReadingsError, ParseError, UnsupportedFormatError
from models.records import ReadingSequence, TemperatureReading
from services.adapters import SUPPORTED_EXTENSIONS, get_adapter
from services.parsers import is_valid_temperature, parse_temperature, parse_timestamp
from settings import DEFAULT_MAX_UPLOAD_BYTES

logger = logging.getLogger(__name__)

Source = Union[bytes, bytearray, str, PathLike, BinaryIO]


def normalize_extension(extension: Optional[str]) -> str:
    """Lower-case an extension or filename suffix and drop the leading dot."""
    candidate = (extension or "").strip().lower()
    if "." in candidate:
        candidate = candidate.rsplit(".", 1)[-1]
    return candidate


def _too_large(max_bytes: int) -> FileTooLargeError:
    return FileTooLargeError(
        f"File size too large. Maximum size is {max_bytes / (1024 * 1024):g}MB"
    )


def validate_upload(extension: str, size: int, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> str:
    normalized = normalize_extension(extension)
    if normalized not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(
            "File type not supported. Allowed types: " + ", ".join(SUPPORTED_EXTENSIONS)
        )
    if size > max_bytes:
        raise _too_large(max_bytes)
    return normalized


def _read_source(source: Source, max_bytes: int) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, PathLike)):
        path = Path(source)
        try:
            size = path.stat().st_size
            data = b"" if size > max_bytes else path.read_bytes()
        except OSError as exc:
            raise ParseError(f"Cannot read file {path.name}: {exc}", cause=exc) from exc
        if size > max_bytes:
            raise _too_large(max_bytes)
        return data
    try:
        data = source.read(max_bytes + 1)
    except OSError as exc:
        raise ParseError(f"Cannot read uploaded file: {exc}", cause=exc) from exc
    if isinstance(data, str):
        data = data.encode("utf-8")
    return data


def ingest(
    source: Source,
    extension: Optional[str] = None,
    *,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> ReadingSequence:
    """Turn a CSV/XML/YAML/JSON file into readings, dropping unusable rows."""
    if extension is None and isinstance(source, (str, PathLike)):
        extension = Path(source).suffix
    normalized = normalize_extension(extension)
    validate_upload(normalized, 0, max_bytes)

    payload = _read_source(source, max_bytes)
    validate_upload(normalized, len(payload), max_bytes)

    adapter = get_adapter(normalized)
    readings: list[TemperatureReading] = []
    skipped = 0
    for candidate in adapter.adapt(payload):
        timestamp = parse_timestamp(candidate.timestamp)
        temperature = parse_temperature(candidate.temperature)

        reason: Optional[str] = None
        if timestamp is None:
            reason = "invalid timestamp"
        elif temperature is None:
            reason = "invalid temperature"
        elif not is_valid_temperature(temperature):
            reason = "temperature at or below absolute zero"

        if reason is not None:
            skipped += 1
            logger.debug(
                "Skipping row",
                extra={"row_number": candidate.position, "reason": reason},
            )
            continue

        readings.append(
            TemperatureReading(
                timestamp=timestamp,
                temperature_celsius=temperature,
                original_data=candidate.original_data,
            )
        )

    if skipped:
        logger.warning(
            "Dropped rows that could not be parsed",
            extra={
                "extension": normalized,
                "row_count": len(readings),
                "skipped_count": skipped,
            },
        )

    if not readings:
        raise NoValidReadingsError("No valid temperature readings found in file.")

    return ReadingSequence(tuple(readings))
