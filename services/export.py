"""Serialize processed datasets for download."""

from __future__ import annotations

import csv
import io
import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from app.schemas import DatasetRecord
from models.errors import UnsupportedFormatError

EXPORT_FORMATS = ("csv", "json")
CSV_HEADER = ("timestamp", "temperature", "temperature_kelvin", "unix_timestamp")
_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


@dataclass(frozen=True)
class ExportPayload:
    content: str
    media_type: str
    filename: str


def export_filename(name: str, extension: str, now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(timezone.utc)
    safe_name = _UNSAFE_FILENAME_CHARS.sub("_", name)
    return f"{safe_name}_export_{moment.strftime('%Y-%m-%d_%H-%M-%S')}.{extension}"


def _reading_rows(record: DatasetRecord) -> list[dict]:
    return [
        {
            "timestamp": reading.timestamp.strftime(_TIMESTAMP_FORMAT),
            "temperature": reading.temperature,
            "temperature_kelvin": reading.temperature_kelvin,
            "unix_timestamp": reading.unix_timestamp,
        }
        for reading in record.readings
    ]


def export_dataset(
    record: DatasetRecord, fmt: str = "csv", now: Optional[datetime] = None
) -> ExportPayload:
    normalized = (fmt or "").strip().lower()
    rows = _reading_rows(record)

    if normalized == "json":
        content = json.dumps(
            {
                "dataset": {
                    "name": record.name,
                    "mkt_value": record.mkt_value,
                    "activation_energy": record.activation_energy,
                },
                "readings": rows,
            },
            indent=4,
        )
        return ExportPayload(content, "application/json", export_filename(record.name, "json", now))

    if normalized == "csv":
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_HEADER, lineterminator="\n")
        writer.writeheader()
        writer.writerows(rows)
        return ExportPayload(buffer.getvalue(), "text/csv", export_filename(record.name, "csv", now))

    raise UnsupportedFormatError(
        f"Export format {fmt!r} not supported. Allowed formats: {', '.join(EXPORT_FORMATS)}"
    )
