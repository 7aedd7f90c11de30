"""Per-format adapters that locate raw timestamp/temperature fields.

Each adapter turns the bytes of one file format into ``RawReading``
candidates. Values are left unparsed; ``services.ingestion`` decides which
candidates become readings.
"""

from __future__ import annotations

import csv
import io
import json
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence

import yaml

from models.errors import ParseError, UnsupportedFormatError

CSV_TIMESTAMP_COLUMNS = ("timestamp", "time", "date", "datetime")
CSV_TEMPERATURE_COLUMNS = ("temperature", "temp", "value")

XML_READING_TAGS = frozenset({"reading", "measurement", "data"})
XML_TIMESTAMP_FIELDS = ("timestamp", "time", "date", "@timestamp", "@time")
XML_TEMPERATURE_FIELDS = ("temperature", "temp", "value", "@temperature", "@temp")

STRUCTURED_CONTAINER_KEYS = ("readings", "data")
STRUCTURED_TIMESTAMP_KEYS = ("timestamp", "time", "date")
STRUCTURED_TEMPERATURE_KEYS = ("temperature", "temp", "value")


@dataclass(frozen=True, slots=True)
class RawReading:
    """Unparsed fields located for one row, node or element."""

    timestamp: Any
    temperature: Any
    original_data: str
    position: int


class FormatAdapter(Protocol):
    def adapt(self, payload: bytes) -> Iterator[RawReading]:
        ...


def _decode(payload: bytes, label: str) -> str:
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(f"{label} file is not valid UTF-8 text.", cause=exc) from exc


def _first_index(header: Sequence[str], candidates: Iterable[str], default: int) -> int:
    for name in candidates:
        if name in header:
            return header.index(name)
    return default


class CsvAdapter:

    def adapt(self, payload: bytes) -> Iterator[RawReading]:
        text = _decode(payload, "CSV")
        reader = csv.reader(io.StringIO(text, newline=""))
        try:
            header = next(reader, None)
            if not header:
                raise ParseError("CSV file is empty or invalid.")

            normalized = [name.strip().lower() for name in header]
            timestamp_idx = _first_index(normalized, CSV_TIMESTAMP_COLUMNS, default=0)
            temperature_idx = _first_index(normalized, CSV_TEMPERATURE_COLUMNS, default=1)
            min_fields = max(timestamp_idx, temperature_idx) + 1

            for row_number, row in enumerate(reader, start=2):
                if len(row) < min_fields:
                    continue
                yield RawReading(
                    timestamp=row[timestamp_idx],
                    temperature=row[temperature_idx],
                    original_data=",".join(row),
                    position=row_number,
                )
        except csv.Error as exc:
            raise ParseError(f"Cannot read CSV file: {exc}", cause=exc) from exc


def _local_name(tag: Any) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _xml_field(element: ET.Element, candidates: Iterable[str]) -> Optional[str]:
    for name in candidates:
        if name.startswith("@"):
            value = element.attrib.get(name[1:])
            if value is not None:
                return value
            continue
        for child in element:
            if _local_name(child.tag) == name:
                return child.text or ""
    return None


class XmlAdapter:

    def adapt(self, payload: bytes) -> Iterator[RawReading]:
        try:
            root = ET.fromstring(payload)
        except ET.ParseError as exc:
            raise ParseError(f"Cannot parse XML file: {exc}", cause=exc) from exc

        nodes = (node for node in root.iter() if _local_name(node.tag) in XML_READING_TAGS)
        for position, node in enumerate(nodes, start=1):
            timestamp = _xml_field(node, XML_TIMESTAMP_FIELDS)
            temperature = _xml_field(node, XML_TEMPERATURE_FIELDS)
            if timestamp is None or temperature is None:
                continue
            serialized = ET.tostring(node, encoding="unicode")
            if node.tail:
                serialized = serialized[: len(serialized) - len(node.tail)]
            yield RawReading(
                timestamp=timestamp,
                temperature=temperature,
                original_data=serialized,
                position=position,
            )


def _first_value(item: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _reading_items(document: Any) -> List[Any]:
    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        for key in STRUCTURED_CONTAINER_KEYS:
            container = document.get(key)
            if isinstance(container, list):
                return container
            if isinstance(container, dict):
                return list(container.values())
        return list(document.values())
    raise ParseError("Structured file must contain a list or mapping of readings.")


class StructuredAdapter:
    """Shared JSON/YAML handling once the document is loaded."""

    label = "Structured"

    def __init__(self, loader: Callable[[str], Any]) -> None:
        self._loader = loader

    def load(self, text: str) -> Any:
        return self._loader(text)

    def adapt(self, payload: bytes) -> Iterator[RawReading]:
        document = self.load(_decode(payload, self.label))
        for position, item in enumerate(_reading_items(document), start=1):
            if not isinstance(item, dict):
                continue
            timestamp = _first_value(item, STRUCTURED_TIMESTAMP_KEYS)
            temperature = _first_value(item, STRUCTURED_TEMPERATURE_KEYS)
            if timestamp is None or temperature is None:
                continue
            yield RawReading(
                timestamp=timestamp,
                temperature=temperature,
                original_data=json.dumps(item, default=str),
                position=position,
            )


class JsonAdapter(StructuredAdapter):
    label = "JSON"

    def __init__(self) -> None:
        super().__init__(json.loads)

    def load(self, text: str) -> Any:
        try:
            return super().load(text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Invalid JSON file: {exc.msg}", cause=exc) from exc
        except ValueError as exc:
            raise ParseError(f"Invalid JSON file: {exc}", cause=exc) from exc


class YamlAdapter(StructuredAdapter):
    label = "YAML"

    def __init__(self) -> None:
        super().__init__(yaml.safe_load)

    def load(self, text: str) -> Any:
        try:
            return super().load(text)
        except (yaml.YAMLError, ValueError) as exc:
            raise ParseError(f"Invalid YAML file: {exc}", cause=exc) from exc


ADAPTERS: Dict[str, FormatAdapter] = {
    "csv": CsvAdapter(),
    "xml": XmlAdapter(),
    "yml": YamlAdapter(),
    "yaml": YamlAdapter(),
    "json": JsonAdapter(),
}

SUPPORTED_EXTENSIONS = tuple(ADAPTERS)


def get_adapter(extension: str) -> FormatAdapter:
    adapter = ADAPTERS.get(extension.lower().lstrip("."))
    if adapter is None:
        raise UnsupportedFormatError(
            "File type not supported. Allowed types: " + ", ".join(SUPPORTED_EXTENSIONS)
        )
    return adapter
