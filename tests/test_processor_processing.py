from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.schemas import DatasetRecord, DatasetStatus
from datastore.dataset_table import DatasetTable
from services.aggregator import Aggregator
from services.mkt import MktCalculator
from services.processor import ProcessorService
from storage.upload_store import UploadStore


@pytest.fixture()
def processor() -> ProcessorService:
    store = UploadStore()
    table = DatasetTable("test-table")
    service = ProcessorService(
        store=store,
        table=table,
        calculator=MktCalculator(),
        aggregator=Aggregator(),
        workers=1,
    )
    yield service
    service.shutdown()


def _process(processor: ProcessorService, dataset_id: str, extension: str, contents: str) -> DatasetRecord:
    filename = f"data.{extension}"
    key = f"{dataset_id}/{filename}"
    processor.store.save(key, contents.encode("utf-8"))
    processor.table.put_item(
        DatasetRecord(
            dataset_id=dataset_id,
            name=dataset_id,
            filename=filename,
            file_type=extension,
            file_size=len(contents),
            status=DatasetStatus.uploaded,
            activation_energy=83.144,
            uploaded_at=datetime.now(timezone.utc),
        )
    )
    processor._process_dataset(dataset_id=dataset_id, key=key)  # type: ignore[attr-defined]
    return processor.fetch_dataset(dataset_id)


def test_process_xml_dataset(processor: ProcessorService) -> None:
    body = """<?xml version="1.0" encoding="UTF-8"?>
<readings>
  <reading><timestamp>2024-01-01 00:00:00</timestamp><temperature>2.5</temperature></reading>
  <reading timestamp="2024-01-01 01:00:00" temperature="4.5"/>
  <reading><timestamp>broken</timestamp><temperature>9</temperature></reading>
</readings>
"""

    record = _process(processor, "xml", "xml", body)

    assert record.status is DatasetStatus.processed
    assert [reading.temperature for reading in record.readings] == [2.5, 4.5]
    assert record.statistics is not None
    assert record.statistics.minimum == 2.5
    assert record.statistics.maximum == 4.5
    assert record.readings[0].original_data.startswith("<reading>")


def test_process_yaml_dataset(processor: ProcessorService) -> None:
    body = """readings:
  - time: "2024-02-01 08:00:00"
    temp: "5 C"
  - time: "2024-02-01 09:00:00"
    temp: 7
"""

    record = _process(processor, "yaml", "yml", body)

    assert record.status is DatasetStatus.processed
    assert [reading.temperature for reading in record.readings] == [5.0, 7.0]
    assert record.start_time == datetime(2024, 2, 1, 8, tzinfo=timezone.utc)
    assert record.end_time == datetime(2024, 2, 1, 9, tzinfo=timezone.utc)


def test_process_json_dataset(processor: ProcessorService) -> None:
    body = '{"data": [{"date": "01/02/2024 10:00:00", "value": 21.5}, {"date": 1706781600, "value": "22"}]}'

    record = _process(processor, "json", "json", body)

    assert record.status is DatasetStatus.processed
    assert record.readings[0].timestamp == datetime(2024, 2, 1, 10, tzinfo=timezone.utc)
    assert record.readings[1].unix_timestamp == 1706781600
    assert record.statistics is not None
    assert record.statistics.average == pytest.approx(21.75)


def test_process_malformed_document_fails(processor: ProcessorService) -> None:
    record = _process(processor, "broken", "json", '{"readings": [')

    assert record.status is DatasetStatus.failed
    assert record.error is not None
    assert "Invalid JSON" in record.error
    assert record.statistics is None


def test_process_missing_upload_marks_dataset_failed(processor: ProcessorService) -> None:
    processor.table.put_item(
        DatasetRecord(
            dataset_id="gone",
            name="gone",
            filename="gone.csv",
            file_type="csv",
            file_size=1,
            status=DatasetStatus.uploaded,
            activation_energy=83.144,
            uploaded_at=datetime.now(timezone.utc),
        )
    )

    processor._process_dataset(dataset_id="gone", key="gone/gone.csv")  # type: ignore[attr-defined]

    record = processor.fetch_dataset("gone")
    assert record.status is DatasetStatus.failed
    assert record.error is not None
    assert "not found" in record.error


def test_process_dataset_deleted_before_processing_is_skipped(processor: ProcessorService) -> None:
    processor._process_dataset(dataset_id="never-stored", key="never-stored/data.csv")  # type: ignore[attr-defined]

    assert processor.table.scan() == []
