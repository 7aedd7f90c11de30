"""Background processing orchestration for uploaded temperature files."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional
from uuid import uuid4

from fastapi import BackgroundTasks, UploadFile

from app.schemas import (
    DatasetRecord,
    DatasetStatus,
    DatasetSummary,
    ReadingModel,
    StatisticsModel,
)
from datastore.dataset_table import DatasetTable, build_default_table
from models.errors import MktError
from models.records import MktResult, ReadingSequence
from services.aggregator import Aggregator
from services.analysis import DatasetAnalysis, analyze
from services.export import ExportPayload, export_dataset
from services.ingestion import normalize_extension, validate_upload
from services.mkt import MktCalculator, MktConfig, validate_activation_energy
from settings import get_settings
from storage.upload_store import UploadStore, build_default_store

logger = logging.getLogger(__name__)


class DatasetNotReadyError(RuntimeError):
    """The dataset has no readings to work with yet."""


class ProcessorService:
    """Coordinates storage, background parsing, and result retrieval."""

    def __init__(
        self,
        store: UploadStore,
        table: DatasetTable,
        calculator: MktCalculator,
        aggregator: Aggregator,
        workers: int = 4,
        max_upload_bytes: Optional[int] = None,
    ) -> None:
        self.store = store
        self.table = table
        self.calculator = calculator
        self.aggregator = aggregator
        self.max_upload_bytes = max_upload_bytes or get_settings().max_upload_bytes
        self.executor = ThreadPoolExecutor(max_workers=workers)
        self._futures: Dict[str, Future[None]] = {}
        self._futures_lock = Lock()
        self._records_lock = Lock()

    def enqueue_upload(
        self,
        background_tasks: BackgroundTasks,
        file: UploadFile,
        name: Optional[str] = None,
        description: Optional[str] = None,
        activation_energy: Optional[float] = None,
    ) -> str:
        """Validate and persist an upload, then trigger asynchronous processing."""
        filename = Path(file.filename or "upload.csv").name
        extension = normalize_extension(Path(filename).suffix)
        validate_upload(extension, 0, self.max_upload_bytes)

        energy = self.calculator.config.activation_energy
        if activation_energy is not None:
            energy = validate_activation_energy(activation_energy)

        file.file.seek(0)
        contents = file.file.read(self.max_upload_bytes + 1)
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        if not contents:
            raise ValueError("Uploaded file is empty.")
        validate_upload(extension, len(contents), self.max_upload_bytes)

        dataset_id = str(uuid4())
        key = f"{dataset_id}/{filename}"
        self.store.save(key, contents)

        uploaded_at = datetime.now(timezone.utc)
        initial_record = DatasetRecord(
            dataset_id=dataset_id,
            name=(name or "").strip() or Path(filename).stem,
            description=description,
            filename=filename,
            file_type=extension,
            file_size=len(contents),
            status=DatasetStatus.uploaded,
            activation_energy=energy,
            uploaded_at=uploaded_at,
        )
        self.table.put_item(initial_record)

        future = self.executor.submit(self._process_dataset, dataset_id=dataset_id, key=key)
        with self._futures_lock:
            self._futures[dataset_id] = future
        future.add_done_callback(lambda _f, did=dataset_id: self._clear_future(did))

        background_tasks.add_task(file.close)
        return dataset_id

    def fetch_dataset(self, dataset_id: str) -> DatasetRecord:
        """Retrieve a dataset record from persistent storage."""
        record = self.table.get_item(dataset_id)
        if record is None:
            raise KeyError(f"Dataset {dataset_id!r} not found.")
        return record

    def list_datasets(self) -> List[DatasetSummary]:
        records = sorted(self.table.scan(), key=lambda record: record.uploaded_at, reverse=True)
        return [record.to_summary() for record in records]

    def delete_dataset(self, dataset_id: str) -> None:
        with self._records_lock:
            record = self.fetch_dataset(dataset_id)
            self.table.delete_item(dataset_id)
        self.store.delete(f"{dataset_id}/{record.filename}")
        logger.info("Deleted dataset", extra={"dataset_id": dataset_id})

    def recalculate(
        self, dataset_id: str, activation_energy: Optional[float] = None
    ) -> DatasetRecord:
        """Recompute MKT from stored readings, optionally with a new activation energy."""
        record = self.fetch_dataset(dataset_id)
        if record.status is not DatasetStatus.processed or not record.readings:
            raise DatasetNotReadyError(
                f"Dataset {dataset_id!r} has no readings to calculate MKT from."
            )

        energy = record.activation_energy if activation_energy is None else activation_energy
        readings = ReadingSequence(tuple(model.to_reading() for model in record.readings))
        result = self.calculator.calculate(readings, energy)

        updated = record.model_copy(
            update={"mkt_value": result.mkt_celsius, "activation_energy": result.activation_energy}
        )
        if not self._put_if_present(updated):
            raise KeyError(f"Dataset {dataset_id!r} not found.")
        logger.info(
            "MKT recalculated",
            extra={
                "dataset_id": dataset_id,
                "activation_energy": result.activation_energy,
                "mkt_value": round(result.mkt_celsius, 4),
            },
        )
        return updated

    def calculate_mkt(
        self, temperatures: List[float], activation_energy: Optional[float] = None
    ) -> MktResult:
        return self.calculator.calculate(temperatures, activation_energy)

    def export(self, dataset_id: str, fmt: str = "csv") -> ExportPayload:
        record = self.fetch_dataset(dataset_id)
        if record.status is not DatasetStatus.processed:
            raise DatasetNotReadyError(f"Dataset {dataset_id!r} has not been processed.")
        return export_dataset(record, fmt)

    def pending_datasets(self) -> List[str]:
        """Identifiers of datasets whose processing has not finished yet."""
        with self._futures_lock:
            return [dataset_id for dataset_id, future in self._futures.items() if not future.done()]

    def shutdown(self) -> None:
        """Clean up executor resources during application shutdown."""
        self.executor.shutdown(wait=False, cancel_futures=True)

    def _put_if_present(self, record: DatasetRecord) -> bool:
        """Write ``record`` unless its dataset was deleted in the meantime."""
        with self._records_lock:
            if self.table.get_item(record.dataset_id) is None:
                return False
            self.table.put_item(record)
            return True

    def _clear_future(self, dataset_id: str) -> None:
        with self._futures_lock:
            self._futures.pop(dataset_id, None)

    def _process_dataset(self, dataset_id: str, key: str) -> None:
        start_time = time.perf_counter()
        log_context = {"dataset_id": dataset_id, "object_key": key}
        record = self.table.get_item(dataset_id)
        if record is None:
            logger.info("Dataset deleted before processing", extra=log_context)
            return
        record = record.model_copy(update={"status": DatasetStatus.processing})
        if not self._put_if_present(record):
            logger.info("Dataset deleted before processing", extra=log_context)
            return

        update: dict = {}
        try:
            payload = self.store.load(key)
            analysis = analyze(
                payload,
                record.file_type,
                record.activation_energy,
                calculator=self.calculator,
                aggregator=self.aggregator,
                max_bytes=self.max_upload_bytes,
            )
            update = self._analysis_fields(analysis)
            update["status"] = DatasetStatus.processed
        except MktError as exc:
            logger.warning("Dataset processing failed", extra={**log_context, "reason": str(exc)})
            update = {"status": DatasetStatus.failed, "error": str(exc)}
        except Exception as exc:
            logger.exception("Unexpected error while processing dataset", extra=log_context)
            update = {"status": DatasetStatus.failed, "error": str(exc)}

        processing_ms = int((time.perf_counter() - start_time) * 1000)
        update.update(processed_at=datetime.now(timezone.utc), processing_ms=processing_ms)
        final_record = record.model_copy(update=update)
        if not self._put_if_present(final_record):
            logger.info("Dataset deleted during processing", extra=log_context)
            return
        logger.info(
            "Dataset processed",
            extra={
                **log_context,
                "status": final_record.status.value,
                "processing_ms": processing_ms,
                "row_count": len(final_record.readings),
                "mkt_value": final_record.mkt_value,
            },
        )

    @staticmethod
    def _analysis_fields(analysis: DatasetAnalysis) -> dict:
        readings = analysis.readings
        return {
            "readings": [ReadingModel.from_reading(reading) for reading in readings],
            "statistics": StatisticsModel.from_statistics(analysis.statistics),
            "mkt_value": analysis.mkt.mkt_celsius,
            "activation_energy": analysis.mkt.activation_energy,
            "start_time": readings.start_time,
            "end_time": readings.end_time,
            "error": None,
        }


@lru_cache
def build_default_processor(
    workers: Optional[int] = None,
) -> ProcessorService:
    """Factory that wires the processor with the configured store and table."""
    settings = get_settings()
    calculator = MktCalculator(MktConfig(activation_energy=settings.default_activation_energy))
    return ProcessorService(
        store=build_default_store(),
        table=build_default_table(),
        calculator=calculator,
        aggregator=Aggregator(),
        workers=workers or settings.processor_workers,
        max_upload_bytes=settings.max_upload_bytes,
    )
