"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import MktResult, Statistics, TemperatureReading


class DatasetStatus(str, Enum):
    """Processing lifecycle states exposed via the API."""

    uploaded = "uploaded"
    processing = "processing"
    processed = "processed"
    failed = "failed"


class DatasetUploadResponse(BaseModel):
    """Immediate response payload after accepting a file upload."""

    dataset_id: str = Field(..., description="Generated identifier for the uploaded dataset.")


class StatisticsModel(BaseModel):
    """Descriptive statistics over the dataset's Celsius temperatures."""

    count: int = Field(0, ge=0)
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    average: Optional[float] = None
    standard_deviation: Optional[float] = None

    @classmethod
    def from_statistics(cls, statistics: Statistics) -> "StatisticsModel":
        return cls(
            count=statistics.count,
            minimum=statistics.minimum,
            maximum=statistics.maximum,
            average=statistics.average,
            standard_deviation=statistics.standard_deviation,
        )


class ReadingModel(BaseModel):
    timestamp: datetime
    temperature: float
    temperature_kelvin: float
    unix_timestamp: int
    original_data: Optional[str] = None

    @classmethod
    def from_reading(cls, reading: TemperatureReading) -> "ReadingModel":
        return cls(
            timestamp=reading.timestamp,
            temperature=reading.temperature_celsius,
            temperature_kelvin=reading.temperature_kelvin,
            unix_timestamp=reading.unix_timestamp,
            original_data=reading.original_data,
        )

    def to_reading(self) -> TemperatureReading:
        return TemperatureReading(
            timestamp=self.timestamp,
            temperature_celsius=self.temperature,
            original_data=self.original_data or "",
        )


class DatasetSummary(BaseModel):
    """Dataset metadata and computed results, without the readings."""

    dataset_id: str
    name: str
    description: Optional[str] = None
    filename: str
    file_type: str
    file_size: int = Field(..., ge=0)
    status: DatasetStatus
    activation_energy: float = Field(..., gt=0, description="Activation energy in kJ/mol.")
    uploaded_at: datetime
    processed_at: Optional[datetime] = None
    processing_ms: Optional[int] = Field(
        default=None, description="Duration in milliseconds from start to finish."
    )
    mkt_value: Optional[float] = Field(default=None, description="Mean Kinetic Temperature in Celsius.")
    statistics: Optional[StatisticsModel] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    error: Optional[str] = None


class DatasetRecord(DatasetSummary):
    """Full record representing an uploaded dataset."""

    readings: List[ReadingModel] = Field(default_factory=list)

    def to_summary(self) -> DatasetSummary:
        return DatasetSummary.model_validate(self.model_dump(exclude={"readings"}))


class RecalculateRequest(BaseModel):
    activation_energy: Optional[float] = Field(
        default=None, description="New activation energy in kJ/mol; keeps the current one if omitted."
    )


class MktRequest(BaseModel):
    temperatures: List[float] = Field(..., description="Temperatures in Celsius.")
    activation_energy: Optional[float] = Field(default=None, description="Activation energy in kJ/mol.")


class MktResponse(BaseModel):
    mkt: float
    activation_energy: float
    temperature_count: int = Field(..., ge=0)

    @classmethod
    def from_result(cls, result: MktResult) -> "MktResponse":
        return cls(
            mkt=result.mkt_celsius,
            activation_energy=result.activation_energy,
            temperature_count=result.temperature_count,
        )
