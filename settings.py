from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_UPLOAD_ROOT_ENV = "MKT_UPLOAD_ROOT_PATH"
_TABLE_NAME_ENV = "MKT_DATASET_TABLE_NAME"
_TABLE_PATH_ENV = "MKT_DATASET_TABLE_PATH"
_WORKER_COUNT_ENV = "PROCESSOR_WORKER_COUNT"
_MAX_UPLOAD_BYTES_ENV = "MKT_MAX_UPLOAD_BYTES"
_ACTIVATION_ENERGY_ENV = "MKT_DEFAULT_ACTIVATION_ENERGY"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_ACTIVATION_ENERGY = 83.144  # kJ/mol


@dataclass(frozen=True)
class Settings:
    upload_root_path: Optional[str]
    table_name: str
    table_persistence_path: Optional[str]
    processor_workers: int
    max_upload_bytes: int
    default_activation_energy: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if math.isfinite(parsed) and parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        upload_root_path=_read_optional_env(_UPLOAD_ROOT_ENV, "./tmp/uploads"),
        table_name=_read_str_env(_TABLE_NAME_ENV, "datasets"),
        table_persistence_path=_read_optional_env(_TABLE_PATH_ENV, "./tmp/datasets.json"),
        processor_workers=_read_positive_int(_WORKER_COUNT_ENV, 4),
        max_upload_bytes=_read_positive_int(_MAX_UPLOAD_BYTES_ENV, DEFAULT_MAX_UPLOAD_BYTES),
        default_activation_energy=_read_positive_float(
            _ACTIVATION_ENERGY_ENV, DEFAULT_ACTIVATION_ENERGY
        ),
        log_level=_read_log_level("INFO"),
    )
