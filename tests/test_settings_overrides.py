from __future__ import annotations

from typing import Iterable

from datastore.dataset_table import build_default_table
from services.processor import build_default_processor
from settings import DEFAULT_ACTIVATION_ENERGY, DEFAULT_MAX_UPLOAD_BYTES, get_settings
from storage.upload_store import build_default_store


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    upload_root = tmp_path / "uploads"
    table_path = tmp_path / "db.json"

    monkeypatch.setenv("MKT_UPLOAD_ROOT_PATH", str(upload_root))
    monkeypatch.setenv("MKT_DATASET_TABLE_NAME", "custom-table")
    monkeypatch.setenv("MKT_DATASET_TABLE_PATH", str(table_path))
    monkeypatch.setenv("PROCESSOR_WORKER_COUNT", "2")
    monkeypatch.setenv("MKT_MAX_UPLOAD_BYTES", "2048")
    monkeypatch.setenv("MKT_DEFAULT_ACTIVATION_ENERGY", "100")

    caches = (
        get_settings,
        build_default_store,
        build_default_table,
        build_default_processor,
    )
    _clear_caches(caches)

    store = build_default_store()
    table = build_default_table()
    processor = build_default_processor()

    try:
        assert store.root_path == upload_root
        assert table.name == "custom-table"
        assert table.persistence_path == table_path
        assert processor.executor._max_workers == 2
        assert processor.max_upload_bytes == 2048
        assert processor.calculator.config.activation_energy == 100.0
    finally:
        processor.shutdown()
        _clear_caches(caches)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("PROCESSOR_WORKER_COUNT", "zero")
    monkeypatch.setenv("MKT_MAX_UPLOAD_BYTES", "-1")
    monkeypatch.setenv("MKT_DEFAULT_ACTIVATION_ENERGY", "nan")
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    get_settings.cache_clear()

    try:
        settings = get_settings()
        assert settings.processor_workers == 4
        assert settings.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES
        assert settings.default_activation_energy == DEFAULT_ACTIVATION_ENERGY
        assert settings.log_level == "DEBUG"
    finally:
        get_settings.cache_clear()


def test_blank_paths_disable_persistence(monkeypatch) -> None:
    monkeypatch.setenv("MKT_UPLOAD_ROOT_PATH", "")
    monkeypatch.setenv("MKT_DATASET_TABLE_PATH", "  ")
    get_settings.cache_clear()

    try:
        settings = get_settings()
        assert settings.upload_root_path is None
        assert settings.table_persistence_path is None
    finally:
        get_settings.cache_clear()
