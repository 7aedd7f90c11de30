from __future__ import annotations
import json
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from app.schemas import DatasetRecord
from settings import get_settings


class DatasetTable:
    """Dataset records keyed by ``dataset_id``, optionally persisted as JSON."""

    def __init__(self, name: str, persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self._items: Dict[str, DatasetRecord] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put_item(self, item: DatasetRecord) -> None:
        with self._lock:
            self._items[item.dataset_id] = item.model_copy(deep=True)
            self._persist()

    def get_item(self, key: str) -> Optional[DatasetRecord]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            return item.model_copy(deep=True)

    def delete_item(self, key: str) -> bool:
        with self._lock:
            removed = self._items.pop(key, None)
            if removed is not None:
                self._persist()
            return removed is not None

    def scan(self) -> list[DatasetRecord]:
        """Return deep copies of all stored datasets."""

        with self._lock:
            return [item.model_copy(deep=True) for item in self._items.values()]

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            dataset_id: item.model_dump(mode="json")
            for dataset_id, item in self._items.items()
        }
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            data = json.loads(self.persistence_path.read_text() or "{}")
        except (OSError, json.JSONDecodeError):
            data = {}

        for dataset_id, payload in data.items():
            self._items[dataset_id] = DatasetRecord.model_validate(payload)


@lru_cache
def build_default_table(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> DatasetTable:
    settings = get_settings()
    table_name = settings.table_name if name is None else name
    table_path = settings.table_persistence_path if path is None else path
    persistence = Path(table_path) if table_path else None
    return DatasetTable(name=table_name, persistence_path=persistence)
