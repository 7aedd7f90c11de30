from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, Optional

from settings import get_settings


class UploadStore:
    """Raw uploaded files keyed by ``<dataset_id>/<filename>``.

    Files are kept in memory and, when ``root_path`` is set, mirrored on disk
    so a restarted service can still reach earlier uploads.
    """

    def __init__(self, root_path: Optional[Path] = None) -> None:
        self.root_path = root_path
        self._files: Dict[str, bytes] = {}
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        if self.root_path is None:
            raise RuntimeError("Upload store has no root path; uploads live in memory only.")
        path = (self.root_path / key).resolve()
        if self.root_path.resolve() not in path.parents:
            raise KeyError(f"Upload key {key!r} escapes the store root.")
        return path

    def save(self, key: str, data: bytes) -> None:
        with self._lock:
            self._files[key] = data
            if self.root_path:
                path = self._path_for(key)
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(data)

    def load(self, key: str) -> bytes:
        with self._lock:
            data = self._files.get(key)
            if data is not None:
                return data
            if self.root_path:
                path = self._path_for(key)
                if path.is_file():
                    data = path.read_bytes()
                    self._files[key] = data
                    return data
        raise KeyError(f"Upload {key!r} not found.")

    def delete(self, key: str) -> None:
        with self._lock:
            self._files.pop(key, None)
            if self.root_path:
                path = self._path_for(key)
                if path.is_file():
                    path.unlink()
                parent = path.parent
                if parent != self.root_path.resolve() and parent.is_dir() and not any(parent.iterdir()):
                    parent.rmdir()

    def keys(self) -> Iterable[str]:
        with self._lock:
            found = set(self._files)
            if self.root_path:
                found.update(
                    path.relative_to(self.root_path).as_posix()
                    for path in self.root_path.rglob("*")
                    if path.is_file()
                )
        return sorted(found)


@lru_cache
def build_default_store(root_path: Optional[str] = None) -> UploadStore:
    settings = get_settings()
    store_root = settings.upload_root_path if root_path is None else root_path
    return UploadStore(root_path=Path(store_root) if store_root else None)
