from pathlib import Path

import pytest

from storage.upload_store import UploadStore


def test_upload_store_save_and_load(tmp_path: Path) -> None:
    store = UploadStore(root_path=tmp_path)
    store.save("abc/readings.csv", b"hello")

    assert (tmp_path / "abc" / "readings.csv").read_bytes() == b"hello"
    assert "abc/readings.csv" in store.keys()

    fresh_store = UploadStore(root_path=tmp_path)
    assert fresh_store.load("abc/readings.csv") == b"hello"


def test_upload_store_in_memory_only() -> None:
    store = UploadStore()
    store.save("abc/readings.json", b"[]")

    assert store.load("abc/readings.json") == b"[]"
    assert list(store.keys()) == ["abc/readings.json"]


def test_upload_store_missing_key(tmp_path: Path) -> None:
    store = UploadStore(root_path=tmp_path)

    with pytest.raises(KeyError, match="missing.csv"):
        store.load("abc/missing.csv")


def test_upload_store_delete_removes_empty_directory(tmp_path: Path) -> None:
    store = UploadStore(root_path=tmp_path)
    store.save("abc/readings.csv", b"hello")

    store.delete("abc/readings.csv")
    store.delete("abc/readings.csv")

    assert not (tmp_path / "abc").exists()
    assert list(store.keys()) == []


def test_upload_store_rejects_keys_outside_root(tmp_path: Path) -> None:
    store = UploadStore(root_path=tmp_path / "uploads")

    with pytest.raises(KeyError):
        store.save("../escape.csv", b"nope")


def test_upload_store_without_root_has_no_file_paths() -> None:
    store = UploadStore()

    with pytest.raises(RuntimeError):
        store._path_for("abc/readings.csv")
