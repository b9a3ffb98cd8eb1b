"""Tests for the key/value persistence adapters."""

from __future__ import annotations

from pathlib import Path

import pytest

from collabiter.errors import StorePersistenceFailure
from collabiter.stores import JsonFileStore, MemoryStore


def test_json_file_store_nests_keys_as_directories(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    store.set("components/Button", {"path": "src/Button.tsx"})

    assert (tmp_path / "components" / "Button.json").exists()
    assert store.get("components/Button") == {"path": "src/Button.tsx"}
    assert store.get("components/Missing") is None


def test_json_file_store_read_modify_write_leaves_no_temp_files(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)

    store.read_modify_write("counter", lambda current: (current or 0) + 1)
    result = store.read_modify_write("counter", lambda current: (current or 0) + 1)

    assert result == 2
    assert store.get("counter") == 2
    assert sorted(path.name for path in tmp_path.iterdir()) == ["counter.json"]


def test_failed_mutation_keeps_previous_document(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    store.set("graph", {"a": 1})

    def explode(current):  # type: ignore[no-untyped-def]
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        store.read_modify_write("graph", explode)
    assert store.get("graph") == {"a": 1}


def test_json_file_store_reports_corrupt_documents(tmp_path: Path) -> None:
    (tmp_path / "graph.json").write_text("{", encoding="utf-8")

    with pytest.raises(StorePersistenceFailure):
        JsonFileStore(tmp_path).get("graph")


def test_json_file_store_rejects_traversal_and_unserialisable_values(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)

    with pytest.raises(StorePersistenceFailure):
        store.get("../outside")
    with pytest.raises(StorePersistenceFailure):
        store.set("bad", {"value": object()})
    assert store.get("bad") is None


def test_memory_store_returns_copies() -> None:
    store = MemoryStore()
    store.set("doc", {"items": [1]})

    fetched = store.get("doc")
    fetched["items"].append(2)

    assert store.get("doc") == {"items": [1]}
    store.delete("doc")
    assert store.keys() == []
