"""Key/value persistence port used for coordination state."""

from __future__ import annotations

import copy
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol

from ..errors import StorePersistenceFailure

JSONValue = Any
Mutator = Callable[[Optional[JSONValue]], JSONValue]


class KeyValueStore(Protocol):
    """Persistence port; every write replaces the whole document stored under a key."""

    def get(self, key: str) -> Optional[JSONValue]:
        ...

    def set(self, key: str, value: JSONValue) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def read_modify_write(self, key: str, mutate: Mutator) -> JSONValue:
        """Apply ``mutate`` to the current value and store its result as one unit."""
        ...


class MemoryStore:
    """In-process store, mainly for tests and dry runs."""

    def __init__(self, initial: Optional[Dict[str, JSONValue]] = None) -> None:
        self._data: Dict[str, JSONValue] = copy.deepcopy(initial) if initial else {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[JSONValue]:
        with self._lock:
            return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: JSONValue) -> None:
        try:
            json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorePersistenceFailure(key, f"value is not JSON serialisable: {exc}") from exc
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def read_modify_write(self, key: str, mutate: Mutator) -> JSONValue:
        with self._lock:
            updated = mutate(self.get(key))
            self.set(key, updated)
            return copy.deepcopy(updated)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class JsonFileStore:
    """Stores each key as a JSON document under a root directory.

    Writes go through a temporary file and ``os.replace`` so a document is
    either fully written or untouched. Separate processes are not locked
    against each other; the last writer wins.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._lock = threading.RLock()

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        parts = [part for part in key.split("/") if part]
        if not parts or any(part in {".", ".."} for part in parts):
            raise StorePersistenceFailure(key, "invalid key")
        return self._root.joinpath(*parts[:-1], f"{parts[-1]}.json")

    def get(self, key: str) -> Optional[JSONValue]:
        path = self.path_for(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorePersistenceFailure(key, str(exc)) from exc
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorePersistenceFailure(key, f"corrupt document: {exc}") from exc

    def set(self, key: str, value: JSONValue) -> None:
        path = self.path_for(key)
        try:
            payload = json.dumps(value, indent=2, sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise StorePersistenceFailure(key, f"value is not JSON serialisable: {exc}") from exc
        with self._lock:
            _atomic_write(path, payload, key)

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                return
            except OSError as exc:
                raise StorePersistenceFailure(key, str(exc)) from exc

    def read_modify_write(self, key: str, mutate: Mutator) -> JSONValue:
        # TODO: take an advisory file lock here so concurrent CLI invocations stop dropping writes.
        with self._lock:
            updated = mutate(self.get(key))
            self.set(key, updated)
            return updated


def _atomic_write(path: Path, payload: str, key: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as exc:
        raise StorePersistenceFailure(key, str(exc)) from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
        os.replace(tmp_name, path)
    except OSError as exc:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise StorePersistenceFailure(key, str(exc)) from exc


def atomic_write_text(path: Path, payload: str) -> None:
    """Write ``payload`` to ``path`` atomically, raising StorePersistenceFailure on error."""
    _atomic_write(path, payload, str(path))


__all__ = ["JsonFileStore", "KeyValueStore", "MemoryStore", "atomic_write_text"]
