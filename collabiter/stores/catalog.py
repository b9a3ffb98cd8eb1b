"""Directory-backed catalog of learned project contexts."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from ..errors import StorePersistenceFailure
from ..logging import get_logger
from ..models import ProjectContext
from .kv import atomic_write_text

_LOGGER = get_logger("stores.catalog")

ALIAS_SUFFIX = "-latest.json"


class ContextCatalog:
    """One JSON document per context, named ``<id>.json``.

    Files ending in ``-latest.json`` are aliases and never listed. Listing is
    sorted by file name, which makes match tie-breaks deterministic.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    def path_for(self, context_id: str) -> Path:
        if not context_id or "/" in context_id or "\\" in context_id or context_id in {".", ".."}:
            raise ValueError(f"Invalid context id: {context_id!r}")
        return self._directory / f"{context_id}.json"

    def list_contexts(self) -> List[ProjectContext]:
        """Return every readable context; invalid files are skipped with a warning."""
        if not self._directory.is_dir():
            return []
        contexts: List[ProjectContext] = []
        for path in sorted(self._directory.glob("*.json")):
            if path.name.endswith(ALIAS_SUFFIX):
                continue
            try:
                context = self._read(path)
            except StorePersistenceFailure as exc:
                _LOGGER.warning("Skipping context file %s: %s", path.name, exc.reason)
                continue
            if context is not None:
                contexts.append(context)
        return contexts

    def load_context(self, context_id: str) -> Optional[ProjectContext]:
        """Return the stored context, None when no file exists.

        Raises StorePersistenceFailure when the file exists but cannot be parsed,
        so callers never mistake a damaged document for a missing one.
        """
        path = self.path_for(context_id)
        if not path.exists():
            return None
        return self._read(path)

    def save_context(self, context: ProjectContext) -> Path:
        path = self.path_for(context.id)
        payload = json.dumps(context.to_dict(), indent=2, sort_keys=True)
        atomic_write_text(path, payload)
        _LOGGER.debug("Saved context %s to %s", context.id, path)
        return path

    def _read(self, path: Path) -> Optional[ProjectContext]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StorePersistenceFailure(str(path), str(exc)) from exc
        if not isinstance(data, dict):
            raise StorePersistenceFailure(str(path), "expected a JSON object")
        try:
            return ProjectContext.from_dict(data)
        except ValueError as exc:
            raise StorePersistenceFailure(str(path), str(exc)) from exc


__all__ = ["ALIAS_SUFFIX", "ContextCatalog"]
