"""Data access for the persisted dependency graph document."""

from __future__ import annotations

from typing import Callable

from ..models import DependencyGraph
from ..stores.kv import KeyValueStore

GRAPH_KEY = "dependencies/graph"


class DependencyGraphStore:
    """Loads and saves the whole graph document; performs no validation."""

    def __init__(self, store: KeyValueStore, key: str = GRAPH_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> DependencyGraph:
        return DependencyGraph.from_dict(self._store.get(self._key))

    def save(self, graph: DependencyGraph) -> None:
        self._store.set(self._key, graph.to_dict())

    def update(self, mutate: Callable[[DependencyGraph], None]) -> DependencyGraph:
        """Read, mutate and write the graph as one unit of the underlying store."""
        result: dict[str, DependencyGraph] = {}

        def _apply(current: object) -> object:
            graph = DependencyGraph.from_dict(current)
            mutate(graph)
            graph.rebuild_dependents()
            result["graph"] = graph
            return graph.to_dict()

        self._store.read_modify_write(self._key, _apply)
        return result["graph"]


__all__ = ["GRAPH_KEY", "DependencyGraphStore"]
