"""Dependency coordination between concurrently developed components."""

from .coordinator import COMPLETION_CHECKS, Coordinator
from .cycles import find_cycle, has_cycle_from
from .graph_store import GRAPH_KEY, DependencyGraphStore

__all__ = [
    "COMPLETION_CHECKS",
    "Coordinator",
    "DependencyGraphStore",
    "GRAPH_KEY",
    "find_cycle",
    "has_cycle_from",
]
