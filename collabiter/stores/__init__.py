"""Persistence adapters for contexts and coordination state."""

from .catalog import ContextCatalog
from .kv import JsonFileStore, KeyValueStore, MemoryStore

__all__ = ["ContextCatalog", "JsonFileStore", "KeyValueStore", "MemoryStore"]
