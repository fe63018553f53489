"""Persistence adapters for rulegraph."""

from rulegraph.adapters.storage import FileStore, KeyValueStore, MemoryStore

__all__ = [
    "FileStore",
    "KeyValueStore",
    "MemoryStore",
]
