"""Key-value stores for autosave and project persistence.

Values are JSON-serializable blobs. Every implementation hands out fresh
objects on ``get`` so callers never share state with the store.
"""

import json
from pathlib import Path
from typing import Any

from rulegraph.errors import StorageError


class KeyValueStore:
    """Protocol for durable key-value storage."""

    def get(self, key: str) -> Any | None:
        """Return the value stored under key, or None."""
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key."""
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Keeps values as JSON text in a dict."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self.data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        try:
            self.data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key!r} is not JSON-serializable: {e}") from e

    def clear(self) -> None:
        """Drop all stored values."""
        self.data.clear()


class FileStore(KeyValueStore):
    """Writes each key to ``<directory>/<key>.json``."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(json.dumps(value, indent=2), encoding="utf-8")
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
