"""SQLite key-value storage for autosave and projects."""

import json
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rulegraph.adapters.storage import KeyValueStore
from rulegraph.errors import StorageError

DEFAULT_DB_PATH = Path(__file__).parent / "data" / "rulegraph.db"
RULEGRAPH_DB_PATH = Path(os.getenv("RULEGRAPH_DB_PATH", str(DEFAULT_DB_PATH)))


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _connect(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Path = RULEGRAPH_DB_PATH) -> None:
    with _connect(db_path) as conn:
        conn.execute(
            """
            create table if not exists kv (
                key text primary key,
                value_json text not null,
                updated_at text not null
            )
            """
        )
        conn.commit()


class SqliteStore(KeyValueStore):
    """Keeps each key as a JSON row in the ``kv`` table."""

    def __init__(self, db_path: Path | str = RULEGRAPH_DB_PATH) -> None:
        self.db_path = Path(db_path)
        try:
            init_db(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"Failed to open database {self.db_path}: {e}") from e

    def get(self, key: str) -> Any | None:
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    "select value_json from kv where key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read {key!r}: {e}") from e
        if not row:
            return None
        try:
            return json.loads(row["value_json"])
        except ValueError as e:
            raise StorageError(f"Stored value for {key!r} is not valid JSON: {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            value_json = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key!r} is not JSON-serializable: {e}") from e
        try:
            with _connect(self.db_path) as conn:
                conn.execute(
                    """
                    insert into kv (key, value_json, updated_at)
                    values (?, ?, ?)
                    on conflict(key) do update set
                        value_json = excluded.value_json,
                        updated_at = excluded.updated_at
                    """,
                    (key, value_json, _utc_now()),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write {key!r}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with _connect(self.db_path) as conn:
                conn.execute("delete from kv where key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete {key!r}: {e}") from e
