"""SQLite-backed key-value cache holding JSON-encoded local state."""

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, List, Optional, Union

logger = logging.getLogger(__name__)

KEY_VOCAB = "vocab_forge_data"
KEY_APPS = "vocab_forge_apps"
KEY_SESSION = "vocab_forge_session"
KEY_CONTEXT = "vocab_forge_last_context"
KEY_ID_SEQ = "vocab_forge_id_seq"


class LocalCache:
    """Owns the SQLite connection and the ``kv_store`` table.

    Values are stored JSON-encoded under stable key names. The connection is
    shared with worker threads, so every statement runs under one lock.
    """

    def __init__(self, db_path: Union[Path, str]) -> None:
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.connection = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.connection.row_factory = sqlite3.Row
        self._lock = threading.Lock()

    def ensure_schema(self) -> None:
        """Create the key-value table if it does not exist."""
        with self._lock:
            self.connection.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                );
                """
            )
            self.connection.commit()

    def get_json(self, key: str, default: Any = None) -> Any:
        """Return the decoded value for ``key``, or ``default`` if absent or corrupt."""
        with self._lock:
            cur = self.connection.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = cur.fetchone()
        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            logger.warning("Discarding corrupt cache entry %s: %s", key, e)
            return default

    def put_json(self, key: str, value: Any) -> None:
        encoded = json.dumps(value, ensure_ascii=False)
        with self._lock:
            self.connection.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, encoded),
            )
            self.connection.commit()

    def delete(self, key: str) -> None:
        with self._lock:
            self.connection.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            self.connection.commit()

    def keys(self) -> List[str]:
        with self._lock:
            cur = self.connection.execute("SELECT key FROM kv_store ORDER BY key")
            return [row["key"] for row in cur.fetchall()]

    def get_int(self, key: str, default: int = 0) -> int:
        value: Optional[Any] = self.get_json(key, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def close(self) -> None:
        with self._lock:
            self.connection.close()
