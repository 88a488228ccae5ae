"""
Key-Value Store

Small persisted key-value namespace for hub-wide state:
- last_cleanup_time - when the last retention pass ran
- max_upload_interval - tracked maximum reporting interval (seconds)

Values are stored as text in a SQLite table, so the namespace can live in
the same file as the log database or in its own file.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from ..common.exceptions import StorageError
from ..common.logging_setup import get_service_logger
from ..common.timestamp import format_timestamp, utc_now

logger = get_service_logger("storage.kv_store")


class KeyValueStore:
    """
    SQLite-backed key-value store.

    read/write mirror a plain dict; update() runs a read-modify-write in one
    immediate transaction for callers that must not race each other.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with self._connect("init_kv") as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

    @contextmanager
    def _connect(self, operation: str) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=10.0, isolation_level=None)
            try:
                conn.execute("PRAGMA busy_timeout=10000")
                yield conn
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Key-value store error during {operation}: {e}")
            raise StorageError(str(e), operation=operation) from e

    def read(self, key: str) -> str | None:
        """Get the value for key, or None if unset"""
        with self._connect("kv_read") as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def write(self, key: str, value: str) -> None:
        """Set key to value, replacing any previous value"""
        with self._connect("kv_write") as conn:
            conn.execute("""
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """, (key, value, format_timestamp(utc_now())))

    def update(
        self,
        key: str,
        transform: Callable[[str | None], str | None],
    ) -> str | None:
        """
        Atomically replace a value.

        transform receives the current value (None if unset) and returns the
        new value, or None to leave the key untouched.

        Returns:
            The value stored after the call
        """
        with self._connect("kv_update") as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
                current = row[0] if row else None
                new_value = transform(current)
                if new_value is not None:
                    conn.execute("""
                        INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                        ON CONFLICT(key) DO UPDATE SET
                            value = excluded.value,
                            updated_at = excluded.updated_at
                    """, (key, new_value, format_timestamp(utc_now())))
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise

        return new_value if new_value is not None else current
