"""
Hub SQLite Database

Stores probe log messages and pending commands.

Every public method opens its own connection, so a request never carries
database state into the next one. Writes that must be all-or-nothing run
inside a single BEGIN IMMEDIATE transaction.
"""

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from ..common.exceptions import StorageError
from ..common.logging_setup import get_service_logger

logger = get_service_logger("storage.hub_db")

# Default database path
DEFAULT_DB_PATH = Path("data/telemetry_hub.db")

# SQLite parameter limit (safe for all builds)
SQLITE_MAX_PARAMS = 999


@dataclass
class StoredLog:
    """A log_messages row"""
    id: int
    timestamp: str
    node_id: int
    message: str


@dataclass
class StoredCommand:
    """A commands row; command is the serialized envelope"""
    id: int
    timestamp: str
    node_id: int
    command: str


class HubDatabase:
    """
    SQLite database for hub data.

    Features:
    - Append-only log table keyed by an AUTOINCREMENT id (ids never reused)
    - Per-node command queue with atomic drain
    - Bounded deletes for retention cleanup
    - Automatic table creation
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = Path(db_path or DEFAULT_DB_PATH)

        # Ensure directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Initialize database
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema"""
        with self._transaction("init_db") as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS log_messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    node_id INTEGER NOT NULL,
                    message TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS commands (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    node_id INTEGER NOT NULL,
                    command TEXT NOT NULL
                )
            """)

            # Export sorts and filters on timestamp; broadcast scans node_id
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_log_messages_timestamp
                ON log_messages(timestamp)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_log_messages_node_id
                ON log_messages(node_id)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_commands_node_id
                ON commands(node_id)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_commands_timestamp
                ON commands(timestamp)
            """)

        logger.debug(f"Database initialized: {self.db_path}")

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get database connection with context manager"""
        # timeout=10.0: Fail fast on lock contention instead of blocking forever
        # isolation_level=None: transactions are opened explicitly
        conn = sqlite3.connect(str(self.db_path), timeout=10.0, isolation_level=None)
        conn.row_factory = sqlite3.Row

        # WAL lets the collector read while probes write
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA busy_timeout=10000")

        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[sqlite3.Connection]:
        """
        Run statements in one write transaction.

        Rolls back on any error. sqlite3 errors are re-raised as StorageError.
        """
        try:
            with self._get_connection() as conn:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    yield conn
                    conn.execute("COMMIT")
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
        except sqlite3.Error as e:
            logger.error(f"SQLite error during {operation}: {e}")
            raise StorageError(str(e), operation=operation) from e

    @contextmanager
    def _read(self, operation: str) -> Iterator[sqlite3.Connection]:
        try:
            with self._get_connection() as conn:
                yield conn
        except sqlite3.Error as e:
            logger.error(f"SQLite error during {operation}: {e}")
            raise StorageError(str(e), operation=operation) from e

    # ============================================
    # LOG MESSAGES
    # ============================================

    def insert_log_messages(
        self,
        node_id: int,
        logs: Iterable[tuple[str, str]],
    ) -> int:
        """
        Insert (timestamp, message) pairs for one node.

        All rows land in one transaction; if any insert fails none are kept.

        Returns:
            Number of rows inserted
        """
        rows = [(timestamp, node_id, message) for timestamp, message in logs]
        if not rows:
            return 0

        with self._transaction("insert_log_messages") as conn:
            conn.executemany("""
                INSERT INTO log_messages (timestamp, node_id, message)
                VALUES (?, ?, ?)
            """, rows)

        return len(rows)

    def get_logs_for_download(
        self,
        last_id: int,
        cutoff: str,
        limit: int,
    ) -> list[StoredLog]:
        """
        Get logs newer than the cursor and older than the cutoff.

        Ordered by (timestamp, id) so the collector sees event-time order.
        """
        with self._read("get_logs_for_download") as conn:
            rows = conn.execute("""
                SELECT id, timestamp, node_id, message FROM log_messages
                WHERE id > ? AND timestamp < ?
                ORDER BY timestamp ASC, id ASC
                LIMIT ?
            """, (last_id, cutoff, limit)).fetchall()

        return [
            StoredLog(
                id=row["id"],
                timestamp=row["timestamp"],
                node_id=row["node_id"],
                message=row["message"],
            )
            for row in rows
        ]

    # ============================================
    # COMMANDS
    # ============================================

    def insert_commands(
        self,
        node_ids: Iterable[int],
        timestamp: str,
        command_json: str,
    ) -> int:
        """Insert the same command for each node id in one transaction"""
        rows = [(timestamp, node_id, command_json) for node_id in node_ids]
        if not rows:
            return 0

        with self._transaction("insert_commands") as conn:
            conn.executemany("""
                INSERT INTO commands (timestamp, node_id, command)
                VALUES (?, ?, ?)
            """, rows)

        return len(rows)

    def insert_command_for_known_nodes(
        self,
        timestamp: str,
        command_json: str,
    ) -> list[int]:
        """
        Insert one command row per known node.

        The node set is read inside the same transaction as the inserts, so
        the command reaches exactly the nodes present at enqueue time.

        Returns:
            Node ids the command was queued for
        """
        with self._transaction("insert_command_for_known_nodes") as conn:
            node_ids = [
                row["node_id"]
                for row in conn.execute(
                    "SELECT DISTINCT node_id FROM log_messages ORDER BY node_id"
                ).fetchall()
            ]
            conn.executemany("""
                INSERT INTO commands (timestamp, node_id, command)
                VALUES (?, ?, ?)
            """, [(timestamp, node_id, command_json) for node_id in node_ids])

        return node_ids

    def pop_commands(self, node_id: int) -> list[StoredCommand]:
        """
        Read and delete all pending commands for a node.

        Deletes exactly the ids that were read, inside the same transaction,
        so a command queued concurrently is never dropped unseen.
        """
        with self._transaction("pop_commands") as conn:
            rows = conn.execute("""
                SELECT id, timestamp, node_id, command FROM commands
                WHERE node_id = ?
                ORDER BY id
            """, (node_id,)).fetchall()

            ids = [row["id"] for row in rows]
            for chunk_start in range(0, len(ids), SQLITE_MAX_PARAMS):
                chunk = ids[chunk_start:chunk_start + SQLITE_MAX_PARAMS]
                placeholders = ",".join("?" for _ in chunk)
                conn.execute(
                    f"DELETE FROM commands WHERE id IN ({placeholders})",
                    chunk,
                )

        return [
            StoredCommand(
                id=row["id"],
                timestamp=row["timestamp"],
                node_id=row["node_id"],
                command=row["command"],
            )
            for row in rows
        ]

    # ============================================
    # RETENTION
    # ============================================

    def delete_expired(self, cutoff: str, batch_size: int) -> tuple[int, int]:
        """
        Delete at most batch_size logs and batch_size commands older than cutoff.

        Returns:
            (logs_deleted, commands_deleted)
        """
        with self._transaction("delete_expired") as conn:
            logs_deleted = conn.execute("""
                DELETE FROM log_messages WHERE id IN (
                    SELECT id FROM log_messages WHERE timestamp < ? LIMIT ?
                )
            """, (cutoff, batch_size)).rowcount

            commands_deleted = conn.execute("""
                DELETE FROM commands WHERE id IN (
                    SELECT id FROM commands WHERE timestamp < ? LIMIT ?
                )
            """, (cutoff, batch_size)).rowcount

        return logs_deleted, commands_deleted

    def get_stats(self) -> dict:
        """Get database statistics"""
        with self._read("get_stats") as conn:
            total_logs = conn.execute("SELECT COUNT(*) FROM log_messages").fetchone()[0]
            pending_commands = conn.execute("SELECT COUNT(*) FROM commands").fetchone()[0]

        return {
            "total_logs": total_logs,
            "pending_commands": pending_commands,
            "db_size_bytes": self.db_path.stat().st_size if self.db_path.exists() else 0,
        }
