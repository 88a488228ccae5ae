"""
Retention Manager

Throttled cleanup of expired log messages and commands.

A pass runs at most once per cleanup interval no matter how many requests
arrive, and each pass deletes a bounded batch per table. A large backlog
therefore drains over several passes instead of holding the write lock for
one long delete.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..common.logging_setup import get_service_logger
from ..common.timestamp import format_timestamp, parse_timestamp, utc_now
from ..storage.hub_db import HubDatabase
from ..storage.kv_store import KeyValueStore

logger = get_service_logger("services.retention")

LAST_CLEANUP_KEY = "last_cleanup_time"


@dataclass
class CleanupResult:
    """Outcome of one cleanup pass"""
    cutoff: str
    logs_deleted: int
    commands_deleted: int

    @property
    def total_deleted(self) -> int:
        return self.logs_deleted + self.commands_deleted


class RetentionManager:
    """Decides when to clean up and runs bounded cleanup passes"""

    def __init__(
        self,
        db: HubDatabase,
        kv_store: KeyValueStore,
        cleanup_interval: timedelta = timedelta(minutes=5),
        retention_window: timedelta = timedelta(minutes=30),
        batch_size: int = 10000,
    ):
        self.db = db
        self.kv_store = kv_store
        self.cleanup_interval = cleanup_interval
        self.retention_window = retention_window
        self.batch_size = batch_size

    def last_run(self) -> datetime | None:
        """Time of the last recorded pass, None if never or unreadable"""
        raw = self.kv_store.read(LAST_CLEANUP_KEY)
        if raw is None:
            return None
        try:
            return parse_timestamp(raw)
        except ValueError:
            logger.warning(f"Ignoring unparsable {LAST_CLEANUP_KEY}: {raw!r}")
            return None

    def is_due(self, now: datetime | None = None) -> bool:
        now = now or utc_now()
        last = self.last_run()
        return last is None or now - last >= self.cleanup_interval

    def run_pass(self, now: datetime | None = None) -> CleanupResult:
        """Delete one bounded batch of expired rows per table"""
        now = now or utc_now()
        cutoff = format_timestamp(now - self.retention_window)
        logger.debug(f"Cleaning up data older than {cutoff}")

        logs_deleted, commands_deleted = self.db.delete_expired(cutoff, self.batch_size)
        result = CleanupResult(
            cutoff=cutoff,
            logs_deleted=logs_deleted,
            commands_deleted=commands_deleted,
        )

        if result.total_deleted > 0:
            stats = self.db.get_stats()
            logger.info(
                f"Cleaned up {logs_deleted} logs, {commands_deleted} commands "
                f"older than {cutoff}",
                extra={
                    "remaining_logs": stats["total_logs"],
                    "remaining_commands": stats["pending_commands"],
                },
            )
        return result

    def maybe_run(self, now: datetime | None = None) -> CleanupResult | None:
        """
        Run a pass if the cleanup interval has elapsed since the last one.

        Two concurrent requests may both see the interval as elapsed and both
        run a pass; deletes are idempotent so that only costs extra work.

        Returns:
            The pass result, or None if throttled
        """
        now = now or utc_now()
        if not self.is_due(now):
            return None

        result = self.run_pass(now)
        self.kv_store.write(LAST_CLEANUP_KEY, format_timestamp(now))
        return result
