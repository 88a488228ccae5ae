"""
Export Cursor

Serves the collector a resumable page of logs.

Probes upload on their own schedules, so a record inserted later (larger
id) can carry an older timestamp than records already exported. Only logs
older than now - max_interval * 1.1 are served; by the time a record is
that old, every slower node has had its chance to upload anything older.
Export latency is roughly one reporting interval.
"""

from dataclasses import asdict, dataclass
from datetime import datetime

from ..common.commands import MAX_ID
from ..common.exceptions import ValidationError
from ..common.logging_setup import get_service_logger
from ..common.timestamp import EARLIEST_TIMESTAMP, format_timestamp, utc_now
from ..storage.hub_db import HubDatabase
from .interval_tracker import IntervalTracker
from .retention import RetentionManager

logger = get_service_logger("services.export")

MAX_LOG_ITEMS_PER_DOWNLOAD = 10000


@dataclass
class ExportedLog:
    """One log line as the collector sees it"""
    item_id: int
    timestamp: str
    node_id: int
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


class ExportCursor:
    """Collector download handler"""

    def __init__(
        self,
        db: HubDatabase,
        tracker: IntervalTracker,
        retention: RetentionManager,
        page_size: int = MAX_LOG_ITEMS_PER_DOWNLOAD,
    ):
        self.db = db
        self.tracker = tracker
        self.retention = retention
        self.page_size = page_size

    def cutoff(self, now: datetime | None = None) -> str:
        """
        Newest timestamp (exclusive) currently eligible for export.

        A window reaching back past year 1 clamps to the earliest
        timestamp, so nothing is exported until the interval comes down.
        """
        now = now or utc_now()
        try:
            return format_timestamp(now - self.tracker.safety_window())
        except OverflowError:
            logger.warning(
                f"Safety window for interval {self.tracker.current()}s is out of "
                "range, holding back all logs"
            )
            return EARLIEST_TIMESTAMP

    def export(
        self,
        last_seen_id: int,
        now: datetime | None = None,
    ) -> list[ExportedLog]:
        """
        Logs with id > last_seen_id that are older than the safety cutoff.

        Args:
            last_seen_id: Largest item_id the collector has already stored
            now: Reference time, defaults to the current time

        Returns:
            At most page_size logs ordered by (timestamp, id)
        """
        if not 0 <= last_seen_id <= MAX_ID:
            raise ValidationError(
                f"last_log_message_id must be between 0 and {MAX_ID}",
                field="last_log_message_id",
            )

        now = now or utc_now()
        cutoff = self.cutoff(now)
        logger.debug(
            f"Fetching logs for download: last_id={last_seen_id}, "
            f"cutoff_time={cutoff}, current_time={format_timestamp(now)}"
        )

        logs = [
            ExportedLog(
                item_id=row.id,
                timestamp=row.timestamp,
                node_id=row.node_id,
                message=row.message,
            )
            for row in self.db.get_logs_for_download(last_seen_id, cutoff, self.page_size)
        ]
        logger.debug(f"Fetched {len(logs)} logs for download.")

        self.retention.maybe_run(now)
        return logs
