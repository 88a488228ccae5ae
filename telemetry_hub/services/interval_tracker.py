"""
Interval Tracker

Fleet-wide maximum reporting interval, persisted in the key-value store.
The export safety window is sized from it.
"""

from datetime import timedelta

from ..common.exceptions import ValidationError
from ..common.logging_setup import get_service_logger
from ..storage.kv_store import KeyValueStore

logger = get_service_logger("services.interval_tracker")

MAX_UPLOAD_INTERVAL_KEY = "max_upload_interval"

# Records newer than interval * factor are not exported yet
SAFETY_FACTOR = 1.1


class IntervalTracker:
    """Reads and moves the tracked maximum upload interval (seconds)"""

    def __init__(self, kv_store: KeyValueStore, default_interval: int = 300):
        self.kv_store = kv_store
        self.default_interval = default_interval

    def _decode(self, raw: str | None) -> int:
        if raw is None:
            return self.default_interval
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Ignoring unparsable {MAX_UPLOAD_INTERVAL_KEY}: {raw!r}")
            return self.default_interval

    @staticmethod
    def _check(seconds: int) -> None:
        if seconds <= 0:
            raise ValidationError("upload interval must be positive", field="interval")

    def current(self) -> int:
        """Tracked interval, or the configured default if none stored"""
        return self._decode(self.kv_store.read(MAX_UPLOAD_INTERVAL_KEY))

    def overwrite(self, seconds: int) -> int:
        """Set the interval unconditionally (fleet-wide cadence change)"""
        self._check(seconds)
        self.kv_store.write(MAX_UPLOAD_INTERVAL_KEY, str(seconds))
        logger.info(f"Max upload interval set to {seconds}s")
        return seconds

    def raise_to(self, seconds: int) -> bool:
        """
        Raise the interval to seconds if that is larger; never lower it.

        Returns:
            True if the stored value changed
        """
        self._check(seconds)
        raised = False

        def transform(raw: str | None) -> str | None:
            nonlocal raised
            if seconds > self._decode(raw):
                raised = True
                return str(seconds)
            return None

        self.kv_store.update(MAX_UPLOAD_INTERVAL_KEY, transform)
        if raised:
            logger.info(f"Max upload interval raised to {seconds}s")
        return raised

    def safety_window(self) -> timedelta:
        """interval * 1.1, truncated to whole seconds"""
        return timedelta(seconds=int(self.current() * SAFETY_FACTOR))
