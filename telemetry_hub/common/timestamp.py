"""
Timestamp Utilities

Log and command timestamps are stored as RFC 3339 text and compared as
text in SQL, so every server-side timestamp is rendered in one canonical
UTC form: 2025-10-24T12:00:00.000000Z.

Probe timestamps are stored verbatim. They compare correctly against the
canonical form as long as probes also send UTC ("Z" or "+00:00").

Example:
    cutoff "2025-10-24T12:00:00.200000Z"
    "2025-10-24T12:00:00.1Z"  < cutoff  -> eligible
    "2025-10-24T12:00:00Z"    > cutoff  -> deferred (conservative by <1s)
"""

from datetime import datetime, timezone


CANONICAL_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

# Sorts before every stored timestamp
EARLIEST_TIMESTAMP = "0001-01-01T00:00:00.000000Z"


def utc_now() -> datetime:
    """Current time, timezone-aware UTC"""
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """
    Render a datetime in the canonical stored form.

    Naive datetimes are taken to be UTC.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime(CANONICAL_FORMAT)


def parse_timestamp(ts_iso: str) -> datetime:
    """
    Parse an ISO/RFC 3339 timestamp into an aware UTC datetime.

    Raises:
        ValueError: Not a valid ISO timestamp
    """
    ts_clean = ts_iso.strip().replace("Z", "+00:00")
    dt = datetime.fromisoformat(ts_clean)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
