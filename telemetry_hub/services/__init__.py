"""
Hub Services

- interval_tracker.py - Fleet-wide max reporting interval
- retention.py - Throttled, bounded cleanup
- command_queue.py - Per-node command queue
- ingestion.py - Probe uploads (/update)
- export.py - Collector downloads (/download)
- dispatcher.py - Operator commands (/command)
"""

from .command_queue import CommandQueue
from .dispatcher import CommandDispatcher, DispatchResult
from .export import ExportCursor, ExportedLog
from .ingestion import IngestionService
from .interval_tracker import IntervalTracker
from .retention import CleanupResult, RetentionManager

__all__ = [
    "CommandQueue",
    "CommandDispatcher",
    "DispatchResult",
    "ExportCursor",
    "ExportedLog",
    "IngestionService",
    "IntervalTracker",
    "CleanupResult",
    "RetentionManager",
]
