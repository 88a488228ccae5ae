"""
Service Dependencies

FastAPI dependencies that build the stores and services for a request.

Nothing is shared between requests except the cached Settings: every
request gets its own store handles, which open their own connections.

Usage:
    @router.post("/update")
    def upload(ingestion: IngestionService = Depends(get_ingestion_service)):
        ...
"""

from datetime import timedelta

from fastapi import Depends

from ..config import Settings, get_settings
from ..services import (
    CommandDispatcher,
    CommandQueue,
    ExportCursor,
    IngestionService,
    IntervalTracker,
    RetentionManager,
)
from ..storage import HubDatabase, KeyValueStore


def get_database(settings: Settings = Depends(get_settings)) -> HubDatabase:
    return HubDatabase(settings.database_path)


def get_kv_store(settings: Settings = Depends(get_settings)) -> KeyValueStore:
    return KeyValueStore(settings.resolved_kv_store_path)


def get_interval_tracker(
    settings: Settings = Depends(get_settings),
    kv_store: KeyValueStore = Depends(get_kv_store),
) -> IntervalTracker:
    return IntervalTracker(kv_store, default_interval=settings.default_upload_interval)


def get_retention_manager(
    settings: Settings = Depends(get_settings),
    db: HubDatabase = Depends(get_database),
    kv_store: KeyValueStore = Depends(get_kv_store),
) -> RetentionManager:
    return RetentionManager(
        db,
        kv_store,
        cleanup_interval=timedelta(minutes=settings.cleanup_interval_minutes),
        retention_window=timedelta(minutes=settings.delete_timeout_minutes),
        batch_size=settings.cleanup_batch_size,
    )


def get_command_queue(db: HubDatabase = Depends(get_database)) -> CommandQueue:
    return CommandQueue(db)


def get_ingestion_service(
    db: HubDatabase = Depends(get_database),
    retention: RetentionManager = Depends(get_retention_manager),
    queue: CommandQueue = Depends(get_command_queue),
) -> IngestionService:
    return IngestionService(db, retention, queue)


def get_export_cursor(
    settings: Settings = Depends(get_settings),
    db: HubDatabase = Depends(get_database),
    tracker: IntervalTracker = Depends(get_interval_tracker),
    retention: RetentionManager = Depends(get_retention_manager),
) -> ExportCursor:
    return ExportCursor(
        db,
        tracker,
        retention,
        page_size=settings.max_log_items_per_download,
    )


def get_command_dispatcher(
    queue: CommandQueue = Depends(get_command_queue),
    tracker: IntervalTracker = Depends(get_interval_tracker),
) -> CommandDispatcher:
    return CommandDispatcher(queue, tracker)
