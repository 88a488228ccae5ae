"""
Pytest fixtures for telemetry hub tests.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from telemetry_hub.config import Settings, get_settings
from telemetry_hub.services import (
    CommandDispatcher,
    CommandQueue,
    ExportCursor,
    IngestionService,
    IntervalTracker,
    RetentionManager,
)
from telemetry_hub.storage import HubDatabase, KeyValueStore

PROBE_KEY = "probe-secret-key-123456789012"
COLLECTOR_KEY = "collector-secret-key-123456789"
CLI_KEY = "cli-secret-key-12345678901234"

# Fixed reference time for service-level tests
NOW = datetime(2025, 10, 24, 12, 0, 0, tzinfo=timezone.utc)


def iso(ts: datetime) -> str:
    """Probe-style timestamp: whole seconds, Z suffix"""
    return ts.strftime("%Y-%m-%dT%H:%M:%SZ")


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a fresh database under tmp_path."""
    return Settings(
        _env_file=None,
        probe_api_key=PROBE_KEY,
        log_collector_api_key=COLLECTOR_KEY,
        cli_api_key=CLI_KEY,
        database_path=tmp_path / "hub.db",
        default_upload_interval=60,
        # Long retention so API tests using recent timestamps keep their rows
        delete_timeout_minutes=60 * 24 * 365,
        loglevel="debug",
        log_format="text",
    )


@pytest.fixture
def db(tmp_path):
    return HubDatabase(tmp_path / "hub.db")


@pytest.fixture
def kv_store(tmp_path):
    return KeyValueStore(tmp_path / "hub.db")


@pytest.fixture
def tracker(kv_store):
    return IntervalTracker(kv_store, default_interval=300)


@pytest.fixture
def retention(db, kv_store):
    return RetentionManager(
        db,
        kv_store,
        cleanup_interval=timedelta(minutes=5),
        retention_window=timedelta(minutes=30),
        batch_size=10000,
    )


@pytest.fixture
def queue(db):
    return CommandQueue(db)


@pytest.fixture
def ingestion(db, retention, queue):
    return IngestionService(db, retention, queue)


@pytest.fixture
def export_cursor(db, tracker, retention):
    return ExportCursor(db, tracker, retention)


@pytest.fixture
def dispatcher(queue, tracker):
    return CommandDispatcher(queue, tracker)


@pytest.fixture
def client(settings):
    """TestClient wired to the tmp_path settings."""
    from telemetry_hub.main import app

    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
