"""
Tests for IngestionService and CommandQueue.
"""

from datetime import timedelta

import pytest

from telemetry_hub.common.commands import MAX_ID, CommandEnvelope
from telemetry_hub.common.exceptions import StorageError, ValidationError
from telemetry_hub.common.timestamp import utc_now

from .conftest import iso


def recent(minutes_ago=1):
    return iso(utc_now() - timedelta(minutes=minutes_ago))


class TestCommandQueue:

    def test_drain_returns_fifo_then_empty(self, queue):
        queue.enqueue(7, CommandEnvelope(command="first"))
        queue.enqueue(7, CommandEnvelope(command="second", parameters={"x": 1}))

        drained = queue.drain(7)

        assert [e.command for e in drained] == ["first", "second"]
        assert drained[1].parameters == {"x": 1}
        assert queue.drain(7) == []

    def test_drain_is_per_node(self, queue):
        queue.enqueue(1, CommandEnvelope(command="for-one"))
        queue.enqueue(2, CommandEnvelope(command="for-two"))

        assert [e.command for e in queue.drain(2)] == ["for-two"]
        assert [e.command for e in queue.drain(1)] == ["for-one"]

    def test_broadcast_reaches_known_nodes_only(self, queue, db):
        db.insert_log_messages(3, [(recent(), "x")])
        db.insert_log_messages(5, [(recent(), "y")])

        reached = queue.broadcast_enqueue(CommandEnvelope(command="reboot"))

        assert reached == [3, 5]
        assert [e.command for e in queue.drain(3)] == ["reboot"]
        assert [e.command for e in queue.drain(5)] == ["reboot"]
        assert queue.drain(4) == []

    def test_undecodable_row_is_dropped(self, queue, db):
        db.insert_commands([7], "2025-10-24T12:00:00.000000Z", "{broken")
        queue.enqueue(7, CommandEnvelope(command="ok"))

        assert [e.command for e in queue.drain(7)] == ["ok"]
        assert db.get_stats()["pending_commands"] == 0


class TestIngestionService:

    def test_upload_stores_logs_verbatim(self, ingestion, db):
        sent = (utc_now() - timedelta(minutes=1)).isoformat(timespec="seconds")
        assert sent.endswith("+00:00")

        ingestion.upload(7, [(sent, "hello")])

        [row] = db.get_logs_for_download(0, "9999-12-31T00:00:00.000000Z", 10)
        assert row.timestamp == sent
        assert row.node_id == 7
        assert row.message == "hello"

    def test_upload_without_commands_returns_empty(self, ingestion):
        assert ingestion.upload(7, [(recent(), "hello")]) == []

    def test_heartbeat_returns_pending_commands_once(self, ingestion, queue):
        queue.enqueue(7, CommandEnvelope(command="ping"))

        assert [e.command for e in ingestion.upload(7, [])] == ["ping"]
        assert ingestion.upload(7, []) == []

    def test_upload_runs_retention(self, ingestion, db, kv_store):
        db.insert_log_messages(1, [(recent(minutes_ago=120), "expired")])

        ingestion.upload(7, [(recent(), "fresh")])

        assert db.get_stats()["total_logs"] == 1
        assert kv_store.read("last_cleanup_time") is not None

    def test_failed_insert_keeps_commands_queued(self, ingestion, queue, db):
        queue.enqueue(7, CommandEnvelope(command="ping"))

        with pytest.raises(StorageError):
            ingestion.upload(7, [(recent(), "ok"), (recent(), None)])

        assert db.get_stats()["total_logs"] == 0
        assert [e.command for e in queue.drain(7)] == ["ping"]

    @pytest.mark.parametrize("node_id", [-1, MAX_ID + 1, 2**64])
    def test_out_of_range_node_rejected(self, ingestion, node_id):
        with pytest.raises(ValidationError):
            ingestion.upload(node_id, [(recent(), "hello")])
