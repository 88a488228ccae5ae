"""
Tests for the key-value store and IntervalTracker.
"""

from datetime import timedelta

import pytest

from telemetry_hub.common.exceptions import ValidationError
from telemetry_hub.services.interval_tracker import MAX_UPLOAD_INTERVAL_KEY
from telemetry_hub.storage import KeyValueStore


class TestKeyValueStore:

    def test_unset_key_reads_none(self, kv_store):
        assert kv_store.read("missing") is None

    def test_write_then_read(self, kv_store):
        kv_store.write("k", "v1")
        kv_store.write("k", "v2")

        assert kv_store.read("k") == "v2"

    def test_update_sees_current_value(self, kv_store):
        kv_store.write("k", "1")

        result = kv_store.update("k", lambda raw: str(int(raw) + 1))

        assert result == "2"
        assert kv_store.read("k") == "2"

    def test_update_returning_none_leaves_value(self, kv_store):
        kv_store.write("k", "1")

        assert kv_store.update("k", lambda raw: None) == "1"
        assert kv_store.read("k") == "1"

    def test_update_rolls_back_on_error(self, kv_store):
        kv_store.write("k", "1")

        def boom(raw):
            raise RuntimeError("transform failed")

        with pytest.raises(RuntimeError):
            kv_store.update("k", boom)
        assert kv_store.read("k") == "1"

    def test_separate_file(self, tmp_path):
        store = KeyValueStore(tmp_path / "state" / "kv.db")
        store.write("k", "v")

        assert KeyValueStore(tmp_path / "state" / "kv.db").read("k") == "v"


class TestIntervalTracker:

    def test_default_when_unset(self, tracker):
        assert tracker.current() == 300

    def test_unparsable_value_falls_back_to_default(self, tracker, kv_store):
        kv_store.write(MAX_UPLOAD_INTERVAL_KEY, "soon")

        assert tracker.current() == 300

    def test_overwrite_can_lower(self, tracker):
        tracker.overwrite(900)
        tracker.overwrite(60)

        assert tracker.current() == 60

    def test_raise_to_only_raises(self, tracker):
        assert tracker.raise_to(600) is True
        assert tracker.current() == 600

        assert tracker.raise_to(120) is False
        assert tracker.current() == 600

        assert tracker.raise_to(600) is False

    def test_raise_to_compares_against_default(self, tracker, kv_store):
        assert tracker.raise_to(200) is False
        assert kv_store.read(MAX_UPLOAD_INTERVAL_KEY) is None
        assert tracker.current() == 300

    @pytest.mark.parametrize("seconds", [0, -5])
    def test_non_positive_rejected(self, tracker, seconds):
        with pytest.raises(ValidationError):
            tracker.overwrite(seconds)
        with pytest.raises(ValidationError):
            tracker.raise_to(seconds)

    def test_safety_window(self, tracker):
        assert tracker.safety_window() == timedelta(seconds=330)

        tracker.overwrite(605)
        assert tracker.safety_window() == timedelta(seconds=665)
