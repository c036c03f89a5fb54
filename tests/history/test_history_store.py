"""Tests for snapshot persistence and retention."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from specter.history.store import HistoryStore, parse_filename_timestamp, snapshot_filename


class TestFilenames:
    def test_colons_replaced_and_fraction_dropped(self, make_snapshot, now):
        assert snapshot_filename(make_snapshot(now)) == "2024-06-01T12-00-00.json"

    def test_parse_round_trip(self, make_snapshot, now):
        name = snapshot_filename(make_snapshot(now))
        assert parse_filename_timestamp(name) == now

    def test_unrelated_name(self):
        assert parse_filename_timestamp("notes.json") is None


class TestHistoryStore:
    def test_empty(self, tmp_path):
        store = HistoryStore()
        assert store.load_all(tmp_path) == []
        assert store.latest(tmp_path) is None

    def test_round_trip(self, tmp_path, make_snapshot, now):
        store = HistoryStore()
        snapshot = make_snapshot(now, health=73)
        path = store.save(tmp_path, snapshot)
        assert path.parent == tmp_path / ".specter" / "history"
        assert store.load_all(tmp_path) == [snapshot]
        assert store.by_id(tmp_path, snapshot.id) == snapshot

    def test_newest_first(self, tmp_path, make_snapshot, now):
        store = HistoryStore()
        for days in (3, 1, 2):
            store.save(tmp_path, make_snapshot(now - timedelta(days=days), health=days))
        assert [s.metrics.health_score for s in store.load_all(tmp_path)] == [1, 2, 3]

    def test_same_second_overwrites(self, tmp_path, make_snapshot, now):
        store = HistoryStore()
        store.save(tmp_path, make_snapshot(now, health=50))
        store.save(tmp_path, make_snapshot(now + timedelta(milliseconds=400), health=60))
        snapshots = store.load_all(tmp_path)
        assert len(snapshots) == 1
        assert snapshots[0].metrics.health_score == 60

    def test_prune_keeps_most_recent(self, tmp_path, make_snapshot, now):
        store = HistoryStore(max_snapshots=3)
        for hours in range(5):
            store.save(tmp_path, make_snapshot(now + timedelta(hours=hours), health=hours))
        kept = store.load_all(tmp_path)
        assert [s.metrics.health_score for s in kept] == [4, 3, 2]
        assert store.count(tmp_path) == 3

    def test_corrupt_files_skipped(self, tmp_path, make_snapshot, now):
        store = HistoryStore()
        store.save(tmp_path, make_snapshot(now))
        history = store.history_dir(tmp_path)
        (history / "2024-01-01T00-00-00.json").write_text("{broken")
        (history / "2024-01-02T00-00-00.json").write_text('{"id": "x"}')
        assert len(store.load_all(tmp_path)) == 1

    def test_non_string_timestamp_skipped(self, tmp_path, make_snapshot, now):
        store = HistoryStore()
        store.save(tmp_path, make_snapshot(now))
        bad = store.history_dir(tmp_path) / "2024-01-01T00-00-00.json"
        bad.write_text('{"timestamp": 12345}')
        assert len(store.load_all(tmp_path)) == 1
        assert store.latest(tmp_path).timestamp == make_snapshot(now).timestamp

    def test_prune_orders_by_snapshot_timestamp_not_filename(self, tmp_path, make_snapshot):
        store = HistoryStore(max_snapshots=2)
        base = datetime(2024, 1, 15, 7, 0, tzinfo=timezone.utc)
        offset = replace(
            make_snapshot(base, health=1),
            id="2024-01-15T12:00:00+05:00",
            timestamp="2024-01-15T12:00:00+05:00",
        )
        store.save(tmp_path, offset)
        store.save(tmp_path, make_snapshot(base + timedelta(hours=1), health=2))
        store.save(tmp_path, make_snapshot(base + timedelta(hours=2), health=3))
        assert [s.metrics.health_score for s in store.load_all(tmp_path)] == [3, 2]

    def test_prune_falls_back_to_filename_for_unreadable_files(self, tmp_path, make_snapshot, now):
        store = HistoryStore(max_snapshots=1)
        history = store.history_dir(tmp_path)
        history.mkdir(parents=True)
        stale = history / "2020-01-01T00-00-00.json"
        stale.write_text("{broken")
        store.save(tmp_path, make_snapshot(now))
        assert not stale.exists()
        assert store.count(tmp_path) == 1

    def test_load_in_range(self, tmp_path, make_snapshot, now):
        store = HistoryStore()
        for days in (1, 5, 10):
            store.save(tmp_path, make_snapshot(now - timedelta(days=days), health=days))
        in_range = store.load_in_range(tmp_path, now - timedelta(days=6), now)
        assert [s.metrics.health_score for s in in_range] == [1, 5]

    def test_clear(self, tmp_path, make_snapshot, now):
        store = HistoryStore()
        store.save(tmp_path, make_snapshot(now))
        store.clear(tmp_path)
        assert store.load_all(tmp_path) == []

    def test_invalid_retention(self):
        with pytest.raises(ValueError):
            HistoryStore(max_snapshots=0)
