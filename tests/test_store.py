"""Tests for the in-memory store, the SQLite store and the store factory."""

import sqlite3
import threading
from dataclasses import replace
from datetime import date, timedelta
from pathlib import Path

import pytest

from deliveryboy.buckets import Bucket, BucketResolver
from deliveryboy.database import SQLiteEntryStore
from deliveryboy.models import FeedEntry
from deliveryboy.store import MemoryEntryStore, create_entry_store, stamp_entry
from tests.helpers import pacific


def entry(n: int) -> FeedEntry:
    return FeedEntry(f"https://example.com/{n}", f"Title {n}", f"Feed {n}")


@pytest.fixture(params=["memory", "sqlite"])
def store(request, temp_db: Path):
    """Each backend must honour the same contract."""
    if request.param == "memory":
        return MemoryEntryStore()
    return SQLiteEntryStore(str(temp_db))


class TestEntryStoreContract:
    """Behaviour shared by every backend."""

    def test_untouched_bucket_is_absent(self, store, daily_bucket: Bucket) -> None:
        assert store.read(daily_bucket) is None

    def test_ensure_records_an_empty_bucket(self, store, daily_bucket: Bucket) -> None:
        assert store.ensure(daily_bucket) == []
        assert store.read(daily_bucket) == []

    def test_append_creates_bucket_and_preserves_order(
        self, store, daily_bucket: Bucket
    ) -> None:
        for n in (3, 1, 2):
            store.append(daily_bucket, entry(n))

        assert store.read(daily_bucket) == [entry(3), entry(1), entry(2)]
        assert store.ensure(daily_bucket) == [entry(3), entry(1), entry(2)]

    def test_buckets_are_independent(
        self, store, resolver: BucketResolver, daily_bucket: Bucket
    ) -> None:
        tomorrow = resolver.daily_bucket(date(2026, 10, 19))
        store.append(daily_bucket, entry(1))
        store.append(tomorrow, entry(2))

        assert store.read(daily_bucket) == [entry(1)]
        assert store.read(tomorrow) == [entry(2)]

    def test_submission_time_is_kept(self, store, daily_bucket: Bucket) -> None:
        submitted = pacific(2026, 10, 18, 9, 15)
        store.append(daily_bucket, replace(entry(1), submitted_at=submitted))

        [stored] = store.read(daily_bucket)
        assert stored.submitted_at == submitted

    def test_query_range(self, store, daily_bucket: Bucket) -> None:
        for hour in (6, 8, 10):
            store.append(
                daily_bucket,
                replace(entry(hour), submitted_at=pacific(2026, 10, 18, hour)),
            )

        found = store.query_range(pacific(2026, 10, 18, 7), pacific(2026, 10, 18, 10))
        assert found == [entry(8)]

    def test_entry_outside_window_rejected(self, store, daily_bucket: Bucket) -> None:
        late = replace(entry(1), submitted_at=daily_bucket.ends_at)
        with pytest.raises(ValueError, match="outside bucket"):
            store.append(daily_bucket, late)
        assert store.read(daily_bucket) is None


class TestMemoryEntryStore:
    """Memory-specific behaviour."""

    def test_returned_lists_are_snapshots(self, daily_bucket: Bucket) -> None:
        store = MemoryEntryStore()
        snapshot = store.ensure(daily_bucket)
        snapshot.append(entry(1))

        assert store.read(daily_bucket) == []

    def test_concurrent_first_writes_are_not_lost(self, daily_bucket: Bucket) -> None:
        store = MemoryEntryStore()
        barrier = threading.Barrier(20, timeout=5)

        def write(n: int) -> None:
            barrier.wait()
            store.append(daily_bucket, entry(n))

        threads = [threading.Thread(target=write, args=(n,)) for n in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stored = store.read(daily_bucket)
        assert len(stored) == 20
        assert sorted(e.link for e in stored) == sorted(entry(n).link for n in range(20))


class TestSQLiteEntryStore:
    """SQLite-specific behaviour."""

    def test_schema_created(self, temp_db: Path) -> None:
        SQLiteEntryStore(str(temp_db))

        conn = sqlite3.connect(str(temp_db))
        tables = {
            row[0]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        conn.close()
        assert {"digest_bucket", "feed_entry"} <= tables

    def test_entries_survive_reopen(self, temp_db: Path, daily_bucket: Bucket) -> None:
        SQLiteEntryStore(str(temp_db)).append(daily_bucket, entry(1))

        reopened = SQLiteEntryStore(str(temp_db))
        assert reopened.read(daily_bucket) == [entry(1)]

    def test_ensure_is_idempotent(self, temp_db: Path, daily_bucket: Bucket) -> None:
        store = SQLiteEntryStore(str(temp_db))
        store.ensure(daily_bucket)
        store.ensure(daily_bucket)

        conn = sqlite3.connect(str(temp_db))
        count = conn.execute("SELECT COUNT(*) FROM digest_bucket").fetchone()[0]
        conn.close()
        assert count == 1


def test_stamp_entry_uses_window_start_for_past_buckets(daily_bucket: Bucket) -> None:
    stamped = stamp_entry(daily_bucket, entry(1))
    assert daily_bucket.contains(stamped.submitted_at)


def test_stamp_entry_keeps_valid_timestamp(daily_bucket: Bucket) -> None:
    submitted = daily_bucket.ends_at - timedelta(seconds=1)
    stamped = stamp_entry(daily_bucket, replace(entry(1), submitted_at=submitted))
    assert stamped.submitted_at == submitted


class TestCreateEntryStore:
    """Tests for the storage factory."""

    def test_no_url_is_memory(self) -> None:
        assert isinstance(create_entry_store(None), MemoryEntryStore)
        assert isinstance(create_entry_store(""), MemoryEntryStore)

    def test_sqlite_url(self, temp_db: Path) -> None:
        store = create_entry_store(f"sqlite:///{temp_db}")
        assert isinstance(store, SQLiteEntryStore)
        assert store.db_path == temp_db

    def test_bare_path(self, temp_db: Path) -> None:
        store = create_entry_store(str(temp_db))
        assert isinstance(store, SQLiteEntryStore)
        assert store.db_path == temp_db
