"""SQLite-backed entry store."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, List, Optional

from .buckets import Bucket
from .models import FeedEntry
from .store import stamp_entry
from .utils import from_utc_iso, to_utc_iso

logger = logging.getLogger(__name__)


class SQLiteEntryStore:
    """Persists feed entries and touched buckets in SQLite.

    Entries are read back by submission-time range; the ``digest_bucket``
    table only records which buckets exist, so a never-touched bucket can be
    told apart from an empty one.
    """

    placeholder = "?"

    schema = (
        """
        CREATE TABLE IF NOT EXISTS digest_bucket (
            bucket_key TEXT PRIMARY KEY,
            period TEXT NOT NULL,
            starts_at TEXT NOT NULL,  -- UTC ISO-8601, inclusive
            ends_at TEXT NOT NULL,    -- UTC ISO-8601, exclusive
            created_at TEXT NOT NULL
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS feed_entry (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            bucket_key TEXT NOT NULL,
            submitted_at TEXT NOT NULL,
            link TEXT NOT NULL,
            title TEXT NOT NULL,
            feed TEXT NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_feed_entry_submitted ON feed_entry(submitted_at)",
    )

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.ensure_schema()

    def get_connection(self) -> Any:
        """Get database connection with proper settings."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        """One transaction: commit on success, roll back on error, always close."""
        conn = self.get_connection()
        try:
            with conn:
                yield conn.cursor()
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        """Create tables and indexes if missing."""
        with self._cursor() as cursor:
            for statement in self.schema:
                cursor.execute(statement)
        logger.info("Entry store schema ensured")

    def _touch_bucket(self, cursor: Any, bucket: Bucket) -> None:
        p = self.placeholder
        cursor.execute(
            f"""
            INSERT INTO digest_bucket (bucket_key, period, starts_at, ends_at, created_at)
            VALUES ({p}, {p}, {p}, {p}, {p})
            ON CONFLICT (bucket_key) DO NOTHING
            """,
            (
                bucket.key,
                bucket.period,
                to_utc_iso(bucket.starts_at),
                to_utc_iso(bucket.ends_at),
                to_utc_iso(datetime.now(timezone.utc)),
            ),
        )

    def _bucket_exists(self, cursor: Any, bucket: Bucket) -> bool:
        cursor.execute(
            f"SELECT 1 FROM digest_bucket WHERE bucket_key = {self.placeholder}",
            (bucket.key,),
        )
        return cursor.fetchone() is not None

    def _select_range(
        self, cursor: Any, start: datetime, end: datetime
    ) -> List[FeedEntry]:
        p = self.placeholder
        cursor.execute(
            f"""
            SELECT link, title, feed, submitted_at
            FROM feed_entry
            WHERE submitted_at >= {p} AND submitted_at < {p}
            ORDER BY id
            """,
            (to_utc_iso(start), to_utc_iso(end)),
        )
        return [
            FeedEntry(
                link=row["link"],
                title=row["title"],
                feed=row["feed"],
                submitted_at=from_utc_iso(row["submitted_at"]),
            )
            for row in cursor.fetchall()
        ]

    def append(self, bucket: Bucket, entry: FeedEntry) -> None:
        entry = stamp_entry(bucket, entry)
        p = self.placeholder
        with self._cursor() as cursor:
            self._touch_bucket(cursor, bucket)
            cursor.execute(
                f"""
                INSERT INTO feed_entry (bucket_key, submitted_at, link, title, feed)
                VALUES ({p}, {p}, {p}, {p}, {p})
                """,
                (
                    bucket.key,
                    to_utc_iso(entry.submitted_at),
                    entry.link,
                    entry.title,
                    entry.feed,
                ),
            )

    def read(self, bucket: Bucket) -> Optional[List[FeedEntry]]:
        with self._cursor() as cursor:
            if not self._bucket_exists(cursor, bucket):
                return None
            return self._select_range(cursor, bucket.starts_at, bucket.ends_at)

    def ensure(self, bucket: Bucket) -> List[FeedEntry]:
        with self._cursor() as cursor:
            self._touch_bucket(cursor, bucket)
            return self._select_range(cursor, bucket.starts_at, bucket.ends_at)

    def query_range(self, start: datetime, end: datetime) -> List[FeedEntry]:
        with self._cursor() as cursor:
            return self._select_range(cursor, start, end)
