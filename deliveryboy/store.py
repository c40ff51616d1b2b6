"""Entry storage: the capability interface and the in-memory backend."""

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from .buckets import Bucket
from .models import FeedEntry

logger = logging.getLogger(__name__)


class EntryStore(Protocol):
    """Storage capability shared by every backend."""

    def append(self, bucket: Bucket, entry: FeedEntry) -> None:
        """Add ``entry`` to the end of the bucket, creating the bucket if absent."""
        ...

    def read(self, bucket: Bucket) -> Optional[List[FeedEntry]]:
        """Entries of the bucket, or None if the bucket was never touched."""
        ...

    def ensure(self, bucket: Bucket) -> List[FeedEntry]:
        """Entries of the bucket, recording it as empty if it was never touched."""
        ...

    def query_range(self, start: datetime, end: datetime) -> List[FeedEntry]:
        """Entries submitted in ``[start, end)``, in arrival order."""
        ...


def stamp_entry(bucket: Bucket, entry: FeedEntry) -> FeedEntry:
    """Give ``entry`` a submission time inside the bucket window.

    Raises:
        ValueError: If the entry already carries a time outside the window.
    """
    if entry.submitted_at is not None:
        if not bucket.contains(entry.submitted_at):
            raise ValueError(
                f"Entry submitted at {entry.submitted_at.isoformat()} "
                f"is outside bucket {bucket.key}"
            )
        return entry

    now = datetime.now(timezone.utc)
    return replace(entry, submitted_at=now if bucket.contains(now) else bucket.starts_at)


class MemoryEntryStore:
    """Process-local store keyed by bucket key.

    A single lock makes bucket creation and append one atomic step, so two
    near-simultaneous first writes to a new bucket cannot lose an entry.
    """

    def __init__(self) -> None:
        self._buckets: Dict[str, List[FeedEntry]] = {}
        self._lock = threading.Lock()

    def append(self, bucket: Bucket, entry: FeedEntry) -> None:
        entry = stamp_entry(bucket, entry)
        with self._lock:
            self._buckets.setdefault(bucket.key, []).append(entry)

    def read(self, bucket: Bucket) -> Optional[List[FeedEntry]]:
        with self._lock:
            entries = self._buckets.get(bucket.key)
            return list(entries) if entries is not None else None

    def ensure(self, bucket: Bucket) -> List[FeedEntry]:
        with self._lock:
            return list(self._buckets.setdefault(bucket.key, []))

    def query_range(self, start: datetime, end: datetime) -> List[FeedEntry]:
        with self._lock:
            matches = [
                entry
                for entries in self._buckets.values()
                for entry in entries
                if entry.submitted_at is not None and start <= entry.submitted_at < end
            ]
        return sorted(matches, key=lambda entry: entry.submitted_at)


def create_entry_store(database_url: Optional[str] = None) -> EntryStore:
    """Factory to create the configured storage backend.

    No URL keeps entries in memory; ``postgres://`` / ``postgresql://`` URLs
    select PostgreSQL; anything else is a SQLite path (``sqlite:///`` prefix
    optional).
    """
    if not database_url:
        logger.info("Using in-memory entry store")
        return MemoryEntryStore()

    if database_url.startswith("postgres"):
        from .database_postgres import PostgresEntryStore

        logger.info("Using PostgreSQL entry store")
        return PostgresEntryStore(database_url)

    from .database import SQLiteEntryStore

    path = database_url
    if path.startswith("sqlite:///"):
        path = path[len("sqlite:///") :]
    logger.info(f"Using SQLite entry store at {path}")
    return SQLiteEntryStore(path)
