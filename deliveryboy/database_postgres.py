"""PostgreSQL entry store for production deployments."""

import logging
from typing import Any

import psycopg2
import psycopg2.extras

from .database import SQLiteEntryStore

logger = logging.getLogger(__name__)


class PostgresEntryStore(SQLiteEntryStore):
    """PostgreSQL-specific entry store; same tables, same queries."""

    placeholder = "%s"

    schema = (
        """
        CREATE TABLE IF NOT EXISTS digest_bucket (
            bucket_key TEXT PRIMARY KEY,
            period TEXT NOT NULL,
            starts_at TEXT NOT NULL,
            ends_at TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS feed_entry (
            id SERIAL PRIMARY KEY,
            bucket_key TEXT NOT NULL,
            submitted_at TEXT NOT NULL,
            link TEXT NOT NULL,
            title TEXT NOT NULL,
            feed TEXT NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_feed_entry_submitted ON feed_entry(submitted_at)",
    )

    def __init__(self, database_url: str):
        """Initialize PostgreSQL store.

        Args:
            database_url: PostgreSQL connection URL
        """
        self.database_url = database_url
        self.ensure_schema()

    def get_connection(self) -> Any:
        """Get PostgreSQL connection with proper settings."""
        try:
            conn = psycopg2.connect(
                self.database_url, cursor_factory=psycopg2.extras.RealDictCursor
            )
            conn.autocommit = False
            return conn
        except Exception as e:
            logger.error(f"Failed to connect to PostgreSQL: {e}")
            raise
