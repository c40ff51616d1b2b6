"""Pytest configuration and fixtures."""

import tempfile
from datetime import date, time
from pathlib import Path
from typing import Generator

import pytest
import requests_mock

from deliveryboy.buckets import Bucket, BucketResolver
from deliveryboy.config import Settings
from deliveryboy.delivery import DigestDelivery
from deliveryboy.digest import DigestFormatter
from deliveryboy.notifiers.dispatcher import WebhookDispatcher
from deliveryboy.store import MemoryEntryStore
from tests.helpers import WEBHOOK_A, WEBHOOK_B


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Path for a throwaway SQLite database."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    try:
        yield db_path
    finally:
        db_path.unlink(missing_ok=True)


@pytest.fixture
def resolver() -> BucketResolver:
    """Daily buckets, Los Angeles, cutoff at 10."""
    return BucketResolver(timezone="America/Los_Angeles", period="daily", cutoff_hour=10)


@pytest.fixture
def weekly_resolver() -> BucketResolver:
    """Weekly buckets ending Sunday 10:00 Los Angeles time."""
    return BucketResolver(
        timezone="America/Los_Angeles",
        period="weekly",
        boundary_weekday=6,
        boundary_time=time(10, 0, 0),
    )


@pytest.fixture
def daily_bucket(resolver: BucketResolver) -> Bucket:
    return resolver.daily_bucket(date(2026, 10, 18))


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        _env_file=None,
        discord_webhook_url=f"{WEBHOOK_A},{WEBHOOK_B}",
        key="secret",
        log_level="DEBUG",
        dry_run=False,
        database_url=None,
    )


@pytest.fixture
def mock_webhooks():
    """Mock both Discord webhook endpoints."""
    with requests_mock.Mocker() as m:
        m.post(WEBHOOK_A, status_code=204)
        m.post(WEBHOOK_B, status_code=204)
        yield m


@pytest.fixture
def delivery(resolver: BucketResolver) -> DigestDelivery:
    """Daily pipeline over an in-memory store and two webhooks."""
    return DigestDelivery(
        store=MemoryEntryStore(),
        resolver=resolver,
        formatter=DigestFormatter(),
        dispatcher=WebhookDispatcher.from_urls(f"{WEBHOOK_A},{WEBHOOK_B}"),
    )
