"""Shared test helpers: fixed clocks and webhook URLs."""

from datetime import datetime
from typing import Any, List, Optional

import pytz

from deliveryboy.buckets import BucketResolver
from deliveryboy.digest import Digest

PACIFIC = pytz.timezone("America/Los_Angeles")

WEBHOOK_A = "https://discord.com/api/webhooks/111/aaa"
WEBHOOK_B = "https://discord.com/api/webhooks/222/bbb"


def pacific(
    year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0
) -> datetime:
    """Aware datetime for a Los Angeles wall-clock time."""
    return PACIFIC.localize(datetime(year, month, day, hour, minute, second))


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=pytz.utc)


class FrozenResolver(BucketResolver):
    """Resolver whose notion of "now" is pinned for code that passes none."""

    def __init__(self, frozen: datetime, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.frozen = frozen

    def local_now(self, now: Optional[datetime] = None) -> datetime:
        return super().local_now(now or self.frozen)


class RecordingNotifier:
    """In-process notifier that records digests or fails on demand."""

    def __init__(
        self,
        webhook_url: str,
        error: Optional[Exception] = None,
        barrier: Any = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.error = error
        self.barrier = barrier
        self.sent: List[Digest] = []

    def send(self, digest: Digest) -> None:
        if self.barrier is not None:
            self.barrier.wait()
        if self.error is not None:
            raise self.error
        self.sent.append(digest)
