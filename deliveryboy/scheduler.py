"""Digest scheduler: fires the send pipeline at a fixed local wall-clock time."""

import logging
import threading
from datetime import datetime, time, timedelta, timezone
from typing import Any, Callable, Optional

from .buckets import WEEKLY, BucketResolver
from .utils import format_clock

logger = logging.getLogger(__name__)


class DigestScheduler:
    """Runs ``job`` every day (or every boundary weekday) at ``send_time``.

    Each fire starts the job on its own thread and moves on: the scheduler
    neither awaits nor retries it. Failures are logged.
    """

    def __init__(
        self,
        resolver: BucketResolver,
        job: Callable[[], Any],
        send_time: Optional[time] = None,
    ):
        self.resolver = resolver
        self.job = job
        self.send_time = send_time or resolver.boundary_time
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_settings(
        cls, settings, resolver: BucketResolver, job: Callable[[], Any]
    ) -> "DigestScheduler":
        return cls(resolver, job, send_time=settings.send_time)

    def next_fire_time(self, now: Optional[datetime] = None) -> datetime:
        """First fire instant strictly after ``now``."""
        local = self.resolver.local_now(now)
        for offset in range(8):
            day = local.date() + timedelta(days=offset)
            if (
                self.resolver.period == WEEKLY
                and day.weekday() != self.resolver.boundary_weekday
            ):
                continue
            fire_at = self.resolver.localize(datetime.combine(day, self.send_time))
            if fire_at > local:
                return fire_at
        raise RuntimeError("No fire time found within a week")  # pragma: no cover

    def start(self) -> None:
        """Start the scheduler loop in a daemon thread."""
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="digest-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(
            f"Digest scheduler started ({self.resolver.period} at "
            f"{format_clock(self.send_time)} {self.resolver.tz.zone})"
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def _run(self) -> None:
        while not self._stop.is_set():
            fire_at = self.next_fire_time()
            logger.info(f"Next digest scheduled for {fire_at.isoformat()}")
            while True:
                delay = (fire_at - datetime.now(timezone.utc)).total_seconds()
                if delay <= 0:
                    break
                if self._stop.wait(delay):
                    return
            self.fire()

    def fire(self) -> threading.Thread:
        """Start one run of the job without waiting for it."""
        thread = threading.Thread(target=self._run_job, name="digest-send", daemon=True)
        thread.start()
        return thread

    def _run_job(self) -> None:
        try:
            self.job()
            logger.info("Scheduled digest run completed")
        except Exception:
            logger.exception("Scheduled digest run failed")
