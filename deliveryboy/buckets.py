"""Bucket resolution: which digest does a moment in time belong to.

Two period modes are supported:

- daily: one bucket per calendar day. A submission made after the cutoff
  hour rolls into the next day's bucket.
- weekly: one bucket per week ending at a fixed weekday and wall-clock time.

All arithmetic happens on local wall-clock values which are then localized
with pytz, so windows follow the zone's DST transitions.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from datetime import timezone as dt_timezone
from typing import Optional

import pytz

from .utils import format_short_date

DAILY = "daily"
WEEKLY = "weekly"
PERIODS = (DAILY, WEEKLY)


@dataclass(frozen=True)
class Bucket:
    """One aggregation period and its submission window ``[starts_at, ends_at)``."""

    key: str
    label: str
    period: str
    starts_at: datetime
    ends_at: datetime

    def contains(self, instant: datetime) -> bool:
        return self.starts_at <= instant < self.ends_at


class BucketResolver:
    """Maps instants to daily or weekly buckets in a fixed time zone."""

    def __init__(
        self,
        timezone: str = "America/Los_Angeles",
        period: str = DAILY,
        cutoff_hour: int = 10,
        boundary_weekday: int = 6,
        boundary_time: time = time(10, 0, 0),
    ):
        if period not in PERIODS:
            raise ValueError(f"Unknown digest period: {period}")
        self.tz = pytz.timezone(timezone)
        self.period = period
        self.cutoff_hour = cutoff_hour
        self.boundary_weekday = boundary_weekday
        self.boundary_time = boundary_time

    @classmethod
    def from_settings(cls, settings) -> "BucketResolver":
        return cls(
            timezone=settings.timezone,
            period=settings.digest_period,
            cutoff_hour=settings.cutoff_hour,
            boundary_weekday=settings.boundary_weekday_index,
            boundary_time=settings.send_time,
        )

    def localize(self, wall_clock: datetime) -> datetime:
        """Attach the zone to a naive wall-clock datetime.

        Ambiguous times (DST fall-back) resolve to their first occurrence;
        times that do not exist (spring-forward gap) are shifted forward.
        """
        try:
            return self.tz.localize(wall_clock, is_dst=None)
        except pytz.AmbiguousTimeError:
            return self.tz.localize(wall_clock, is_dst=True)
        except pytz.NonExistentTimeError:
            return self.tz.normalize(self.tz.localize(wall_clock, is_dst=False))

    def local_now(self, now: Optional[datetime] = None) -> datetime:
        """Convert ``now`` (default: current time) to the configured zone.

        Naive datetimes are read as wall-clock time in the configured zone.
        """
        if now is None:
            now = datetime.now(dt_timezone.utc)
        if now.tzinfo is None:
            return self.localize(now)
        return now.astimezone(self.tz)

    def ingest_bucket(self, now: Optional[datetime] = None) -> Bucket:
        """Bucket a submission made at ``now`` lands in."""
        local = self.local_now(now)
        if self.period == DAILY:
            effective = local.date()
            if local.hour > self.cutoff_hour:
                effective += timedelta(days=1)
            return self.daily_bucket(effective)

        days_ahead = (self.boundary_weekday - local.weekday()) % 7
        boundary_date = local.date() + timedelta(days=days_ahead)
        if local >= self.localize(datetime.combine(boundary_date, self.boundary_time)):
            boundary_date += timedelta(days=7)
        return self.weekly_bucket(boundary_date)

    def current_bucket(self, now: Optional[datetime] = None) -> Bucket:
        """Bucket a send fired at ``now`` reads.

        Daily: today's bucket, without cutoff rollover. Weekly: the bucket
        ending on today's date or the next boundary weekday, whatever the
        hour, so a send at the boundary instant picks the week that just
        closed.
        """
        local = self.local_now(now)
        if self.period == DAILY:
            return self.daily_bucket(local.date())

        days_ahead = (self.boundary_weekday - local.weekday()) % 7
        return self.weekly_bucket(local.date() + timedelta(days=days_ahead))

    def bucket_for(self, day: date) -> Bucket:
        """Bucket identified by ``day`` in the configured period mode."""
        if self.period == DAILY:
            return self.daily_bucket(day)
        if day.weekday() != self.boundary_weekday:
            raise ValueError(f"{day.isoformat()} is not a weekly boundary day")
        return self.weekly_bucket(day)

    def daily_bucket(self, day: date) -> Bucket:
        # Hours up to and including the cutoff hour belong to the same day.
        ends = datetime.combine(day, time.min) + timedelta(hours=self.cutoff_hour + 1)
        starts = ends - timedelta(days=1)
        key = format_short_date(day)
        return Bucket(
            key=key,
            label=key,
            period=DAILY,
            starts_at=self.localize(starts),
            ends_at=self.localize(ends),
        )

    def weekly_bucket(self, boundary_date: date) -> Bucket:
        ends = datetime.combine(boundary_date, self.boundary_time)
        starts = ends - timedelta(days=7)
        return Bucket(
            key=format_short_date(boundary_date),
            label=f"Week {boundary_date.isocalendar()[1]}",
            period=WEEKLY,
            starts_at=self.localize(starts),
            ends_at=self.localize(ends),
        )
