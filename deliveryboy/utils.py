"""Utility functions for Delivery Boy."""

from datetime import date, datetime, time

import pytz

# Fixed table so bucket keys never depend on the process locale.
MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def format_short_date(day: date) -> str:
    """Format a date as ``MMM dd, yyyy``.

    Examples:
        date(2026, 10, 18) → "Oct 18, 2026"
        date(2026, 3, 1) → "Mar 01, 2026"
    """
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.day:02d}, {day.year:04d}"


def parse_short_date(text: str) -> date:
    """Inverse of :func:`format_short_date`.

    Raises:
        ValueError: If the text is not in ``MMM dd, yyyy`` form.
    """
    try:
        month_part, day_part, year_part = text.replace(",", "").split()
        month = MONTH_ABBREVIATIONS.index(month_part.title()) + 1
        return date(int(year_part), month, int(day_part))
    except ValueError as exc:
        raise ValueError(f"Not a short date: {text!r}") from exc


def to_utc_iso(instant: datetime) -> str:
    """Render an aware datetime as a sortable UTC ISO-8601 string."""
    return instant.astimezone(pytz.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def from_utc_iso(text: str) -> datetime:
    """Parse a string written by :func:`to_utc_iso`."""
    return datetime.strptime(text, "%Y-%m-%dT%H:%M:%S.%fZ").replace(
        tzinfo=pytz.utc
    )


def format_clock(value: time) -> str:
    """Format a wall-clock time as ``HH:MM:SS``."""
    return value.strftime("%H:%M:%S")
