from __future__ import annotations

from datetime import date, datetime, time


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def format_iso(value: datetime | None) -> str | None:
    return value.isoformat(timespec="seconds") if value else None


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """First and last instant of a calendar day (inclusive)."""
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now().replace(microsecond=0)
