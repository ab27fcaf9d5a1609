"""UTC-everywhere time handling for expiry arithmetic and display."""

import math
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

SECONDS_PER_DAY = 24 * 60 * 60


def now_utc() -> datetime:
    """
    Current time in UTC.

    Every expiry comparison in the project goes through this function so
    tests can pin the clock with monkeypatch.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def assume_utc(dt: datetime) -> datetime:
    """Attach UTC to a naive datetime. Aware datetimes are returned unchanged."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_local(dt: datetime, tz_name: str) -> datetime:
    """
    Convert UTC datetime to local timezone for display.

    Raises:
        ValueError: If datetime is naive or timezone name is invalid
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime. Datetime must be timezone-aware."
        )

    try:
        local_tz = ZoneInfo(tz_name)
    except (KeyError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_name}")

    return dt.astimezone(local_tz)


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 datetime string to UTC datetime.

    Accepts the trailing 'Z' written by JavaScript's toISOString().
    Raises ValueError if string has no timezone info.
    """
    if iso_string.endswith("Z"):
        iso_string = iso_string[:-1] + "+00:00"
    dt = datetime.fromisoformat(iso_string)
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot parse naive datetime string. "
            "Include timezone offset (e.g., 'Z' or '+00:00')."
        )
    return to_utc(dt)


def ceil_days(delta: timedelta) -> int:
    """Whole days in delta, rounded up (negative deltas round toward zero)."""
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def days_until(target: datetime, now: datetime | None = None) -> int:
    """Days remaining until target, rounded up. Zero or negative once passed."""
    return ceil_days(target - (now or now_utc()))


def format_display_date(dt: datetime, tz_name: str = "UTC", fmt: str = "%Y-%m-%d") -> str:
    """Render a UTC datetime as a local calendar date for user-facing messages."""
    return to_local(dt, tz_name).strftime(fmt)
