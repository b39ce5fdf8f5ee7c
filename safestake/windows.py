"""
SafeStake Time Windows

Timestamps are integer milliseconds since the Unix epoch, supplied by the host
on every call. Spend windows are calendar-aligned in UTC: the daily window
rolls over at midnight, the monthly window on the 1st of the month. The two
windows roll over independently of each other.
"""

import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Tuple

from .errors import ComplianceError, ErrorKind

MS_PER_DAY = 86_400_000

# Largest representable timestamp (unsigned 64-bit milliseconds).
MAX_TIMESTAMP = 2 ** 64 - 1

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# "now" has to map onto a calendar date for window rollover.
MAX_CALENDAR_TIMESTAMP = (
    (datetime(9999, 12, 31, 23, 59, 59, 999000, tzinfo=timezone.utc) - _EPOCH)
    // timedelta(milliseconds=1)
)


def now_timestamp() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def to_timestamp(dt: datetime) -> int:
    """Convert a datetime to milliseconds. Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - _EPOCH) // timedelta(milliseconds=1)


def from_timestamp(ts: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=ts)


def format_timestamp(ts: int) -> str:
    """RFC 3339 rendering used in reports and logs."""
    if ts > MAX_CALENDAR_TIMESTAMP:
        return str(ts)
    return from_timestamp(ts).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def validate_timestamp(now) -> int:
    """Check a host-supplied current time."""
    if isinstance(now, bool) or not isinstance(now, int):
        raise ComplianceError(ErrorKind.PARSE_PARAMS, f"timestamp must be an integer, got {type(now).__name__}")
    if now < 0 or now > MAX_CALENDAR_TIMESTAMP:
        raise ComplianceError(ErrorKind.PARSE_PARAMS, f"timestamp out of range: {now}")
    return now


def add_days(ts: int, days: int) -> int:
    """
    Add a whole number of days to a timestamp.

    Raises:
        ComplianceError(OVERFLOW) if the result is not representable.
    """
    result = ts + days * MS_PER_DAY
    if result > MAX_TIMESTAMP:
        raise ComplianceError(ErrorKind.OVERFLOW, f"{days} days from {ts} exceeds the timestamp range")
    return result


def utc_day(ts: int) -> date:
    return from_timestamp(ts).date()


def utc_month(ts: int) -> Tuple[int, int]:
    dt = from_timestamp(ts)
    return dt.year, dt.month


@dataclass(frozen=True)
class SpendWindows:
    """Spend counters as they stand once rollover has been applied."""
    daily_spent: int
    monthly_spent: int
    last_reset_day: int
    last_reset_month: int
    daily_reset: bool = False
    monthly_reset: bool = False


def roll_windows(record, now: int) -> SpendWindows:
    """
    Apply window rollover to a record without mutating it.

    A window resets only when `now` falls on a strictly later calendar day
    (or month) than the stored reset timestamp, so a clock that moves
    backwards never resets a counter.
    """
    daily_spent = record.daily_spent
    monthly_spent = record.monthly_spent
    last_reset_day = record.last_reset_day
    last_reset_month = record.last_reset_month
    daily_reset = False
    monthly_reset = False

    if utc_day(now) > utc_day(record.last_reset_day):
        daily_spent = 0
        last_reset_day = now
        daily_reset = True

    if utc_month(now) > utc_month(record.last_reset_month):
        monthly_spent = 0
        last_reset_month = now
        monthly_reset = True

    return SpendWindows(
        daily_spent=daily_spent,
        monthly_spent=monthly_spent,
        last_reset_day=last_reset_day,
        last_reset_month=last_reset_month,
        daily_reset=daily_reset,
        monthly_reset=monthly_reset,
    )
