"""
Official Time utilities.

Official Time is a fixed UTC-5 civil calendar. It never observes daylight
saving time, so every conversion here is a constant offset. All battle
scheduling and battle identifiers are expressed in Official Time; the
database stores instants as naive UTC.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

import pytz

from flockbot.constants import ScheduleConstants
from flockbot.utils.exceptions import InvalidFormatError

OFFICIAL_TZ = pytz.FixedOffset(ScheduleConstants.OFFICIAL_UTC_OFFSET_MINUTES)


def now_official() -> datetime:
    """Current instant in Official Time."""
    return datetime.now(timezone.utc).astimezone(OFFICIAL_TZ)


def to_official(value: datetime) -> datetime:
    """
    Normalize any instant to Official Time.

    Naive datetimes are treated as UTC, matching how instants are stored.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(OFFICIAL_TZ)


def official_date(value: datetime) -> date:
    """Civil date of an instant in Official Time."""
    return to_official(value).date()


def official_datetime(day: date, hour: int = 0, minute: int = 0, second: int = 0) -> datetime:
    """Build an aware Official Time datetime from civil components."""
    return datetime.combine(day, time(hour, minute, second), tzinfo=OFFICIAL_TZ)


def official_midnight(day: date) -> datetime:
    return official_datetime(day)


def battle_start_instant(day: date) -> datetime:
    """Start of the battle window for a start date: midnight Official Time."""
    return official_midnight(day)


def battle_end_instant(day: date) -> datetime:
    """End of the battle window: BATTLE_DURATION_DAYS after the start date at 23:59:59."""
    end_day = day + timedelta(days=ScheduleConstants.BATTLE_DURATION_DAYS)
    return official_datetime(end_day, *ScheduleConstants.END_OF_DAY)


def to_utc_naive(value: datetime) -> datetime:
    """Convert an aware instant to the naive UTC form used for storage."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a stored naive timestamp."""
    if value is None:
        return None
    if value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def parse_official_datetime(value: Union[str, date, datetime]) -> datetime:
    """
    Parse a user or stored date into an aware Official Time datetime.

    Accepts ISO 8601 datetimes (with or without offset) and plain
    ``YYYY-MM-DD`` dates. Values without an offset are Official Time.

    Raises:
        InvalidFormatError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return official_midnight(value)
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidFormatError(value, "an ISO 8601 date such as 2025-01-15")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=OFFICIAL_TZ)
    return parsed.astimezone(OFFICIAL_TZ)


def format_official(value: datetime) -> str:
    """Human readable Official Time string, e.g. 2025-01-15 00:00 (UTC-5)."""
    return to_official(value).strftime('%Y-%m-%d %H:%M') + ' (UTC-5)'
