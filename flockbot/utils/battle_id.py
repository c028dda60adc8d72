"""
Battle identifier utilities.

A battle identifier is the Official Time start date of a battle window
formatted as ``YYYYMMDD``. The encoding is fixed-width and zero-padded, so
lexicographic order equals chronological order; external consumers rely on
that, and the comparison helpers below use plain string comparison.

Month identifiers (``YYYYMM``) and year identifiers (``YYYY``) are prefixes
of the battle identifier.
"""

import re
from datetime import date, timedelta
from typing import Iterable, List, Tuple

from flockbot.constants import IdentifierConstants, ScheduleConstants
from flockbot.utils.exceptions import InvalidCalendarDateError, InvalidFormatError

_BATTLE_ID_PATTERN = re.compile(r'[0-9]{%d}' % IdentifierConstants.BATTLE_ID_LENGTH, re.ASCII)
_MONTH_ID_PATTERN = re.compile(r'[0-9]{%d}' % IdentifierConstants.MONTH_ID_LENGTH, re.ASCII)
_YEAR_ID_PATTERN = re.compile(r'[0-9]{%d}' % IdentifierConstants.YEAR_ID_LENGTH, re.ASCII)


def encode_battle_id(day: date) -> str:
    """
    Format an Official Time civil date as a battle identifier.

    The caller is responsible for normalizing to Official Time first
    (see ``official_time.official_date``); no timezone conversion happens here.
    """
    return f"{day.year:04d}{day.month:02d}{day.day:02d}"


def _check_battle_id_format(battle_id) -> str:
    if not isinstance(battle_id, str) or not _BATTLE_ID_PATTERN.fullmatch(battle_id):
        raise InvalidFormatError(battle_id, "8 digits in YYYYMMDD format")
    return battle_id


def decode_battle_id(battle_id: str) -> date:
    """
    Decode a battle identifier into its civil date.

    Raises:
        InvalidFormatError: If the value is not exactly 8 ASCII digits
        InvalidCalendarDateError: If the digits do not form a real date
    """
    _check_battle_id_format(battle_id)
    try:
        return date(int(battle_id[0:4]), int(battle_id[4:6]), int(battle_id[6:8]))
    except ValueError:
        raise InvalidCalendarDateError(battle_id)


def validate_battle_id(battle_id: str) -> bool:
    """Return True if the value is a well-formed identifier for a real date."""
    try:
        decode_battle_id(battle_id)
        return True
    except (InvalidFormatError, InvalidCalendarDateError):
        return False


def advance_battle_id(battle_id: str, cycles: int = 1) -> str:
    """
    Identifier ``cycles`` battle cycles later.

    Raises:
        InvalidFormatError / InvalidCalendarDateError: If battle_id is malformed
        InvalidCalendarDateError: If the result falls outside years 0001-9999
    """
    day = decode_battle_id(battle_id)
    try:
        shifted = day + timedelta(days=cycles * ScheduleConstants.BATTLE_CYCLE_DAYS)
    except OverflowError as e:
        raise InvalidCalendarDateError(battle_id) from e
    return encode_battle_id(shifted)


def retreat_battle_id(battle_id: str, cycles: int = 1) -> str:
    """Identifier ``cycles`` battle cycles earlier."""
    return advance_battle_id(battle_id, -cycles)


def next_battle_id(battle_id: str) -> str:
    return advance_battle_id(battle_id, 1)


def previous_battle_id(battle_id: str) -> str:
    return retreat_battle_id(battle_id, 1)


def compare_battle_ids(first: str, second: str) -> int:
    """Return -1, 0 or 1 as ``first`` is before, equal to or after ``second``."""
    return (first > second) - (first < second)


def sort_battle_ids_ascending(battle_ids: Iterable[str]) -> List[str]:
    """Oldest first."""
    return sorted(battle_ids)


def sort_battle_ids_descending(battle_ids: Iterable[str]) -> List[str]:
    """Newest first."""
    return sorted(battle_ids, reverse=True)


def month_id_of(battle_id: str) -> str:
    """``YYYYMM`` prefix of a battle identifier."""
    return _check_battle_id_format(battle_id)[:IdentifierConstants.MONTH_ID_LENGTH]


def year_id_of(battle_id: str) -> str:
    """``YYYY`` prefix of a battle identifier."""
    return _check_battle_id_format(battle_id)[:IdentifierConstants.YEAR_ID_LENGTH]


def parse_month_id(month_id: str) -> Tuple[int, int]:
    """
    Validate a month identifier and return ``(year, month)``.

    Raises:
        InvalidFormatError: If the value is not 6 digits
        InvalidCalendarDateError: If the month is outside 1-12
    """
    if not isinstance(month_id, str) or not _MONTH_ID_PATTERN.fullmatch(month_id):
        raise InvalidFormatError(month_id, "6 digits in YYYYMM format")
    year, month = int(month_id[:4]), int(month_id[4:])
    if not 1 <= month <= 12:
        raise InvalidCalendarDateError(month_id)
    return year, month


def parse_year_id(year_id: str) -> int:
    if not isinstance(year_id, str) or not _YEAR_ID_PATTERN.fullmatch(year_id):
        raise InvalidFormatError(year_id, "4 digits in YYYY format")
    return int(year_id)


def battle_id_bounds_for_month(month_id: str) -> Tuple[str, str]:
    """Inclusive identifier range covering every day of a month."""
    parse_month_id(month_id)
    return f"{month_id}01", f"{month_id}31"


def battle_id_bounds_for_year(year_id: str) -> Tuple[str, str]:
    """Inclusive identifier range covering every day of a year."""
    parse_year_id(year_id)
    return f"{year_id}0101", f"{year_id}1231"
