from datetime import date, timedelta

import pytest

from flockbot.utils.battle_id import (
    advance_battle_id, battle_id_bounds_for_month, battle_id_bounds_for_year,
    compare_battle_ids, decode_battle_id, encode_battle_id, month_id_of,
    next_battle_id, parse_month_id, parse_year_id, previous_battle_id,
    retreat_battle_id, sort_battle_ids_ascending, sort_battle_ids_descending,
    validate_battle_id, year_id_of
)
from flockbot.utils.exceptions import InvalidCalendarDateError, InvalidFormatError


def test_encode_zero_pads():
    assert encode_battle_id(date(2025, 1, 5)) == "20250105"
    assert encode_battle_id(date(999, 12, 31)) == "09991231"


@pytest.mark.parametrize("day", [
    date(2024, 2, 29), date(2025, 1, 1), date(2025, 12, 31), date(2000, 2, 29),
])
def test_decode_inverts_encode(day):
    assert decode_battle_id(encode_battle_id(day)) == day


def test_decode_every_day_of_a_leap_year():
    day = date(2024, 1, 1)
    while day.year == 2024:
        assert decode_battle_id(encode_battle_id(day)) == day
        day += timedelta(days=1)


def test_leap_day_only_in_leap_years():
    assert decode_battle_id("20240229") == date(2024, 2, 29)
    with pytest.raises(InvalidCalendarDateError):
        decode_battle_id("20250229")
    with pytest.raises(InvalidCalendarDateError):
        decode_battle_id("19000229")


@pytest.mark.parametrize("value", ["20250132", "20251301", "20250001", "20250100", "20250431"])
def test_impossible_dates_are_calendar_errors(value):
    with pytest.raises(InvalidCalendarDateError) as excinfo:
        decode_battle_id(value)
    assert excinfo.value.kind == "invalid_calendar_date"


@pytest.mark.parametrize("value", ["2025011", "202501155", "2025-01-15", "2025O115", "", None, 20250115, "２０２５０１１５"])
def test_malformed_identifiers_are_format_errors(value):
    with pytest.raises(InvalidFormatError) as excinfo:
        decode_battle_id(value)
    assert excinfo.value.kind == "invalid_format"


def test_validate_battle_id():
    assert validate_battle_id("20240229")
    assert not validate_battle_id("20250229")
    assert not validate_battle_id("abc")


def test_advance_and_retreat_by_cycles():
    assert advance_battle_id("20250115") == "20250118"
    assert advance_battle_id("20250130", 2) == "20250205"
    assert advance_battle_id("20241230") == "20250102"
    assert retreat_battle_id("20250301") == "20250226"
    assert retreat_battle_id("20240302") == "20240228"
    assert next_battle_id("20250115") == "20250118"
    assert previous_battle_id("20250115") == "20250112"


@pytest.mark.parametrize("cycles", [0, 1, 5, 122, 1000])
def test_retreat_undoes_advance(cycles):
    for battle_id in ("20240229", "20250101", "20251231"):
        assert retreat_battle_id(advance_battle_id(battle_id, cycles), cycles) == battle_id


def test_advance_rejects_bad_input():
    with pytest.raises(InvalidFormatError):
        advance_battle_id("2025-01-15", 1)


def test_advance_past_calendar_range_is_a_calendar_error():
    with pytest.raises(InvalidCalendarDateError):
        advance_battle_id("99991231", 1)
    with pytest.raises(InvalidCalendarDateError):
        retreat_battle_id("00010101", 1)
    assert advance_battle_id("99991228", 1) == "99991231"


def test_compare_and_sort():
    assert compare_battle_ids("20250115", "20250118") == -1
    assert compare_battle_ids("20250118", "20250115") == 1
    assert compare_battle_ids("20250115", "20250115") == 0

    ids = ["20250118", "20241231", "20250103"]
    assert sort_battle_ids_ascending(ids) == ["20241231", "20250103", "20250118"]
    assert sort_battle_ids_descending(ids) == ["20250118", "20250103", "20241231"]
    assert ids == ["20250118", "20241231", "20250103"]


def test_month_and_year_prefixes():
    assert month_id_of("20250115") == "202501"
    assert year_id_of("20250115") == "2025"
    with pytest.raises(InvalidFormatError):
        month_id_of("202501")


def test_parse_month_and_year_ids():
    assert parse_month_id("202502") == (2025, 2)
    assert parse_year_id("2025") == 2025
    with pytest.raises(InvalidCalendarDateError):
        parse_month_id("202513")
    with pytest.raises(InvalidFormatError):
        parse_month_id("2025-1")
    with pytest.raises(InvalidFormatError):
        parse_year_id("25")


def test_identifier_bounds():
    assert battle_id_bounds_for_month("202502") == ("20250201", "20250231")
    assert battle_id_bounds_for_year("2025") == ("20250101", "20251231")
    start, end = battle_id_bounds_for_month("202502")
    assert start <= "20250228" <= end
    assert not (start <= "20250301" <= end)
