from datetime import date, timedelta

import pytest

from flockbot.constants import ScheduleConstants
from flockbot.services.battle_scheduler import BattleSchedulerService
from flockbot.services.master_battle import MasterBattleService
from flockbot.utils.exceptions import (
    AlreadyExistsError, InvalidCalendarDateError, InvalidFormatError,
    MustBeFutureError, NotConfiguredError, NotFoundError
)
from flockbot.utils.official_time import official_datetime

NEXT_KEY = ScheduleConstants.NEXT_BATTLE_START_DATE_KEY
ADMIN_ID = 123456789012345678


@pytest.fixture
def service(db, settings, clock):
    return MasterBattleService(db, settings, now_provider=clock)


@pytest.mark.asyncio
async def test_get_next_battle_date_requires_configuration(service, settings):
    with pytest.raises(NotConfiguredError) as excinfo:
        await service.get_next_battle_date()
    assert excinfo.value.to_dict()["error"] == "not_configured"

    await settings.upsert(NEXT_KEY, "2025-01-18")
    assert await service.get_next_battle_date() == official_datetime(date(2025, 1, 18))


@pytest.mark.asyncio
async def test_update_next_battle_date_must_be_future(service, settings, clock):
    with pytest.raises(MustBeFutureError):
        await service.update_next_battle_date("2025-01-16", ADMIN_ID)   # midnight today, before noon
    with pytest.raises(MustBeFutureError):
        await service.update_next_battle_date(clock.now, ADMIN_ID)
    assert await settings.get(NEXT_KEY) is None

    stored = await service.update_next_battle_date("2025-01-19", ADMIN_ID)

    assert stored == official_datetime(date(2025, 1, 19))
    assert await service.get_next_battle_date() == stored


@pytest.mark.asyncio
async def test_update_next_battle_date_rejects_garbage(service):
    with pytest.raises(InvalidFormatError):
        await service.update_next_battle_date("soon", ADMIN_ID)


@pytest.mark.asyncio
async def test_create_master_battle_records_actor(service):
    window = await service.create_master_battle("2025-01-21", ADMIN_ID, notes="Makeup battle")

    assert window.battle_id == "20250121"
    assert window.created_by == ADMIN_ID
    assert not window.is_automatic
    assert window.notes == "Makeup battle"
    assert window.end_instant - window.start_instant == timedelta(days=2, hours=23, minutes=59, seconds=59)


@pytest.mark.asyncio
async def test_create_master_battle_rejects_duplicates(service):
    await service.create_master_battle("2025-01-21", ADMIN_ID)
    with pytest.raises(AlreadyExistsError) as excinfo:
        await service.create_master_battle("2025-01-21", ADMIN_ID)
    assert excinfo.value.to_dict() == {
        "error": "already_exists",
        "message": "❌ Master battle `20250121` already exists.",
    }


@pytest.mark.asyncio
async def test_database_rejects_duplicate_insert(db):
    start = official_datetime(date(2025, 1, 21))
    await db.create_master_battle("20250121", start, start + timedelta(days=2))
    with pytest.raises(AlreadyExistsError):
        await db.create_master_battle("20250121", start, start + timedelta(days=2))


@pytest.mark.asyncio
async def test_schedule_info(db, settings, service, clock):
    scheduler = BattleSchedulerService(db, settings, now_provider=clock)
    for day in ("2025-01-09", "2025-01-12", "2025-01-15", "2025-01-21"):
        await scheduler.manually_create_battle(day)
    await settings.upsert(NEXT_KEY, "2025-01-18")

    info = await service.get_schedule_info()

    assert info.current_window.battle_id == "20250115"
    assert info.next_battle_start_date == official_datetime(date(2025, 1, 18))
    assert info.next_window is None
    assert [w.battle_id for w in info.available_windows] == ["20250115", "20250112", "20250109"]


@pytest.mark.asyncio
async def test_schedule_info_next_window_when_already_created(db, settings, service, clock):
    scheduler = BattleSchedulerService(db, settings, now_provider=clock)
    await scheduler.manually_create_battle("2025-01-18")
    await settings.upsert(NEXT_KEY, "2025-01-18")

    info = await service.get_schedule_info()

    assert info.current_window is None
    assert info.next_window.battle_id == "20250118"
    assert info.available_windows == []


@pytest.mark.asyncio
async def test_schedule_info_defaults_next_date_when_unconfigured(service, clock):
    info = await service.get_schedule_info()
    assert info.next_battle_start_date == clock.now + timedelta(days=3)


@pytest.mark.asyncio
async def test_schedule_info_defaults_next_date_when_stored_value_is_unreadable(service, settings, clock):
    await settings.upsert(NEXT_KEY, "sometime soon")
    info = await service.get_schedule_info()
    assert info.next_battle_start_date == clock.now + timedelta(days=3)


@pytest.mark.asyncio
async def test_battle_lookups(service):
    for day in ("2025-01-09", "2025-01-12", "2025-01-15"):
        await service.create_master_battle(day, ADMIN_ID)

    assert (await service.get_battle_by_id("20250112")).battle_id == "20250112"
    with pytest.raises(NotFoundError):
        await service.get_battle_by_id("20250113")
    with pytest.raises(InvalidCalendarDateError):
        await service.get_battle_by_id("20250230")

    assert [w.battle_id for w in await service.get_recent_battles(limit=2)] == ["20250115", "20250112"]
    assert [w.battle_id for w in await service.get_available_battles()] == ["20250115", "20250112", "20250109"]

    page, total = await service.get_all_battles(page=2, page_size=2)
    assert total == 3
    assert [w.battle_id for w in page] == ["20250109"]
