from datetime import date

import pytest
import pytest_asyncio

from flockbot.services.battle_service import BattleService
from flockbot.services.reports import ReportService
from flockbot.utils.exceptions import InvalidFormatError, NotFoundError
from flockbot.utils.official_time import battle_end_instant, battle_start_instant


@pytest_asyncio.fixture
async def recorded(db, clan, roster, entry_factory):
    """Three battles: Ava skips the middle one, which is against another opponent."""
    ava, ben, _, _ = roster
    battles = BattleService(db)
    lineups = {
        "20250101": ([(ava.id, 100, 50), (ben.id, 100, 100)], "Hawks", "Canada"),
        "20250104": ([(ben.id, 100, 100)], "Owls", "United States"),
        "20250107": ([(ava.id, 300, 100), (ben.id, 100, 100)], "Hawks", "Canada"),
    }
    for battle_id, (players, opponent, country) in lineups.items():
        day = date(int(battle_id[:4]), int(battle_id[4:6]), int(battle_id[6:]))
        await db.create_master_battle(battle_id, battle_start_instant(day), battle_end_instant(day))
        await battles.record_battle(clan.id, entry_factory(
            battle_id, players, baseline_fp=100, opponent_name=opponent, opponent_country=country
        ))
    return roster


@pytest.mark.asyncio
async def test_player_report(db, clan, recorded):
    ava = recorded[0]

    report = await ReportService(db).get_player_report(clan.id, ava.id)

    assert report.player_name == "Ava"
    assert [p.battle_id for p in report.performance] == ["20250101", "20250107"]
    assert [p.player_ratio for p in report.performance] == [2000.0, 3000.0]
    assert report.summary.total_battles == 3
    assert report.summary.participation_rate == 66.67
    assert report.summary.average_ratio == 2500.0
    assert report.summary.clan_average_ratio == 2333.33
    assert report.summary.comparison_to_clan == 7.14


@pytest.mark.asyncio
async def test_player_report_over_range(db, clan, recorded):
    report = await ReportService(db).get_player_report(clan.id, recorded[0].id, "20250104", "20250107")
    assert report.summary.total_battles == 2
    assert report.summary.participation_rate == 50.0


@pytest.mark.asyncio
async def test_player_report_requires_member_of_clan(db, clan, recorded):
    other = await db.create_clan("Eagles")
    outsider = await db.create_roster_member(other.id, "Zed")
    reports = ReportService(db)

    with pytest.raises(NotFoundError):
        await reports.get_player_report(clan.id, outsider.id)
    with pytest.raises(NotFoundError):
        await reports.get_player_report(clan.id, 999)
    with pytest.raises(InvalidFormatError):
        await reports.get_player_report(clan.id, recorded[0].id, "2025-01-01")


@pytest.mark.asyncio
async def test_matchups(db, clan, recorded):
    report = await ReportService(db).get_matchups(clan.id)

    assert [(o.name, o.battles) for o in report.opponents] == [("Hawks", 2), ("Owls", 1)]
    assert [b.battle_id for b in report.opponents[0].recent_battles] == ["20250107", "20250101"]
    assert [(c.country, c.percentage) for c in report.countries] == [("Canada", 66.67), ("United States", 33.33)]
    assert report.summary.total_battles == 3
    assert report.summary.unique_opponents == 2
    assert report.summary.rivals == 0

    assert (await ReportService(db).get_matchups(clan.id, "20250102", "20250105")).summary.total_battles == 1
