from types import SimpleNamespace

import pytest

from flockbot.constants import StatsConstants
from flockbot.data_models.reports import TREND_DECLINING, TREND_IMPROVING, TREND_STABLE
from flockbot.utils.report_calculations import MatchupCalculator, PlayerReportCalculator

PLAYER = SimpleNamespace(id=1, name="Ava", is_active=True)


def stat(player_id, ratio, rank=1, score=100, fp=100):
    return SimpleNamespace(player_id=player_id, ratio=ratio, rank=rank, ratio_rank=rank, score=score, fp=fp)


def battle(battle_id, result=1, **overrides):
    fields = dict(
        battle_id=battle_id, result=result, ratio=1500.0, average_ratio=1600.0,
        score=1500, opponent_score=1200, baseline_fp=1000, opponent_fp=900,
        opponent_name="Hawks", opponent_country="Canada", player_stats=[],
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.mark.parametrize("ratios,expected", [
    ([1000, 1000, 1000, 1100, 1200, 1300], TREND_IMPROVING),
    ([1000, 950, 900], TREND_DECLINING),
    ([1000, 1020, 1040], TREND_STABLE),
    ([1000, 2000], TREND_STABLE),
    ([0, 500, 900], TREND_STABLE),
])
def test_performance_trend(ratios, expected):
    assert PlayerReportCalculator.performance_trend(ratios) == expected


def test_player_performance_skips_battles_not_played():
    battles = [
        battle("20250101", ratio=1000.0, player_stats=[stat(1, 1000.0, rank=2), stat(2, 900.0)]),
        battle("20250104", ratio=2000.0, player_stats=[stat(2, 2000.0)]),
        battle("20250107", ratio=1500.0, opponent_name="Owls", player_stats=[stat(1, 1500.0)]),
    ]

    report = PlayerReportCalculator.player_performance(PLAYER, battles)

    assert report.player_name == "Ava" and report.is_active
    assert [p.battle_id for p in report.performance] == ["20250101", "20250107"]
    assert report.performance[0].date == "2025-01-01"
    assert report.performance[0].rank == 2
    assert report.performance[1].opponent_name == "Owls"
    assert report.performance[1].clan_ratio == 1500.0

    summary = report.summary
    assert summary.total_battles == 3
    assert summary.battles_played == 2
    assert summary.participation_rate == 66.67
    assert summary.average_ratio == 1250.0
    assert summary.min_ratio == 1000.0
    assert summary.max_ratio == 1500.0
    assert summary.clan_average_ratio == 1500.0
    assert summary.comparison_to_clan == -16.67
    assert summary.trend == TREND_STABLE


def test_player_performance_without_battles_played():
    report = PlayerReportCalculator.player_performance(PLAYER, [battle("20250101")])
    assert report.performance == []
    assert report.summary.battles_played == 0
    assert report.summary.participation_rate == 0.0
    assert report.summary.comparison_to_clan == 0.0
    assert report.summary.clan_average_ratio == 1500.0


def test_player_performance_with_no_battles():
    report = PlayerReportCalculator.player_performance(PLAYER, [])
    assert report.summary.total_battles == 0
    assert report.summary.average_ratio == 0.0


def test_matchups_group_by_opponent_and_country():
    battles = [
        battle("20250101", 1, baseline_fp=1000, opponent_fp=900),
        battle("20250104", -1, opponent_name="Owls", opponent_country="United States",
               baseline_fp=1000, opponent_fp=1100),
        battle("20250107", -1, baseline_fp=1000, opponent_fp=950),
        battle("20250110", 0, baseline_fp=1000, opponent_fp=1001),
        battle("20250113", 1, opponent_name=None, opponent_country=None, opponent_fp=1000),
    ]

    report = MatchupCalculator.matchups(battles)

    assert [o.name for o in report.opponents] == ["Hawks", StatsConstants.UNKNOWN_OPPONENT, "Owls"]
    hawks = report.opponents[0]
    assert (hawks.battles, hawks.wins, hawks.losses, hawks.ties) == (3, 1, 1, 1)
    assert hawks.country == "Canada"
    assert hawks.win_rate == 33.33
    assert hawks.average_fp_diff == 50
    assert hawks.is_rival
    assert [b.battle_id for b in hawks.recent_battles] == ["20250110", "20250107", "20250101"]
    assert hawks.recent_battles[0].fp_diff == -1
    assert hawks.recent_battles[0].date == "2025-01-10"
    assert not report.opponents[2].is_rival
    assert report.opponents[2].average_fp_diff == -100

    assert [(c.country, c.percentage) for c in report.countries] == [
        ("Canada", 60.0), (StatsConstants.UNKNOWN_OPPONENT, 20.0), ("United States", 20.0)
    ]
    assert report.countries[2].losses == 1

    assert report.summary.total_battles == 5
    assert report.summary.unique_opponents == 3
    assert report.summary.unique_countries == 3
    assert report.summary.rivals == 1


def test_matchups_keep_only_most_recent_battles():
    battles = [battle(f"202501{day:02d}") for day in range(1, 22, 3)]

    hawks = MatchupCalculator.matchups(battles).opponents[0]

    assert hawks.battles == 7
    assert len(hawks.recent_battles) == StatsConstants.RECENT_MATCHUPS_LIMIT
    assert hawks.recent_battles[0].battle_id == "20250119"
    assert hawks.win_rate == 100.0


def test_matchups_of_no_battles():
    report = MatchupCalculator.matchups([])
    assert report.opponents == [] and report.countries == []
    assert report.summary.total_battles == 0
