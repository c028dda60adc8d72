from types import SimpleNamespace

import pytest

from flockbot.data_models.period import PeriodClanPerformance
from flockbot.utils.exceptions import EmptyPeriodError
from flockbot.utils.period_calculations import PeriodCalculator


def battle(result, ratio, **overrides):
    fields = dict(
        result=result, ratio=ratio, fp=1000, baseline_fp=1100, margin_ratio=10.0,
        fp_margin=5.0, nonplaying_count=2, nonplaying_fp_ratio=10.0,
        reserve_count=1, reserve_fp_ratio=4.0,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def player(player_id, ratio, rank=1, ratio_rank=1, score=100, fp=50):
    return SimpleNamespace(player_id=player_id, ratio=ratio, rank=rank, ratio_rank=ratio_rank, score=score, fp=fp)


def test_clan_summary_counts_and_means():
    battles = [
        battle(1, 2000.0, fp=900, margin_ratio=20.0),
        battle(-1, 1000.0, fp=1100, margin_ratio=-10.0),
        battle(0, 1500.0, fp=1000, margin_ratio=0.0),
        battle(1, 2500.0, fp=1000, margin_ratio=30.0),
    ]

    summary = PeriodCalculator.clan_period_summary(battles, "202501")

    assert summary.battle_count == 4
    assert (summary.won_count, summary.lost_count, summary.tied_count) == (2, 1, 1)
    assert summary.average_ratio == 1750.0
    assert summary.average_fp == 1000.0
    assert summary.average_margin_ratio == 10.0
    assert summary.average_nonplaying_count == 2.0
    assert summary.average_reserve_fp_ratio == 4.0
    assert summary.win_rate == 50.0


def test_clan_summary_rejects_empty_period():
    with pytest.raises(EmptyPeriodError) as excinfo:
        PeriodCalculator.clan_period_summary([], "202501")
    assert excinfo.value.kind == "empty_period"


def test_empty_summary_is_zero_filled():
    summary = PeriodClanPerformance.empty()
    assert summary.battle_count == 0
    assert summary.average_ratio == 0.0
    assert summary.win_rate == 0.0


def test_three_battle_minimum_is_inclusive():
    records = [
        player(1, 1000.0), player(1, 2000.0),                      # 2 battles: excluded
        player(2, 1000.0), player(2, 2000.0), player(2, 3000.0),   # 3 battles: included
    ]

    summaries = PeriodCalculator.individual_period_summaries(records)

    assert [s.player_id for s in summaries] == [2]
    assert summaries[0].battles_played == 3
    assert summaries[0].average_ratio == 2000.0


def test_individual_summary_means():
    records = [
        player(7, 1000.0, rank=1, ratio_rank=2, score=100, fp=100),
        player(7, 2000.0, rank=2, ratio_rank=1, score=300, fp=150),
        player(7, 3000.0, rank=3, ratio_rank=3, score=200, fp=50),
        player(7, 4000.0, rank=2, ratio_rank=2, score=400, fp=100),
    ]

    summary, = PeriodCalculator.individual_period_summaries(records)

    assert summary.battles_played == 4
    assert summary.average_score == 250.0
    assert summary.average_fp == 100.0
    assert summary.average_ratio == 2500.0
    assert summary.average_rank == 2.0
    assert summary.average_ratio_rank == 2.0


def test_group_by_player_keeps_first_appearance_order():
    grouped = PeriodCalculator.group_by_player([player(3, 1), player(1, 1), player(3, 2)])
    assert list(grouped) == [3, 1]
    assert len(grouped[3]) == 2
