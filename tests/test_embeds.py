from datetime import date
from types import SimpleNamespace

from flockbot.data_models.period import PeriodClanPerformance, PeriodIndividualPerformance
from flockbot.data_models.schedule import BattleScheduleInfo, BattleWindow, TickResult
from flockbot.utils.embeds import (
    build_matchups_embed, build_period_embed, build_player_report_embed, build_roster_embed,
    build_schedule_embed, build_tick_result_embed, build_trends_embed
)
from flockbot.utils.official_time import battle_end_instant, battle_start_instant, official_datetime
from flockbot.utils.report_calculations import MatchupCalculator, PlayerReportCalculator
from flockbot.utils.trends import TrendCalculator


def window(day, created_by=None):
    return BattleWindow(
        battle_id=day.strftime("%Y%m%d"),
        start_instant=battle_start_instant(day),
        end_instant=battle_end_instant(day),
        created_by=created_by,
    )


def test_schedule_embed():
    info = BattleScheduleInfo(
        current_window=window(date(2025, 1, 15)),
        next_window=None,
        next_battle_start_date=official_datetime(date(2025, 1, 18)),
        available_windows=[window(date(2025, 1, d)) for d in (15, 12, 9, 6, 3, 1)],
    )

    embed = build_schedule_embed(info, max_available=5)

    fields = {f.name: f.value for f in embed.fields}
    assert "20250115" in fields["Current Battle"]
    assert fields["Next Battle Starts"] == "2025-01-18 00:00 (UTC-5)"
    assert fields["Available Battles"].endswith("...and 1 more")


def test_tick_result_embed():
    assert "Failed" in build_tick_result_embed(TickResult(error="boom")).title
    created = TickResult(created=True, advanced=True, battle_id="20250115",
                         next_battle_start=official_datetime(date(2025, 1, 18)))
    assert "20250115" in build_tick_result_embed(created).description
    assert "pending" in build_tick_result_embed(TickResult(skipped_reason="pending")).description


def test_trends_embed():
    battles = [
        SimpleNamespace(battle_id="20250101", result=1, fp=1000, baseline_fp=1000, ratio=2000.0,
                        average_ratio=2000.0, nonplaying_fp_ratio=0.0, reserve_fp_ratio=0.0,
                        margin_ratio=10.0, score=2000, opponent_score=1800, player_count=5,
                        nonplaying_count=0),
    ]
    embed = build_trends_embed("Falcons", TrendCalculator.compute_trends(battles), "battle")
    assert embed.title == "📈 Falcons Trends"
    assert "1 battles" in embed.description

    empty = build_trends_embed("Falcons", TrendCalculator.compute_trends([]), "battle")
    assert empty.description == "No battles recorded in this range."


def test_period_embed():
    summary = PeriodClanPerformance.empty()
    assert build_period_embed("Falcons", "2025", summary, []).description == "No battles recorded in this period."

    summary = PeriodClanPerformance(
        battle_count=3, won_count=2, lost_count=1, tied_count=0, average_fp=1000.0,
        average_baseline_fp=1100.0, average_ratio=2000.0, average_margin_ratio=5.0,
        average_fp_margin=3.0, average_nonplaying_count=1.0, average_nonplaying_fp_ratio=8.0,
        average_reserve_count=0.0, average_reserve_fp_ratio=0.0,
    )
    players = [PeriodIndividualPerformance(7, 3, 100.0, 50.0, 2000.0, 1.0, 1.0)]
    embed = build_period_embed("Falcons", "January 2025", summary, players, {7: "Ava"})
    fields = {f.name: f.value for f in embed.fields}
    assert "**Ava**" in fields["Players"]
    assert "2W / 1L / 0T" in fields["Record"]


def test_player_report_and_matchups_embeds():
    player = SimpleNamespace(id=1, name="Ava", is_active=False)
    stat = SimpleNamespace(player_id=1, ratio=1200.0, rank=1, ratio_rank=1, score=120, fp=100)
    battles = [
        SimpleNamespace(battle_id="20250115", result=1, ratio=1000.0, average_ratio=1000.0,
                        score=1000, opponent_score=900, baseline_fp=1000, opponent_fp=950,
                        opponent_name="Hawks", opponent_country="Canada", player_stats=[stat]),
    ]

    report_embed = build_player_report_embed("Falcons", PlayerReportCalculator.player_performance(player, battles))
    assert "former member" in report_embed.title
    fields = {f.name: f.value for f in report_embed.fields}
    assert "+20.00%" in fields["Vs Clan"]
    assert "`20250115`" in fields["Recent Battles"]

    matchups_embed = build_matchups_embed("Falcons", MatchupCalculator.matchups(battles))
    fields = {f.name: f.value for f in matchups_embed.fields}
    assert "**Hawks** 1W / 0L / 0T" in fields["Opponents"]
    assert "avg FP diff +50" in fields["Opponents"]
    assert "(100.00%)" in fields["Countries"]

    assert "No battles" in build_matchups_embed("Falcons", MatchupCalculator.matchups([])).description


def test_roster_embed():
    embed = build_roster_embed("Falcons", [SimpleNamespace(name="Ava"), SimpleNamespace(name="Ben")])
    assert embed.description == "Ava, Ben"
    assert build_roster_embed("Falcons", []).description == "No active roster members."
