"""
Shared embed utilities for the clan battle bot.

Provides reusable embed builders so schedule and stats output looks the
same across cogs.
"""

import discord
from datetime import datetime, timezone
from typing import Dict, List, Optional

from flockbot.constants import BattleResult, UIConstants
from flockbot.data_models.period import PeriodClanPerformance, PeriodIndividualPerformance
from flockbot.data_models.reports import MatchupReport, PlayerPerformanceReport
from flockbot.data_models.schedule import BattleScheduleInfo, BattleWindow, TickResult
from flockbot.data_models.trends import TrendReport
from flockbot.utils.official_time import format_official

RESULT_EMOJI = {
    BattleResult.WIN: UIConstants.WIN_EMOJI,
    BattleResult.LOSS: UIConstants.LOSS_EMOJI,
    BattleResult.TIE: UIConstants.TIE_EMOJI,
}


def _window_line(window: BattleWindow) -> str:
    origin = "auto" if window.is_automatic else f"<@{window.created_by}>"
    return (
        f"`{window.battle_id}` {format_official(window.start_instant)} → "
        f"{format_official(window.end_instant)} ({origin})"
    )


def build_error_embed(message: str, title: str = "❌ Error") -> discord.Embed:
    return discord.Embed(
        title=title,
        description=message,
        color=UIConstants.ERROR_COLOR
    )


def build_window_embed(window: BattleWindow, title: str = "✅ Battle Created") -> discord.Embed:
    embed = discord.Embed(
        title=title,
        description=_window_line(window),
        color=UIConstants.SUCCESS_COLOR,
        timestamp=datetime.now(timezone.utc)
    )
    if window.notes:
        embed.add_field(name="Notes", value=window.notes[:1024], inline=False)
    return embed


def build_schedule_embed(info: BattleScheduleInfo, max_available: int = 5) -> discord.Embed:
    """
    Build the battle schedule overview.

    Args:
        info: Schedule information from MasterBattleService.get_schedule_info
        max_available: How many playable windows to list

    Returns:
        Embed with the current window, the next start and recent windows
    """
    embed = discord.Embed(
        title="📅 Battle Schedule",
        color=UIConstants.DEFAULT_EMBED_COLOR,
        timestamp=datetime.now(timezone.utc)
    )

    embed.add_field(
        name="Current Battle",
        value=_window_line(info.current_window) if info.current_window else "No battle in progress",
        inline=False
    )

    next_value = format_official(info.next_battle_start_date)
    if info.next_window:
        next_value += f"\nWindow `{info.next_window.battle_id}` already exists"
    embed.add_field(name="Next Battle Starts", value=next_value, inline=False)

    if info.available_windows:
        lines = [_window_line(w) for w in info.available_windows[:max_available]]
        remaining = len(info.available_windows) - max_available
        if remaining > 0:
            lines.append(f"...and {remaining} more")
        embed.add_field(name="Available Battles", value="\n".join(lines), inline=False)

    embed.set_footer(text="All times are Official Time (UTC-5, no daylight saving)")
    return embed


def build_tick_result_embed(result: TickResult) -> discord.Embed:
    if not result.ok:
        return build_error_embed(result.error, title="❌ Scheduler Tick Failed")

    if result.advanced:
        title = "✅ Battle Created" if result.created else "ℹ️ Battle Already Existed"
        description = f"Battle `{result.battle_id}`; next battle starts {format_official(result.next_battle_start)}"
        color = UIConstants.SUCCESS_COLOR
    else:
        title = "ℹ️ Nothing To Do"
        description = f"Skipped: {result.skipped_reason}"
        if result.next_battle_start:
            description += f"\nNext battle starts {format_official(result.next_battle_start)}"
        color = UIConstants.DEFAULT_EMBED_COLOR

    return discord.Embed(title=title, description=description, color=color)


def build_trends_embed(clan_name: str, report: TrendReport, aggregation: str,
                       max_points: int = 10) -> discord.Embed:
    """Summary of a trend report plus the most recent ratio points"""
    summary = report.summary
    embed = discord.Embed(
        title=f"📈 {clan_name} Trends",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )

    if summary.battle_count == 0:
        embed.description = "No battles recorded in this range."
        return embed

    embed.description = f"{summary.battle_count} battles from {summary.start_date} to {summary.end_date}"

    fp = summary.fp_trend
    embed.add_field(
        name="Baseline FP",
        value=f"{fp.start:,} → {fp.end:,} ({fp.change:+,}, {fp.change_percent:+.2f}%)",
        inline=False
    )
    embed.add_field(
        name="Ratio",
        value=f"avg {summary.ratio_trend.average:.2f}\nmin {summary.ratio_trend.min:.2f} / max {summary.ratio_trend.max:.2f}",
        inline=True
    )
    embed.add_field(
        name="Participation",
        value=f"avg {summary.participation_trend.average:.2f}%\nmin {summary.participation_trend.min:.2f}% / max {summary.participation_trend.max:.2f}%",
        inline=True
    )

    wl = summary.win_loss
    embed.add_field(
        name="Record",
        value=(
            f"{wl.wins}W / {wl.losses}L / {wl.ties}T ({wl.win_rate:.2f}%)\n"
            f"Avg win margin {wl.avg_win_margin:.2f}% · Avg loss margin {wl.avg_loss_margin:.2f}%"
        ),
        inline=False
    )

    lines = []
    for ratio_point, margin_point in list(zip(report.ratio, report.margin))[-max_points:]:
        emoji = RESULT_EMOJI[BattleResult(margin_point.result)]
        lines.append(f"{emoji} `{ratio_point.battle_id}` ratio {ratio_point.ratio:.2f}")
    label = "Recent Months" if aggregation == 'monthly' else "Recent Battles"
    embed.add_field(name=label, value="\n".join(lines), inline=False)
    return embed


def build_period_embed(clan_name: str, period_label: str, clan_summary: PeriodClanPerformance,
                       player_summaries: List[PeriodIndividualPerformance],
                       member_names: Optional[Dict[int, str]] = None) -> discord.Embed:
    """
    Build a monthly or yearly statistics embed.

    Args:
        clan_name: Clan display name
        period_label: Human label such as "January 2025" or "2025"
        clan_summary: Clan-level averages (may be the empty summary)
        player_summaries: Qualifying players, best average ratio first
        member_names: Optional roster id -> name mapping

    Returns:
        Embed with clan averages and a ranked player table
    """
    member_names = member_names or {}
    embed = discord.Embed(
        title=f"📊 {clan_name}: {period_label}",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )

    if clan_summary.battle_count == 0:
        embed.description = "No battles recorded in this period."
        return embed

    embed.add_field(
        name="Record",
        value=(
            f"{clan_summary.battle_count} battles: {clan_summary.won_count}W / "
            f"{clan_summary.lost_count}L / {clan_summary.tied_count}T "
            f"({clan_summary.win_rate:.1f}%)"
        ),
        inline=False
    )
    embed.add_field(name="Avg Ratio", value=f"{clan_summary.average_ratio:.2f}", inline=True)
    embed.add_field(name="Avg Margin", value=f"{clan_summary.average_margin_ratio:.2f}%", inline=True)
    embed.add_field(name="Avg FP", value=f"{clan_summary.average_fp:,.0f}", inline=True)
    embed.add_field(
        name="Nonplaying",
        value=f"{clan_summary.average_nonplaying_count:.1f} members · {clan_summary.average_nonplaying_fp_ratio:.2f}% FP",
        inline=True
    )
    embed.add_field(
        name="Reserve",
        value=f"{clan_summary.average_reserve_count:.1f} members · {clan_summary.average_reserve_fp_ratio:.2f}% FP",
        inline=True
    )

    if player_summaries:
        rows = []
        for position, player in enumerate(player_summaries[:UIConstants.MAX_PLAYER_ROWS], start=1):
            name = member_names.get(player.player_id, f"#{player.player_id}")
            rows.append(
                f"`{position:>2}.` **{name}** ratio {player.average_ratio:.2f} "
                f"({player.battles_played} battles, avg rank {player.average_rank:.1f})"
            )
        value = "\n".join(rows)
    else:
        value = "No players with enough battles in this period."
    embed.add_field(name="Players", value=value[:1024], inline=False)

    return embed


def build_battle_embed(clan_name: str, battle, member_names: Optional[Dict[int, str]] = None,
                       title: str = None) -> discord.Embed:
    """Recorded battle with its derived statistics and player table"""
    member_names = member_names or {}
    result = BattleResult(battle.result)
    opponent = battle.opponent_name or "Unknown opponent"
    if battle.opponent_country:
        opponent += f" ({battle.opponent_country})"

    embed = discord.Embed(
        title=title or f"{RESULT_EMOJI[result]} {clan_name} vs {opponent}",
        description=(
            f"Battle `{battle.battle_id}`: **{result.display_name}** "
            f"{battle.score:,} to {battle.opponent_score:,}"
        ),
        color=UIConstants.SUCCESS_COLOR if result == BattleResult.WIN else UIConstants.DEFAULT_EMBED_COLOR
    )
    embed.add_field(name="Ratio", value=f"{battle.ratio:.2f} (avg {battle.average_ratio:.2f})", inline=True)
    embed.add_field(name="Margin", value=f"{battle.margin_ratio:.2f}%", inline=True)
    embed.add_field(
        name="FP",
        value=f"{battle.fp:,} total · {battle.baseline_fp:,} baseline ({battle.fp_margin:+.2f}% vs opponent)",
        inline=False
    )
    embed.add_field(
        name="Nonplaying",
        value=(
            f"{battle.nonplaying_count} members ({battle.nonplaying_fp_ratio:.2f}% FP) · "
            f"{battle.reserve_count} reserves ({battle.reserve_fp_ratio:.2f}% FP)"
        ),
        inline=False
    )

    rows = []
    for stat in sorted(battle.player_stats, key=lambda s: s.rank)[:UIConstants.MAX_PLAYER_ROWS]:
        name = member_names.get(stat.player_id, f"#{stat.player_id}")
        rows.append(
            f"`{stat.rank:>2}.` **{name}** {stat.score:,} pts · ratio {stat.ratio:.2f} (#{stat.ratio_rank})"
        )
    if rows:
        embed.add_field(name="Players", value="\n".join(rows)[:1024], inline=False)
    return embed


def build_roster_embed(clan_name: str, members: List) -> discord.Embed:
    embed = discord.Embed(
        title=f"👥 {clan_name} Roster",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )
    if not members:
        embed.description = "No active roster members."
        return embed
    embed.description = ", ".join(member.name for member in members)[:4096]
    embed.set_footer(text=f"{len(members)} active members")
    return embed


def build_player_report_embed(clan_name: str, report: PlayerPerformanceReport,
                              max_points: int = 10) -> discord.Embed:
    """A player's ratio over time against the clan average"""
    summary = report.summary
    status = "" if report.is_active else " (former member)"
    embed = discord.Embed(
        title=f"🎯 {report.player_name}{status}: {clan_name}",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )

    if summary.battles_played == 0:
        embed.description = f"No battles played out of {summary.total_battles} in this range."
        return embed

    embed.description = (
        f"Played {summary.battles_played} of {summary.total_battles} battles "
        f"({summary.participation_rate:.2f}%) · trend **{summary.trend}**"
    )
    embed.add_field(
        name="Ratio",
        value=f"avg {summary.average_ratio:.2f}\nmin {summary.min_ratio:.2f} / max {summary.max_ratio:.2f}",
        inline=True
    )
    embed.add_field(
        name="Vs Clan",
        value=f"clan avg {summary.clan_average_ratio:.2f}\n{summary.comparison_to_clan:+.2f}%",
        inline=True
    )

    lines = [
        f"`{point.battle_id}` ratio {point.player_ratio:.2f} (clan {point.clan_ratio:.2f}) · rank {point.rank}"
        for point in report.performance[-max_points:]
    ]
    embed.add_field(name="Recent Battles", value="\n".join(lines)[:1024], inline=False)
    return embed


def build_matchups_embed(clan_name: str, report: MatchupReport, max_rows: int = 10) -> discord.Embed:
    """Records against the most faced opponents and countries"""
    summary = report.summary
    embed = discord.Embed(
        title=f"⚔️ {clan_name} Matchups",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )

    if summary.total_battles == 0:
        embed.description = "No battles recorded in this range."
        return embed

    embed.description = (
        f"{summary.total_battles} battles against {summary.unique_opponents} opponents "
        f"from {summary.unique_countries} countries · {summary.rivals} rivals"
    )

    opponent_lines = []
    for opponent in report.opponents[:max_rows]:
        rival = " ⭐" if opponent.is_rival else ""
        opponent_lines.append(
            f"**{opponent.name}**{rival} {opponent.wins}W / {opponent.losses}L / {opponent.ties}T "
            f"({opponent.win_rate:.2f}%) · avg FP diff {opponent.average_fp_diff:+,}"
        )
    embed.add_field(name="Opponents", value="\n".join(opponent_lines)[:1024], inline=False)

    country_lines = [
        f"**{country.country}** {country.battles} battles ({country.percentage:.2f}%) · "
        f"{country.win_rate:.2f}% won"
        for country in report.countries[:max_rows]
    ]
    embed.add_field(name="Countries", value="\n".join(country_lines)[:1024], inline=False)
    return embed
