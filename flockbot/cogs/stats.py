"""
Stats Cog - Clan Trend and Period Statistics Commands
"""

import calendar
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from flockbot.utils.battle_id import parse_month_id, parse_year_id
from flockbot.utils.embeds import (
    build_matchups_embed, build_period_embed, build_player_report_embed, build_trends_embed
)
from flockbot.utils.logger import setup_logger
from flockbot.utils.official_time import now_official
from flockbot.utils.responses import send_failure
from flockbot.utils.trends import AGGREGATION_BATTLE, AGGREGATION_MONTHLY

logger = setup_logger(__name__)


class StatsCog(commands.Cog):
    """Clan performance reports"""

    def __init__(self, bot):
        self.bot = bot
        self.clans = bot.clan_service
        self.period_stats = bot.period_stats_service
        self.reports = bot.report_service
        self.logger = logger

    async def _resolve_clan(self, clan_name: str):
        return await self.clans.get_clan_by_name(clan_name)

    async def _member_names(self, clan_id: int):
        roster = await self.clans.get_roster(clan_id, active_only=False)
        return {member.id: member.name for member in roster}

    @app_commands.command(
        name="clan-trends",
        description="Show a clan's performance trends"
    )
    @app_commands.describe(
        clan="Clan name",
        start="First battle id (YYYYMMDD), optional",
        end="Last battle id (YYYYMMDD), optional",
        aggregation="One point per battle or per month"
    )
    @app_commands.choices(aggregation=[
        app_commands.Choice(name="Per battle", value=AGGREGATION_BATTLE),
        app_commands.Choice(name="Per month", value=AGGREGATION_MONTHLY),
    ])
    async def clan_trends(self, interaction: discord.Interaction, clan: str,
                          start: Optional[str] = None, end: Optional[str] = None,
                          aggregation: Optional[app_commands.Choice[str]] = None):
        try:
            await interaction.response.defer()
            clan_row = await self._resolve_clan(clan)
            mode = aggregation.value if aggregation else AGGREGATION_BATTLE
            report = await self.reports.get_trends(clan_row.id, start, end, mode)
            await interaction.followup.send(embed=build_trends_embed(clan_row.name, report, mode))
        except Exception as e:
            await send_failure(interaction, e, "clan-trends")

    @app_commands.command(
        name="player-report",
        description="Show one player's performance over time against the clan"
    )
    @app_commands.describe(
        clan="Clan name",
        player="Player name",
        start="First battle id (YYYYMMDD), optional",
        end="Last battle id (YYYYMMDD), optional"
    )
    async def player_report(self, interaction: discord.Interaction, clan: str, player: str,
                            start: Optional[str] = None, end: Optional[str] = None):
        try:
            await interaction.response.defer()
            clan_row = await self._resolve_clan(clan)
            member = await self.clans.get_member_by_name(clan_row.name, player)
            report = await self.reports.get_player_report(clan_row.id, member.id, start, end)
            await interaction.followup.send(embed=build_player_report_embed(clan_row.name, report))
        except Exception as e:
            await send_failure(interaction, e, "player-report")

    @app_commands.command(
        name="matchups",
        description="Show a clan's record against opponents and countries"
    )
    @app_commands.describe(
        clan="Clan name",
        start="First battle id (YYYYMMDD), optional",
        end="Last battle id (YYYYMMDD), optional"
    )
    async def matchups(self, interaction: discord.Interaction, clan: str,
                       start: Optional[str] = None, end: Optional[str] = None):
        try:
            await interaction.response.defer()
            clan_row = await self._resolve_clan(clan)
            report = await self.reports.get_matchups(clan_row.id, start, end)
            await interaction.followup.send(embed=build_matchups_embed(clan_row.name, report))
        except Exception as e:
            await send_failure(interaction, e, "matchups")

    @app_commands.command(
        name="monthly-stats",
        description="Show a clan's statistics for a month"
    )
    @app_commands.describe(clan="Clan name", month="Month as YYYYMM, defaults to the current month")
    async def monthly_stats(self, interaction: discord.Interaction, clan: str, month: Optional[str] = None):
        try:
            await interaction.response.defer()
            clan_row = await self._resolve_clan(clan)
            month_id = month or now_official().strftime('%Y%m')
            year, month_number = parse_month_id(month_id)

            summary = await self.period_stats.get_monthly_clan_summary(clan_row.id, month_id)
            players = await self.period_stats.get_monthly_player_summaries(clan_row.id, month_id)
            embed = build_period_embed(
                clan_row.name,
                f"{calendar.month_name[month_number]} {year}",
                summary,
                players,
                await self._member_names(clan_row.id)
            )
            await interaction.followup.send(embed=embed)
        except Exception as e:
            await send_failure(interaction, e, "monthly-stats")

    @app_commands.command(
        name="yearly-stats",
        description="Show a clan's statistics for a year"
    )
    @app_commands.describe(clan="Clan name", year="Year as YYYY, defaults to the current year")
    async def yearly_stats(self, interaction: discord.Interaction, clan: str, year: Optional[str] = None):
        try:
            await interaction.response.defer()
            clan_row = await self._resolve_clan(clan)
            year_id = year or now_official().strftime('%Y')
            parse_year_id(year_id)

            summary = await self.period_stats.get_yearly_clan_summary(clan_row.id, year_id)
            players = await self.period_stats.get_yearly_player_summaries(clan_row.id, year_id)
            embed = build_period_embed(
                clan_row.name, year_id, summary, players, await self._member_names(clan_row.id)
            )
            await interaction.followup.send(embed=embed)
        except Exception as e:
            await send_failure(interaction, e, "yearly-stats")


async def setup(bot):
    await bot.add_cog(StatsCog(bot))
