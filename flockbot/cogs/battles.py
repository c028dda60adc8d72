"""
Battles Cog - Clan Registration, Roster and Battle Result Entry

Owner-only commands record and correct battle results; the derived
statistics are computed by BattleService when a result is written.
"""

from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from flockbot.config import Config
from flockbot.utils.battle_entry_parser import NONPLAYER_FORMAT, PLAYER_FORMAT, build_battle_entry
from flockbot.utils.embeds import build_battle_embed, build_roster_embed
from flockbot.utils.logger import setup_logger
from flockbot.utils.responses import ACCESS_DENIED, send_failure

logger = setup_logger(__name__)

BATTLE_ARGUMENTS = dict(
    clan="Clan name",
    battle_id="Battle id (YYYYMMDD)",
    score="Clan score",
    baseline_fp="Clan baseline FP",
    opponent_score="Opponent score",
    opponent_fp="Opponent FP",
    players=f"Players as {PLAYER_FORMAT}",
    nonplayers=f"Members who did not play, as {NONPLAYER_FORMAT}",
    opponent_name="Opponent clan name",
    opponent_country="Opponent country",
)


class BattlesCog(commands.Cog):
    """Clan, roster and battle result management"""

    def __init__(self, bot):
        self.bot = bot
        self.clans = bot.clan_service
        self.battles = bot.battle_service
        self.logger = logger

    @staticmethod
    def _is_owner(interaction: discord.Interaction) -> bool:
        return interaction.user.id == Config.OWNER_DISCORD_ID

    async def _member_names(self, clan_id: int):
        roster = await self.clans.get_roster(clan_id, active_only=False)
        return {member.id: member.name for member in roster}

    async def _entry(self, clan_id: int, battle_id: str, score: int, baseline_fp: int,
                     opponent_score: int, opponent_fp: int, players: str,
                     nonplayers: Optional[str], opponent_name: Optional[str],
                     opponent_country: Optional[str]):
        roster = await self.clans.get_roster(clan_id, active_only=False)
        return build_battle_entry(
            battle_id=battle_id,
            score=score,
            baseline_fp=baseline_fp,
            opponent_score=opponent_score,
            opponent_fp=opponent_fp,
            players=players,
            roster=roster,
            nonplayers=nonplayers,
            opponent_name=opponent_name,
            opponent_country=opponent_country,
        )

    @app_commands.command(
        name="admin-register-clan",
        description="Register a clan (Owner only)"
    )
    @app_commands.describe(name="Clan name", country="Clan country")
    async def admin_register_clan(self, interaction: discord.Interaction, name: str,
                                  country: Optional[str] = None):
        if not self._is_owner(interaction):
            await interaction.response.send_message(ACCESS_DENIED, ephemeral=True)
            return

        try:
            await interaction.response.defer(ephemeral=True)
            clan = await self.clans.register_clan(name, country, interaction.user.id)
            await interaction.followup.send(f"✅ Clan **{clan.name}** registered.", ephemeral=True)
        except Exception as e:
            await send_failure(interaction, e, "admin-register-clan")

    @app_commands.command(
        name="admin-add-member",
        description="Add a player to a clan roster (Owner only)"
    )
    @app_commands.describe(clan="Clan name", name="Player name")
    async def admin_add_member(self, interaction: discord.Interaction, clan: str, name: str):
        if not self._is_owner(interaction):
            await interaction.response.send_message(ACCESS_DENIED, ephemeral=True)
            return

        try:
            await interaction.response.defer(ephemeral=True)
            member = await self.clans.add_member(clan, name, interaction.user.id)
            await interaction.followup.send(f"✅ **{member.name}** is on the {clan} roster.", ephemeral=True)
        except Exception as e:
            await send_failure(interaction, e, "admin-add-member")

    @app_commands.command(
        name="admin-remove-member",
        description="Mark a player as no longer on a clan roster (Owner only)"
    )
    @app_commands.describe(clan="Clan name", name="Player name")
    async def admin_remove_member(self, interaction: discord.Interaction, clan: str, name: str):
        if not self._is_owner(interaction):
            await interaction.response.send_message(ACCESS_DENIED, ephemeral=True)
            return

        try:
            await interaction.response.defer(ephemeral=True)
            member = await self.clans.deactivate_member(clan, name, interaction.user.id)
            await interaction.followup.send(f"✅ **{member.name}** removed from the {clan} roster.", ephemeral=True)
        except Exception as e:
            await send_failure(interaction, e, "admin-remove-member")

    @app_commands.command(
        name="admin-record-battle",
        description="Record a clan's battle result (Owner only)"
    )
    @app_commands.describe(**BATTLE_ARGUMENTS)
    async def admin_record_battle(self, interaction: discord.Interaction, clan: str, battle_id: str,
                                  score: int, baseline_fp: int, opponent_score: int, opponent_fp: int,
                                  players: str, nonplayers: Optional[str] = None,
                                  opponent_name: Optional[str] = None,
                                  opponent_country: Optional[str] = None):
        if not self._is_owner(interaction):
            await interaction.response.send_message(ACCESS_DENIED, ephemeral=True)
            return

        try:
            await interaction.response.defer(ephemeral=True)
            clan_row = await self.clans.get_clan_by_name(clan)
            entry = await self._entry(clan_row.id, battle_id, score, baseline_fp, opponent_score,
                                      opponent_fp, players, nonplayers, opponent_name, opponent_country)
            battle = await self.battles.record_battle(clan_row.id, entry)
            embed = build_battle_embed(clan_row.name, battle, await self._member_names(clan_row.id))
            await interaction.followup.send(content="✅ Battle recorded.", embed=embed, ephemeral=True)
        except Exception as e:
            await send_failure(interaction, e, "admin-record-battle")

    @app_commands.command(
        name="admin-update-battle",
        description="Replace a recorded battle result (Owner only)"
    )
    @app_commands.describe(**BATTLE_ARGUMENTS)
    async def admin_update_battle(self, interaction: discord.Interaction, clan: str, battle_id: str,
                                  score: int, baseline_fp: int, opponent_score: int, opponent_fp: int,
                                  players: str, nonplayers: Optional[str] = None,
                                  opponent_name: Optional[str] = None,
                                  opponent_country: Optional[str] = None):
        if not self._is_owner(interaction):
            await interaction.response.send_message(ACCESS_DENIED, ephemeral=True)
            return

        try:
            await interaction.response.defer(ephemeral=True)
            clan_row = await self.clans.get_clan_by_name(clan)
            entry = await self._entry(clan_row.id, battle_id, score, baseline_fp, opponent_score,
                                      opponent_fp, players, nonplayers, opponent_name, opponent_country)
            battle = await self.battles.update_battle(clan_row.id, entry)
            embed = build_battle_embed(clan_row.name, battle, await self._member_names(clan_row.id))
            await interaction.followup.send(content="✅ Battle updated.", embed=embed, ephemeral=True)
        except Exception as e:
            await send_failure(interaction, e, "admin-update-battle")

    @app_commands.command(
        name="battle-result",
        description="Show a clan's recorded result for a battle"
    )
    @app_commands.describe(clan="Clan name", battle_id="Battle id (YYYYMMDD)")
    async def battle_result(self, interaction: discord.Interaction, clan: str, battle_id: str):
        try:
            await interaction.response.defer()
            clan_row = await self.clans.get_clan_by_name(clan)
            battle = await self.battles.get_battle(clan_row.id, battle_id)
            embed = build_battle_embed(clan_row.name, battle, await self._member_names(clan_row.id))
            await interaction.followup.send(embed=embed)
        except Exception as e:
            await send_failure(interaction, e, "battle-result")

    @app_commands.command(
        name="roster",
        description="Show a clan's active roster"
    )
    @app_commands.describe(clan="Clan name")
    async def roster(self, interaction: discord.Interaction, clan: str):
        try:
            await interaction.response.defer()
            clan_row = await self.clans.get_clan_by_name(clan)
            members = await self.clans.get_roster(clan_row.id)
            await interaction.followup.send(embed=build_roster_embed(clan_row.name, members))
        except Exception as e:
            await send_failure(interaction, e, "roster")


async def setup(bot):
    await bot.add_cog(BattlesCog(bot))
