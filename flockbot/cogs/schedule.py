"""
Schedule Cog - Battle Scheduler Task & Schedule Commands

Runs the battle scheduler tick on a background loop and provides owner-only
commands for managing the schedule, plus a public schedule overview.
"""

import asyncio
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands, tasks

from flockbot.config import Config
from flockbot.utils.embeds import (
    build_schedule_embed, build_tick_result_embed, build_window_embed
)
from flockbot.utils.logger import setup_logger
from flockbot.utils.official_time import format_official
from flockbot.utils.responses import ACCESS_DENIED, send_failure

logger = setup_logger(__name__)


class ScheduleCog(commands.Cog):
    """Battle schedule background task and commands"""

    def __init__(self, bot):
        self.bot = bot
        self.scheduler = bot.scheduler
        self.master_battles = bot.master_battle_service
        self.logger = logger

    @commands.Cog.listener()
    async def on_ready(self):
        """Start the scheduler loop once the bot is ready"""
        if not Config.BATTLE_SCHEDULER_ENABLED:
            self.logger.info("ScheduleCog: Battle scheduler disabled by BATTLE_SCHEDULER_ENABLED")
            return
        if not self.battle_scheduler_task.is_running():
            self.battle_scheduler_task.start()
            self.logger.info(
                f"ScheduleCog: Battle scheduler started (every {Config.SCHEDULER_INTERVAL_HOURS}h)"
            )

    def cog_unload(self):
        """Stop background tasks when cog is unloaded"""
        self.battle_scheduler_task.cancel()
        self.logger.info("ScheduleCog: Battle scheduler stopped")

    @tasks.loop(hours=Config.SCHEDULER_INTERVAL_HOURS)
    async def battle_scheduler_task(self):
        """Background task that runs one scheduler tick"""
        result = await self.scheduler.check_and_create_battle()
        if result.created:
            self.logger.info(f"Scheduler created battle {result.battle_id}")

    @battle_scheduler_task.before_loop
    async def before_battle_scheduler_task(self):
        """Wait for the bot, and for the first interval unless running on startup"""
        await self.bot.wait_until_ready()
        if not Config.SCHEDULER_RUN_ON_STARTUP:
            await asyncio.sleep(Config.SCHEDULER_INTERVAL_HOURS * 3600)

    @app_commands.command(
        name="admin-set-next-battle",
        description="Set the next battle start date (Owner only)"
    )
    @app_commands.describe(start_date="Start date in Official Time, e.g. 2025-01-15")
    async def admin_set_next_battle(self, interaction: discord.Interaction, start_date: str):
        if interaction.user.id != Config.OWNER_DISCORD_ID:
            await interaction.response.send_message(ACCESS_DENIED, ephemeral=True)
            return

        try:
            await interaction.response.defer(ephemeral=True)
            next_start = await self.master_battles.update_next_battle_date(start_date, interaction.user.id)
            embed = discord.Embed(
                title="✅ Next Battle Updated",
                description=f"The next battle starts {format_official(next_start)}.",
                color=discord.Color.green()
            )
            await interaction.followup.send(embed=embed, ephemeral=True)
        except Exception as e:
            await send_failure(interaction, e, "admin-set-next-battle")

    @app_commands.command(
        name="admin-create-battle",
        description="Create a battle window for a date (Owner only)"
    )
    @app_commands.describe(
        start_date="Start date in Official Time, e.g. 2025-01-15",
        notes="Optional notes stored with the battle"
    )
    async def admin_create_battle(self, interaction: discord.Interaction, start_date: str,
                                  notes: Optional[str] = None):
        if interaction.user.id != Config.OWNER_DISCORD_ID:
            await interaction.response.send_message(ACCESS_DENIED, ephemeral=True)
            return

        try:
            await interaction.response.defer(ephemeral=True)
            window = await self.master_battles.create_master_battle(start_date, interaction.user.id, notes)
            await interaction.followup.send(embed=build_window_embed(window), ephemeral=True)
        except Exception as e:
            await send_failure(interaction, e, "admin-create-battle")

    @app_commands.command(
        name="admin-scheduler-enabled",
        description="Enable or disable automatic battle creation (Owner only)"
    )
    async def admin_scheduler_enabled(self, interaction: discord.Interaction, enabled: bool):
        if interaction.user.id != Config.OWNER_DISCORD_ID:
            await interaction.response.send_message(ACCESS_DENIED, ephemeral=True)
            return

        try:
            await interaction.response.defer(ephemeral=True)
            await self.scheduler.set_scheduler_enabled(enabled, interaction.user.id)
            state = "enabled" if enabled else "disabled"
            await interaction.followup.send(f"✅ Battle scheduler {state}.", ephemeral=True)
        except Exception as e:
            await send_failure(interaction, e, "admin-scheduler-enabled")

    @app_commands.command(
        name="admin-run-scheduler",
        description="Run the battle scheduler check now (Owner only)"
    )
    async def admin_run_scheduler(self, interaction: discord.Interaction):
        if interaction.user.id != Config.OWNER_DISCORD_ID:
            await interaction.response.send_message(ACCESS_DENIED, ephemeral=True)
            return

        await interaction.response.defer(ephemeral=True)
        result = await self.scheduler.check_and_create_battle()
        await interaction.followup.send(embed=build_tick_result_embed(result), ephemeral=True)

    @app_commands.command(
        name="battle-schedule",
        description="Show the current and upcoming battles"
    )
    async def battle_schedule(self, interaction: discord.Interaction):
        try:
            await interaction.response.defer()
            info = await self.master_battles.get_schedule_info()
            await interaction.followup.send(embed=build_schedule_embed(info))
        except Exception as e:
            await send_failure(interaction, e, "battle-schedule")


async def setup(bot):
    await bot.add_cog(ScheduleCog(bot))
