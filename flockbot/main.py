import asyncio
import logging
import traceback
from typing import Optional

import discord
from discord.ext import commands
from discord import app_commands

from flockbot.config import Config
from flockbot.database.database import Database
from flockbot.services.battle_scheduler import BattleSchedulerService
from flockbot.services.battle_service import BattleService
from flockbot.services.clan_service import ClanService
from flockbot.services.master_battle import MasterBattleService
from flockbot.services.period_stats import PeriodStatsService
from flockbot.services.reports import ReportService
from flockbot.services.settings import SettingsService
from flockbot.utils.logger import setup_logger


class FlockBot(commands.Bot):
    def __init__(self):
        intents = discord.Intents.default()
        intents.guilds = True

        super().__init__(
            command_prefix=Config.COMMAND_PREFIX,
            intents=intents,
            help_command=None
        )

        # Attach app command error handler
        self.tree.on_error = self.on_app_command_error

        self.db: Optional[Database] = None
        self.settings_service: Optional[SettingsService] = None
        self.scheduler: Optional[BattleSchedulerService] = None
        self.master_battle_service: Optional[MasterBattleService] = None
        self.battle_service: Optional[BattleService] = None
        self.clan_service: Optional[ClanService] = None
        self.period_stats_service: Optional[PeriodStatsService] = None
        self.report_service: Optional[ReportService] = None
        self.logger = setup_logger(__name__)

    async def setup_hook(self):
        """Called when the bot is starting up"""
        self.logger.info("Setting up FlockBot...")

        # Initialize database
        self.db = Database()
        await self.db.initialize()

        # Services share the database and the settings store
        self.settings_service = SettingsService(self.db.session_factory)
        self.scheduler = BattleSchedulerService(self.db, self.settings_service)
        self.master_battle_service = MasterBattleService(self.db, self.settings_service)
        self.battle_service = BattleService(self.db)
        self.clan_service = ClanService(self.db)
        self.period_stats_service = PeriodStatsService(self.db)
        self.report_service = ReportService(self.db)
        self.logger.info("Services initialized")

        await self.load_cogs()
        await self._sync_commands()

        self.logger.info("FlockBot setup complete!")

    async def load_cogs(self):
        """Load all cogs"""
        cogs_to_load = [
            'flockbot.cogs.schedule',
            'flockbot.cogs.battles',
            'flockbot.cogs.stats',
        ]

        for cog in cogs_to_load:
            try:
                await self.load_extension(cog)
                self.logger.info(f"Loaded cog: {cog}")
            except Exception as e:
                self.logger.error(f"Failed to load cog {cog}: {e}", exc_info=True)

    async def _sync_commands(self):
        """Sync slash commands with Discord"""
        if not self.tree.get_commands():
            self.logger.warning("No application commands found to sync. Check for cog loading errors.")
            return

        try:
            guild_ids = Config.get_guild_ids()

            if guild_ids:
                # Guild-specific sync (instant updates)
                self.logger.info(f"Attempting to sync commands to {len(guild_ids)} guild(s): {guild_ids}...")

                total_synced = 0
                for guild_id in guild_ids:
                    try:
                        guild = discord.Object(id=guild_id)
                        self.tree.copy_global_to(guild=guild)
                        synced = await self.tree.sync(guild=guild)
                        self.logger.info(f"Successfully synced {len(synced)} command(s) to guild {guild_id}")
                        total_synced += len(synced)
                    except discord.errors.Forbidden:
                        self.logger.error(f"Permission error syncing to guild {guild_id}. Ensure the bot has the 'application.commands' scope and is in the guild.", exc_info=True)
                    except discord.errors.HTTPException as e:
                        self.logger.error(f"HTTP error syncing to guild {guild_id}. Status: {e.status}, Response: {e.text}", exc_info=True)

                self.logger.info(f"Multi-guild sync complete: {total_synced} total command instances deployed")
            else:
                # Global sync (can take up to 1 hour to propagate)
                self.logger.info("Attempting to sync commands globally... (Note: This can take up to an hour to propagate)")
                synced = await self.tree.sync()
                self.logger.info(f"Successfully synced {len(synced)} command(s) globally")
                for cmd in synced:
                    self.logger.info(f"  - {cmd.name}: {cmd.description}")
        except Exception as e:
            # Bot keeps running with whatever commands are already registered
            self.logger.error(f"Failed to sync commands: {e}", exc_info=True)

    async def on_ready(self):
        """Called when the bot is ready"""
        self.logger.info(f'{self.user} has connected to Discord!')
        self.logger.info(f'Bot is in {len(self.guilds)} guilds')

        await self.change_presence(
            activity=discord.Game(name="Clan Battles | /battle-schedule")
        )

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Global error handler for slash commands"""
        command_name = interaction.command.name if interaction.command else 'Unknown'

        if isinstance(error, app_commands.CheckFailure):
            self.logger.info(f"Permission denied for command '{command_name}' by user {interaction.user}")
        else:
            self.logger.error(f"Error in app command '{command_name}': {error}", exc_info=True)

        if isinstance(error, app_commands.CommandOnCooldown):
            title = f"❌ Command is on cooldown. Try again in {error.retry_after:.2f} seconds."
        elif isinstance(error, app_commands.CheckFailure):
            title = "❌ Permission Denied"
        else:
            title = "❌ An unexpected error occurred while processing your command."

        error_embed = discord.Embed(title=title, color=discord.Color.red())

        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=error_embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=error_embed, ephemeral=True)
        except discord.HTTPException as e:
            self.logger.error(f"Failed to send error response: {e}")

    async def close(self):
        """Cleanup when bot is shutting down"""
        self.logger.info("Shutting down FlockBot...")

        if self.db:
            await self.db.close()

        await super().close()


async def main():
    """Main entry point"""
    Config.validate()

    bot = FlockBot()

    try:
        await bot.start(Config.DISCORD_TOKEN)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        traceback.print_exc()
    finally:
        await bot.close()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
