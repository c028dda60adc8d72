"""
Interaction reply helpers shared by the cogs.
"""

import discord

from flockbot.utils.embeds import build_error_embed
from flockbot.utils.exceptions import FlockBotException
from flockbot.utils.logger import setup_logger

logger = setup_logger(__name__)

ACCESS_DENIED = "❌ **Access Denied**\nThis command is restricted to the bot owner."


async def send_response(interaction: discord.Interaction, **kwargs):
    """Reply or follow up depending on whether the interaction was already answered"""
    if interaction.response.is_done():
        await interaction.followup.send(**kwargs)
    else:
        await interaction.response.send_message(**kwargs)


async def send_failure(interaction: discord.Interaction, error: Exception, action: str):
    """Report a command failure; FlockBotException carries its own user message"""
    if isinstance(error, FlockBotException):
        logger.info(f"{action} rejected: {error}")
        embed = build_error_embed(error.user_message)
    else:
        logger.error(f"Error in {action}: {error}", exc_info=True)
        embed = build_error_embed("An unexpected error occurred. The developers have been notified.")
    await send_response(interaction, embed=embed, ephemeral=True)
