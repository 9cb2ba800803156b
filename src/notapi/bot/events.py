"""
Error handlers for the NotAPI bot.

Failures inside commands or event dispatch are logged and, where there is
someone to answer, acknowledged with a short reply. They never propagate
to the HTTP gateway sharing the process.
"""

import sys
from typing import Any

import discord
from discord.ext import commands

from notapi.utils.logging import get_logger, log_error

FAILURE_REPLY = "❌ Something went wrong, please try again later."


async def setup_events(bot) -> None:
    """
    Register the error handlers on the bot.

    Args:
        bot: The Discord bot instance
    """
    logger = get_logger(__name__)

    @bot.event
    async def on_command_error(ctx: commands.Context, error: commands.CommandError) -> None:
        # Prefix messages that merely look like commands.
        if isinstance(error, commands.CommandNotFound):
            return

        log_error(getattr(error, "original", error), {
            "command": ctx.command.name if ctx.command else "unknown",
            "user_id": ctx.author.id,
            "channel_id": ctx.channel.id,
        })
        try:
            await ctx.send(FAILURE_REPLY)
        except discord.HTTPException as e:
            logger.warning("Could not report command failure", error=str(e))

    async def on_app_command_error(
        interaction: discord.Interaction,
        error: discord.app_commands.AppCommandError,
    ) -> None:
        log_error(getattr(error, "original", error), {
            "command": interaction.command.name if interaction.command else "unknown",
            "user_id": interaction.user.id,
        })
        try:
            if interaction.response.is_done():
                await interaction.followup.send(FAILURE_REPLY, ephemeral=True)
            else:
                await interaction.response.send_message(FAILURE_REPLY, ephemeral=True)
        except discord.HTTPException as e:
            logger.warning("Could not report slash command failure", error=str(e))

    bot.tree.on_error = on_app_command_error

    @bot.event
    async def on_error(event: str, *args: Any, **kwargs: Any) -> None:
        _, exc_value, _ = sys.exc_info()
        if exc_value is None:
            logger.error("Unknown error in event", event_name=event)
            return
        log_error(exc_value, {"event": event, "args": str(args)[:500]})

    logger.debug("Event handlers setup complete")
