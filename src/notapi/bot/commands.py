"""
Bot commands.

Only a ping command: it measures the round trip of sending a reply and
reports how long the process has been up.
"""

import time

from discord.ext import commands

from notapi.utils.logging import get_logger


def format_uptime(seconds: float) -> str:
    """
    Format a duration as ``{days}d:{hours}h:{minutes}m:{seconds}s``.

    >>> format_uptime(90061)
    '1d:1h:1m:1s'
    """
    total = int(seconds)
    days, total = divmod(total, 86400)
    hours, total = divmod(total, 3600)
    minutes, secs = divmod(total, 60)
    return f"{days}d:{hours}h:{minutes}m:{secs}s"


class UtilityCommands(commands.Cog):
    """Utility commands for the NotAPI bot."""

    def __init__(self, bot) -> None:
        self.bot = bot
        self.logger = get_logger(__name__)

    @commands.hybrid_command(name="ping", description="Show bot response speed and uptime")
    async def ping(self, ctx: commands.Context) -> None:
        """
        Reply "Ping !", then edit the reply into the pong report.

        Args:
            ctx: Command context (prefix or slash invocation)
        """
        start = time.perf_counter()
        reply = await ctx.reply("Ping !")
        elapsed_ms = (time.perf_counter() - start) * 1000
        uptime = format_uptime(time.monotonic() - self.bot.started_at)
        await reply.edit(
            content=f"🏓 Pong !!\n**Speed** - `{elapsed_ms:.2f}ms`\n**Uptime** - `{uptime}`"
        )
        self.logger.debug("Ping answered", user_id=ctx.author.id, speed_ms=round(elapsed_ms, 2))


async def setup_commands(bot) -> None:
    """
    Set up all bot commands.

    Args:
        bot: The Discord bot instance
    """
    logger = get_logger(__name__)
    await bot.add_cog(UtilityCommands(bot))
    logger.info("Bot commands setup complete",
                commands=[cmd.name for cmd in bot.tree.get_commands()])
