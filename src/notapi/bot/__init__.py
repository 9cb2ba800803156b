"""Discord bot: ping command, direct-message relay and operator channel."""

from notapi.bot.channel import DiscordChannel
from notapi.bot.client import NotAPIBot

__all__ = ["DiscordChannel", "NotAPIBot"]
