"""
Discord bot client.

The bot shares the process with the HTTP gateway. It answers a ping
command, echoes the raw form of direct messages back to their sender,
and is the transport for the operator audit channel.
"""

import io
import json
import time
from datetime import timedelta
from typing import Any, Dict

import discord
from discord.ext import commands

from notapi.config import AppConfig
from notapi.utils.logging import get_service_logger, log_error

# Messages older than this are ignored.
MAX_MESSAGE_AGE = timedelta(minutes=5)

# Discord's limit on plain message content.
MESSAGE_LIMIT = 2000


def message_to_dict(message: discord.Message) -> Dict[str, Any]:
    """Raw, JSON-serializable view of a message."""
    return {
        "id": message.id,
        "channel_id": message.channel.id,
        "author": {
            "id": message.author.id,
            "name": str(message.author),
            "bot": message.author.bot,
        },
        "content": message.content,
        "created_at": message.created_at.isoformat(),
        "edited_at": message.edited_at.isoformat() if message.edited_at else None,
        "attachments": [attachment.url for attachment in message.attachments],
        "reference": message.reference.message_id if message.reference else None,
    }


def is_fresh(message: discord.Message) -> bool:
    return discord.utils.utcnow() - message.created_at < MAX_MESSAGE_AGE


class NotAPIBot(commands.Bot):
    """
    Discord bot for the NotAPI gateway.

    Attributes:
        config: Application configuration
        started_at: Monotonic timestamp of bot creation, used for uptime
    """

    def __init__(self, config: AppConfig) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        intents.dm_messages = True

        super().__init__(
            command_prefix=config.discord.command_prefix,
            intents=intents,
            help_command=None,
        )

        self.config = config
        self.started_at = time.monotonic()
        self.logger = get_service_logger("discord")
        self._setup_complete = False

    @property
    def relay_skip(self) -> tuple:
        return ("/ping", f"{self.config.discord.command_prefix}ping")

    async def setup(self) -> None:
        """Load commands and event handlers. Must run before ``start``."""
        if self._setup_complete:
            return

        from notapi.bot.commands import setup_commands
        from notapi.bot.events import setup_events
        await setup_commands(self)
        await setup_events(self)

        self._setup_complete = True

    async def on_ready(self) -> None:
        """Register slash commands in production, log identity otherwise."""
        self.logger.info("Bot is ready and connected to Discord",
                         bot_user=str(self.user), guild_count=len(self.guilds))

        if not self.config.is_production:
            self.logger.info("Development mode, skipping command sync",
                             bot_id=self.user.id if self.user else None)
            return

        try:
            synced = await self.tree.sync()
            self.logger.info("Synced commands globally", command_count=len(synced))
        except discord.DiscordException as e:
            self.logger.error("Failed to sync commands globally", error=str(e))

    async def on_message(self, message: discord.Message) -> None:
        """
        Relay direct messages, then process commands.

        Args:
            message: The Discord message object
        """
        if message.author.bot or not is_fresh(message):
            return

        if isinstance(message.channel, discord.DMChannel):
            text = message.content.lower()
            if not any(skip in text for skip in self.relay_skip):
                await self.relay_raw(message)
                return

        await self.process_commands(message)

    async def relay_raw(self, message: discord.Message) -> None:
        """Reply with the message's raw JSON form."""
        raw = json.dumps(message_to_dict(message), indent=2, ensure_ascii=False)
        body = f"```json\n{raw}\n```"
        try:
            if len(body) <= MESSAGE_LIMIT:
                await message.reply(body)
            else:
                await message.reply(file=discord.File(io.BytesIO(raw.encode("utf-8")), filename="message.json"))
        except discord.HTTPException as e:
            log_error(e, {"message_id": message.id, "operation": "relay_raw"})

    async def close(self) -> None:
        """Close the Discord connection."""
        self.logger.info("Shutting down Discord bot")
        await super().close()
