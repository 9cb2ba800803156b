"""
Discord implementation of the operator message channel.

Formatted text goes out as embeds, plain text as message content and files
as attachments. Text longer than Discord accepts in one place is split
across several embeds or messages; a code block cut by a split is closed
and reopened so every piece renders on its own.
"""

import io
from typing import Iterator, List, Optional

import discord

from notapi.utils.exceptions import ChannelError
from notapi.utils.logging import get_service_logger

# Discord limits: one embed description, all embeds of one message, embeds
# per message, plain message content.
DESCRIPTION_LIMIT = 4096
MESSAGE_EMBEDS_LIMIT = 6000
EMBEDS_PER_MESSAGE = 10
CONTENT_LIMIT = 2000

FENCE = "```"


def split_markdown(text: str, limit: int) -> List[str]:
    """
    Split markdown into pieces of at most ``limit`` characters.

    Lines are kept whole where they fit; longer lines are cut. A piece that
    ends inside a code block gets a closing fence, and the next piece starts
    with the same opening fence.

    >>> split_markdown("```\\nabcdef\\n```", 12)
    ['```\\nabcd\\n```', '```\\nef\\n```']
    """
    if len(text) <= limit:
        return [text]

    pieces: List[str] = []
    current = ""
    opener: Optional[str] = None
    for line in text.split("\n"):
        is_fence = line.startswith(FENCE)
        while True:
            separator = "\n" if current else ""
            closing = len("\n" + FENCE) if opener else 0
            room = limit - len(current) - len(separator) - closing
            # A closing fence may use the room kept for it.
            if len(line) <= room or (opener and is_fence and len(line) <= room + closing):
                current += separator + line
                break
            # Fence lines move whole to the next piece unless it would start with them.
            if room > 0 and (not is_fence or current == (opener or "")):
                current += separator + line[:room]
                line = line[room:]
            if opener:
                current += "\n" + FENCE
            pieces.append(current)
            current = opener or ""
        if is_fence:
            opener = None if opener else line
    if current:
        pieces.append(current)
    return pieces


def batch_embeds(descriptions: List[str]) -> Iterator[List[discord.Embed]]:
    """Group embed descriptions into messages within Discord's per-message limits."""
    batch: List[discord.Embed] = []
    size = 0
    for description in descriptions:
        if batch and (len(batch) == EMBEDS_PER_MESSAGE or size + len(description) > MESSAGE_EMBEDS_LIMIT):
            yield batch
            batch, size = [], 0
        batch.append(discord.Embed(description=description, color=discord.Color.blurple()))
        size += len(description)
    if batch:
        yield batch


class DiscordChannel:
    """
    Sends operator notifications through a discord.py client.

    Attributes:
        client: The bot used to reach Discord; None when no token is set
    """

    def __init__(self, client: Optional[discord.Client]) -> None:
        self.client = client
        self.logger = get_service_logger("discord")

    async def _resolve(self, channel_id: int) -> discord.abc.Messageable:
        if self.client is None or not self.client.is_ready():
            raise ChannelError("Discord client is not connected", context={"channel_id": channel_id})

        channel = self.client.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(channel_id)
            except discord.HTTPException as e:
                raise ChannelError(
                    "Operator channel not found",
                    context={"channel_id": channel_id},
                    original_error=e,
                )
        return channel

    async def send_text(self, channel_id: int, text: str, formatted: bool = True) -> None:
        channel = await self._resolve(channel_id)
        messages = 0
        try:
            if formatted:
                for embeds in batch_embeds(split_markdown(text, DESCRIPTION_LIMIT)):
                    await channel.send(embeds=embeds)
                    messages += 1
            else:
                for piece in split_markdown(text, CONTENT_LIMIT):
                    await channel.send(piece)
                    messages += 1
        except discord.HTTPException as e:
            raise ChannelError(
                "Failed to send message to Discord",
                context={"channel_id": channel_id, "message_length": len(text), "sent": messages},
                original_error=e,
            )
        self.logger.debug("Notification sent", channel_id=channel_id, length=len(text), messages=messages)

    async def send_file(self, channel_id: int, filename: str, content: bytes) -> None:
        channel = await self._resolve(channel_id)
        try:
            await channel.send(file=discord.File(io.BytesIO(content), filename=filename))
        except discord.HTTPException as e:
            raise ChannelError(
                "Failed to send file to Discord",
                context={"channel_id": channel_id, "filename": filename, "size": len(content)},
                original_error=e,
            )
        self.logger.debug("Notification file sent", channel_id=channel_id, filename=filename)
