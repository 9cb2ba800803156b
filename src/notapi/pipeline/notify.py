"""
Notification sink for the operator audit channel.

Every recognized API call is reported to the operator channel together
with the caller's request context. Small results go inline; large ones are
attached as a text file. Delivery problems get one degraded retry and are
otherwise dropped, so they never affect the HTTP response.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Protocol, Tuple

from notapi.api.context import RequestContext
from notapi.utils.logging import get_logger, log_error

# Results this long or longer are sent as a file attachment.
INLINE_LIMIT = 4096

_MARKUP = re.compile(r"\*\*|`")


class MessageChannel(Protocol):
    """
    What the sink needs from a messaging service.

    ``send_text`` must deliver text of any length, splitting it as the
    service requires; the inline record is the serialized result plus its
    fences and context block, so it can exceed INLINE_LIMIT.
    """

    async def send_text(self, channel_id: int, text: str, formatted: bool = True) -> None:
        ...

    async def send_file(self, channel_id: int, filename: str, content: bytes) -> None:
        ...


@dataclass(frozen=True)
class NotificationEnvelope:
    """An audit record ready for delivery."""

    provider: str
    serialized_result: str
    context_lines: List[str] = field(default_factory=list)

    @property
    def context_block(self) -> str:
        return "\n".join(self.context_lines)

    @property
    def plain_context_block(self) -> str:
        return _MARKUP.sub("", self.context_block)

    @property
    def is_inline(self) -> bool:
        return len(self.serialized_result) < INLINE_LIMIT

    def inline_text(self) -> str:
        return f"```json\n{self.serialized_result}\n```\n\n{self.context_block}"

    def attachment(self, ip: str) -> Tuple[str, bytes]:
        digits = "".join(char for char in ip if char.isdigit()) or "0"
        filename = f"{self.provider}_{digits}.txt"
        content = f"{self.serialized_result}\n\n{self.plain_context_block}"
        return filename, content.encode("utf-8")

    def fallback_text(self, error: Exception) -> str:
        return f"```\n{error}\n```\n\n{self.context_block}"


@dataclass
class DeliveryReport:
    """What happened to one notification."""

    path: str
    delivered: bool = False
    fallback_attempted: bool = False
    fallback_delivered: bool = False
    error: Optional[str] = None


def build_envelope(provider: str, payload: Mapping[str, Any], context: RequestContext) -> NotificationEnvelope:
    """
    Build the audit record for a provider result.

    Args:
        provider: Provider name from the URL
        payload: The JSON record returned to the caller
        context: The caller's request context

    Returns:
        Envelope with the pretty-printed result and one ``**KEY:** `value```
        line per context field
    """
    serialized = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    lines = [f"**{key.upper()}:** `{value}`" for key, value in context.items()]
    return NotificationEnvelope(provider=provider, serialized_result=serialized, context_lines=lines)


class NotificationSink:
    """
    Delivers audit records to the operator channel.

    Attributes:
        channel: Messaging service used for delivery
        channel_id: Operator channel; None disables delivery
    """

    def __init__(self, channel: MessageChannel, channel_id: Optional[int]) -> None:
        self.channel = channel
        self.channel_id = channel_id
        self.logger = get_logger(__name__)

    async def notify(self, provider: str, payload: Mapping[str, Any], context: RequestContext) -> DeliveryReport:
        """
        Send one audit record, falling back once on failure.

        Never raises: the returned report says which path was taken and
        whether the fallback fired.
        """
        envelope = build_envelope(provider, payload, context)

        if self.channel_id is None:
            self.logger.warning("No operator channel configured, dropping notification",
                                provider=provider)
            return DeliveryReport(path="disabled")

        report = DeliveryReport(path="inline" if envelope.is_inline else "file")
        try:
            if envelope.is_inline:
                await self.channel.send_text(self.channel_id, envelope.inline_text(), formatted=True)
            else:
                filename, content = envelope.attachment(context.ip)
                await self.channel.send_file(self.channel_id, filename, content)
            report.delivered = True
            return report
        except Exception as e:
            primary_error = e
            report.error = str(e)
            log_error(e, {"provider": provider, "path": report.path})

        report.fallback_attempted = True
        try:
            await self.channel.send_text(self.channel_id, envelope.fallback_text(primary_error), formatted=True)
            report.fallback_delivered = True
        except Exception as fallback_error:
            self.logger.warning("Fallback notification failed, giving up",
                                provider=provider, error=str(fallback_error))
        return report
