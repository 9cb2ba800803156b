"""
SpamWatch ban-list client.

Looks up a Telegram user id in the SpamWatch global ban list and returns
the ban record with its epoch timestamp converted to an ISO-8601 date.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import aiohttp

from notapi.config import SpamWatchConfig
from notapi.utils.exceptions import ProviderError
from notapi.utils.logging import get_logger, upstream_call

# Fields of the raw ban record that are not exposed to API callers.
SUPPRESSED_FIELDS = frozenset({"admin"})


class SpamWatchClient:
    """
    HTTP client for the SpamWatch API.

    Attributes:
        config: SpamWatch configuration settings
        session: Async HTTP session, created lazily
    """

    def __init__(self, config: SpamWatchConfig) -> None:
        self.config = config
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            headers = {"User-Agent": "NotAPI/0.1.0"}
            if self.config.token:
                headers["Authorization"] = f"Bearer {self.config.token}"
            self.session = aiohttp.ClientSession(headers=headers)
        return self.session

    async def get_ban(self, user_id: str) -> Dict[str, Any]:
        """
        Fetch the ban record for a user id.

        Args:
            user_id: Telegram user id as given in the query string

        Returns:
            The ban record minus suppressed fields, ``date`` as ISO-8601 UTC

        Raises:
            ProviderError: If the request fails, the user is not banned or
                the response cannot be parsed
        """
        url = f"{self.config.api_url.rstrip('/')}/banlist/{user_id}"
        try:
            with upstream_call("spamwatch", "GET", url) as call:
                session = await self._ensure_session()
                async with session.get(url) as response:
                    body = await response.text()
                    call.record(response.status, len(body))
                    status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderError(
                f"SpamWatch request failed: {str(e) or type(e).__name__}",
                context={"user_id": user_id},
                original_error=e,
            )

        try:
            data = json.loads(body) if body else {}
        except json.JSONDecodeError as e:
            if status != 200:
                raise ProviderError(f"SpamWatch returned HTTP {status}")
            raise ProviderError("SpamWatch returned an invalid response", original_error=e)

        if status != 200 or not isinstance(data, dict):
            message = data.get("error") if isinstance(data, dict) else None
            raise ProviderError(message or f"SpamWatch returned HTTP {status}")

        return self._normalize(data)

    @staticmethod
    def _normalize(record: Dict[str, Any]) -> Dict[str, Any]:
        ban = {key: value for key, value in record.items() if key not in SUPPRESSED_FIELDS}
        if isinstance(ban.get("date"), (int, float)):
            ban["date"] = (
                datetime.fromtimestamp(ban["date"], tz=timezone.utc)
                .isoformat(timespec="milliseconds")
                .replace("+00:00", "Z")
            )
        return ban

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
