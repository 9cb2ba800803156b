"""
Genius lyrics client.

Searches the Genius API, takes the first song hit and scrapes the lyrics
body from the song page.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp
from bs4 import BeautifulSoup

from notapi.config import GeniusConfig
from notapi.utils.exceptions import ProviderError
from notapi.utils.logging import get_logger, upstream_call


@dataclass(frozen=True)
class Song:
    title: str
    artist: str
    url: str


class GeniusClient:
    """
    HTTP client for the Genius search API and song pages.

    Attributes:
        config: Genius configuration settings
        session: Async HTTP session, created lazily
    """

    def __init__(self, config: GeniusConfig) -> None:
        self.config = config
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(headers={"User-Agent": "NotAPI/0.1.0"})
        return self.session

    async def _get(self, url: str, **kwargs: Any) -> str:
        try:
            with upstream_call("genius", "GET", url, headers=kwargs.get("headers")) as call:
                session = await self._ensure_session()
                async with session.get(url, **kwargs) as response:
                    body = await response.text()
                    call.record(response.status, len(body))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderError(
                f"Genius request failed: {str(e) or type(e).__name__}",
                context={"url": url},
                original_error=e,
            )
        if call.status != 200:
            raise ProviderError(f"Genius returned HTTP {call.status}")
        return body

    async def search(self, query: str) -> Song:
        """
        Return the first song matching a free-text query.

        Raises:
            ProviderError: If the search fails or has no hits
        """
        headers = {}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        body = await self._get(
            f"{self.config.api_url.rstrip('/')}/search",
            params={"q": query},
            headers=headers,
        )

        try:
            hits = json.loads(body)["response"]["hits"]
        except (ValueError, KeyError, TypeError) as e:
            raise ProviderError("Genius returned an invalid response", original_error=e)

        for hit in hits:
            if hit.get("type") == "song":
                result = hit["result"]
                return Song(
                    title=result.get("title", ""),
                    artist=(result.get("primary_artist") or {}).get("name", ""),
                    url=result.get("url", ""),
                )
        raise ProviderError("No result was found")

    async def lyrics(self, song: Song) -> str:
        """
        Scrape the lyrics body from a song page.

        Raises:
            ProviderError: If the page cannot be fetched or holds no lyrics
        """
        html = await self._get(song.url)
        return self.parse_lyrics(html)

    @staticmethod
    def parse_lyrics(html: str) -> str:
        soup = BeautifulSoup(html, "html.parser")
        containers = soup.find_all("div", attrs={"data-lyrics-container": "true"})
        if not containers:
            raise ProviderError("Lyrics not found on song page")

        blocks = []
        for container in containers:
            for br in container.find_all("br"):
                br.replace_with("\n")
            blocks.append(container.get_text())
        return "\n".join(blocks).strip()

    async def find(self, query: str) -> Dict[str, str]:
        """Search and fetch lyrics in one go."""
        song = await self.search(query)
        lyrics = await self.lyrics(song)
        return {
            "title": song.title,
            "artist": song.artist,
            "url": song.url,
            "lyrics": lyrics,
        }

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
