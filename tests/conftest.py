"""Test configuration and utilities."""

import json
from typing import Any, Dict, List, Tuple

import pytest

from notapi.api.context import RequestContext
from notapi.config import (
    AppConfig,
    AccessConfig,
    DiscordConfig,
    KeepAliveConfig,
    LoggingConfig,
    ProvidersConfig,
    GeoIPConfig,
)
from notapi.pipeline.keepalive import KeepAliveScheduler
from notapi.providers.registry import ProviderRegistry
from notapi.utils.exceptions import ChannelError, ProviderError


def payload_of_length(length: int) -> Dict[str, str]:
    """A payload whose pretty-printed JSON is exactly ``length`` characters."""
    overhead = len(json.dumps({"result": ""}, indent=2))
    return {"result": "x" * (length - overhead)}


class FakeChannel:
    """Records deliveries; the first ``failures`` sends raise ChannelError."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.attempts = 0
        self.texts: List[Tuple[int, str, bool]] = []
        self.files: List[Tuple[int, str, bytes]] = []

    def _maybe_fail(self) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise ChannelError(f"delivery failed #{self.attempts}")

    async def send_text(self, channel_id: int, text: str, formatted: bool = True) -> None:
        self._maybe_fail()
        self.texts.append((channel_id, text, formatted))

    async def send_file(self, channel_id: int, filename: str, content: bytes) -> None:
        self._maybe_fail()
        self.files.append((channel_id, filename, content))


class FakeSpamWatch:
    def __init__(self, bans: Dict[str, Dict[str, Any]]) -> None:
        self.bans = bans
        self.closed = False

    async def get_ban(self, user_id: str) -> Dict[str, Any]:
        if user_id not in self.bans:
            raise ProviderError("Ban not found")
        return dict(self.bans[user_id])

    async def close(self) -> None:
        self.closed = True


class FakeGenius:
    def __init__(self, songs: Dict[str, Dict[str, str]]) -> None:
        self.songs = songs
        self.closed = False

    async def find(self, query: str) -> Dict[str, str]:
        if query not in self.songs:
            raise ProviderError("No result was found")
        return dict(self.songs[query])

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def test_config() -> AppConfig:
    """Create a test configuration."""
    return AppConfig(
        environment="test",
        access=AccessConfig(ip_blacklist="203.0.113.9 198.51.100.1", ua_blacklist="BadBot python-requests"),
        discord=DiscordConfig(token=None, log_channel_id=1234),
        providers=ProvidersConfig(delay_min=0.0, delay_max=0.0),
        keepalive=KeepAliveConfig(url=None),
        geoip=GeoIPConfig(database=None),
        logging=LoggingConfig(level="DEBUG", format="text"),
    )


@pytest.fixture
def spamwatch() -> FakeSpamWatch:
    return FakeSpamWatch({
        "777000": {"id": 777000, "reason": "spam", "date": "2021-01-01T00:00:00.000Z", "message": None},
    })


@pytest.fixture
def genius() -> FakeGenius:
    return FakeGenius({
        "never gonna": {
            "title": "Never Gonna Give You Up",
            "artist": "Rick Astley",
            "url": "https://genius.com/Rick-astley-never-gonna-give-you-up-lyrics",
            "lyrics": "We're no strangers to love",
        },
    })


@pytest.fixture
def registry(test_config, spamwatch, genius) -> ProviderRegistry:
    return ProviderRegistry(test_config.providers, spamwatch=spamwatch, genius=genius)


@pytest.fixture
def scheduler() -> KeepAliveScheduler:
    return KeepAliveScheduler(KeepAliveConfig(url=None))


@pytest.fixture
def context() -> RequestContext:
    return RequestContext(
        ip="203.0.113.7",
        country="ID",
        city="Jakarta",
        browser="Chrome",
        version="120.0.0",
        os="Windows",
        platform="Other",
        source="Mozilla/5.0 Chrome/120.0.0.0",
    )
