"""
Per-request context.

Builds the immutable description of who is calling (origin IP, coarse
geolocation, user-agent facets) that the access filter and the
notification sink both consume.
"""

from dataclasses import dataclass, fields
from typing import Any, Awaitable, Callable, Iterator, Optional, Tuple

import geoip2.database
import geoip2.errors
from aiohttp import web
from user_agents import parse as parse_user_agent

from notapi.config import GeoIPConfig
from notapi.utils.logging import get_logger

LOOPBACK_ADDRESSES = frozenset({"127.0.0.1", "::1", "::ffff:127.0.0.1"})


@dataclass(frozen=True)
class RequestContext:
    """
    Who is calling, in the order the fields are reported.

    Geo fields are None for loopback callers or when no GeoIP database is
    available; ``items()`` leaves them out.
    """

    ip: str
    country: Optional[str] = None
    region: Optional[str] = None
    timezone: Optional[str] = None
    city: Optional[str] = None
    browser: str = ""
    version: str = ""
    os: str = ""
    platform: str = ""
    source: str = ""

    _GEO_FIELDS = ("country", "region", "timezone", "city")

    def items(self) -> Iterator[Tuple[str, Any]]:
        for item in fields(self):
            value = getattr(self, item.name)
            if item.name in self._GEO_FIELDS and value is None:
                continue
            yield item.name, value


CONTEXT_KEY = web.RequestKey("context", RequestContext)


class RequestContextBuilder:
    """
    Produces a RequestContext from an aiohttp request.

    Attributes:
        config: GeoIP settings
        trust_proxy: Take the client IP from the first X-Forwarded-For entry
    """

    def __init__(self, config: GeoIPConfig, trust_proxy: bool = True) -> None:
        self.config = config
        self.trust_proxy = trust_proxy
        self.logger = get_logger(__name__)
        self._reader: Optional[geoip2.database.Reader] = None
        if config.database:
            try:
                self._reader = geoip2.database.Reader(config.database)
            except (OSError, ValueError) as e:
                self.logger.warning("GeoIP database unavailable, geolocation disabled",
                                    database=config.database, error=str(e))

    def client_ip(self, request: web.Request) -> str:
        if self.trust_proxy:
            forwarded = request.headers.get("X-Forwarded-For", "")
            first = forwarded.split(",")[0].strip()
            if first:
                return first
        return request.remote or ""

    def lookup(self, ip: str) -> dict:
        """Coarse geolocation for an IP; empty for loopback or unknown addresses."""
        if ip in LOOPBACK_ADDRESSES or self._reader is None:
            return {}
        try:
            city = self._reader.city(ip)
        except (geoip2.errors.AddressNotFoundError, ValueError):
            return {}
        return {
            "country": city.country.iso_code,
            "region": city.subdivisions.most_specific.iso_code,
            "timezone": city.location.time_zone,
            "city": city.city.name,
        }

    def build(self, request: web.Request) -> RequestContext:
        ip = self.client_ip(request)
        source = request.headers.get("User-Agent", "")
        agent = parse_user_agent(source)
        return RequestContext(
            ip=ip,
            **self.lookup(ip),
            browser=agent.browser.family,
            version=agent.browser.version_string,
            os=agent.os.family,
            platform=agent.device.family,
            source=source,
        )

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()


def get_context(request: web.Request) -> RequestContext:
    """The RequestContext attached by ``context_middleware``."""
    return request[CONTEXT_KEY]


def context_middleware(builder: RequestContextBuilder) -> Callable:
    @web.middleware
    async def middleware(
        request: web.Request,
        handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
    ) -> web.StreamResponse:
        request[CONTEXT_KEY] = builder.build(request)
        return await handler(request)

    return middleware
