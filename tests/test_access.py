"""Tests for the access filter and request context."""

from aiohttp import web
from aiohttp.test_utils import make_mocked_request

from notapi.api.access import AccessDecision, AccessFilter
from notapi.api.context import (
    CONTEXT_KEY,
    RequestContext,
    RequestContextBuilder,
    context_middleware,
    get_context,
)
from notapi.config import AccessConfig, GeoIPConfig

CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class TestAccessFilter:
    def setup_method(self):
        self.access = AccessFilter.from_config(
            AccessConfig(ip_blacklist="203.0.113.9", ua_blacklist="BadBot")
        )

    def test_admits_ordinary_caller(self):
        context = RequestContext(ip="198.51.100.20", source=CHROME)
        assert self.access.check(context) is AccessDecision.ADMIT

    def test_blacklisted_ip_falls_through(self):
        context = RequestContext(ip="203.0.113.9", source=CHROME)
        assert self.access.check(context) is AccessDecision.FALL_THROUGH

    def test_user_agent_is_matched_as_substring_ignoring_case(self):
        context = RequestContext(ip="198.51.100.20", source="Mozilla/5.0 (compatible; badbot/2.1)")
        assert self.access.check(context) is AccessDecision.FORBIDDEN

    def test_user_agent_wins_over_ip(self):
        context = RequestContext(ip="203.0.113.9", source="BadBot/1.0")
        assert self.access.check(context) is AccessDecision.FORBIDDEN

    def test_empty_blacklists_admit_everyone(self):
        access = AccessFilter()
        assert access.check(RequestContext(ip="203.0.113.9", source="BadBot")) is AccessDecision.ADMIT


class TestRequestContextBuilder:
    def setup_method(self):
        self.builder = RequestContextBuilder(GeoIPConfig(database=None))

    def test_forwarded_for_first_entry(self):
        request = make_mocked_request("GET", "/api/morse", headers={
            "X-Forwarded-For": "198.51.100.20, 10.0.0.1",
            "User-Agent": CHROME,
        })
        context = self.builder.build(request)
        assert context.ip == "198.51.100.20"
        assert context.browser == "Chrome"
        assert context.version.startswith("120")
        assert context.os == "Windows"
        assert context.source == CHROME

    def test_loopback_has_no_geolocation(self):
        request = make_mocked_request("GET", "/", headers={
            "X-Forwarded-For": "127.0.0.1",
            "User-Agent": CHROME,
        })
        context = self.builder.build(request)
        assert context.country is None
        assert [key for key, _ in context.items()] == [
            "ip", "browser", "version", "os", "platform", "source",
        ]

    def test_lookup_without_database(self):
        assert self.builder.lookup("8.8.8.8") == {}

    def test_missing_database_disables_geolocation(self, tmp_path):
        builder = RequestContextBuilder(GeoIPConfig(database=str(tmp_path / "missing.mmdb")))
        assert builder.lookup("8.8.8.8") == {}
        builder.close()

    def test_items_include_known_geo_fields(self):
        context = RequestContext(ip="1.2.3.4", country="ID", timezone="Asia/Jakarta")
        assert [key for key, _ in context.items()] == [
            "ip", "country", "timezone", "browser", "version", "os", "platform", "source",
        ]


async def test_middleware_attaches_context_under_typed_key():
    builder = RequestContextBuilder(GeoIPConfig(database=None))
    request = make_mocked_request("GET", "/api/morse", headers={
        "X-Forwarded-For": "198.51.100.20",
        "User-Agent": CHROME,
    })
    seen = []

    async def handler(request):
        seen.append(get_context(request))
        return web.Response()

    await context_middleware(builder)(request, handler)

    assert seen[0].ip == "198.51.100.20"
    assert request[CONTEXT_KEY] is seen[0]
    assert "context" not in request
