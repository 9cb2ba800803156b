"""Tests for the SpamWatch and Genius clients against a local server."""

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from notapi.config import GeniusConfig, SpamWatchConfig
from notapi.providers.lyrics import GeniusClient, Song
from notapi.providers.spamwatch import SpamWatchClient
from notapi.utils.exceptions import ProviderError

SONG_PAGE = """
<html><body>
<div data-lyrics-container="true">Never gonna give you up<br/>Never gonna let you down</div>
<div class="ad">buy things</div>
<div data-lyrics-container="true">Never gonna run around</div>
</body></html>
"""


async def banlist(request):
    user_id = request.match_info["user_id"]
    if request.headers.get("Authorization") != "Bearer sw-token":
        return web.json_response({"code": 401, "error": "Unauthorized"}, status=401)
    if user_id == "777000":
        return web.json_response({
            "id": 777000, "reason": "spam", "date": 1609459200, "admin": 3, "message": None,
        })
    if user_id == "500":
        return web.Response(status=502, text="<html>Bad Gateway</html>")
    return web.json_response({"code": 404, "error": "Ban not found"}, status=404)


async def search(request):
    if request.query["q"] == "nothing":
        return web.json_response({"response": {"hits": [{"type": "article", "result": {}}]}})
    base = f"http://{request.host}"
    return web.json_response({"response": {"hits": [{
        "type": "song",
        "result": {
            "title": "Never Gonna Give You Up",
            "primary_artist": {"name": "Rick Astley"},
            "url": f"{base}/songs/rick",
        },
    }]}})


async def song_page(request):
    return web.Response(text=SONG_PAGE, content_type="text/html")


@pytest.fixture
async def upstream():
    app = web.Application()
    app.router.add_get("/banlist/{user_id}", banlist)
    app.router.add_get("/search", search)
    app.router.add_get("/songs/rick", song_page)
    async with TestServer(app) as server:
        yield server


@pytest.fixture
async def spamwatch_client(upstream):
    client = SpamWatchClient(SpamWatchConfig(token="sw-token", api_url=str(upstream.make_url(""))))
    yield client
    await client.close()


@pytest.fixture
async def genius_client(upstream):
    client = GeniusClient(GeniusConfig(token="g-token", api_url=str(upstream.make_url(""))))
    yield client
    await client.close()


class TestSpamWatchClient:
    async def test_ban_record(self, spamwatch_client):
        ban = await spamwatch_client.get_ban("777000")
        assert ban == {
            "id": 777000,
            "reason": "spam",
            "date": "2021-01-01T00:00:00.000Z",
            "message": None,
        }

    async def test_not_banned(self, spamwatch_client):
        with pytest.raises(ProviderError, match="Ban not found"):
            await spamwatch_client.get_ban("1")

    async def test_non_json_error_body(self, spamwatch_client):
        with pytest.raises(ProviderError, match="HTTP 502"):
            await spamwatch_client.get_ban("500")

    async def test_bad_token(self, upstream):
        client = SpamWatchClient(SpamWatchConfig(token="wrong", api_url=str(upstream.make_url(""))))
        try:
            with pytest.raises(ProviderError, match="Unauthorized"):
                await client.get_ban("777000")
        finally:
            await client.close()

    async def test_unreachable(self):
        client = SpamWatchClient(SpamWatchConfig(api_url="http://127.0.0.1:1"))
        try:
            with pytest.raises(ProviderError, match="SpamWatch request failed"):
                await client.get_ban("777000")
        finally:
            await client.close()


class TestGeniusClient:
    async def test_find(self, genius_client):
        song = await genius_client.find("never gonna")
        assert song["title"] == "Never Gonna Give You Up"
        assert song["artist"] == "Rick Astley"
        assert song["url"].endswith("/songs/rick")
        assert song["lyrics"] == (
            "Never gonna give you up\nNever gonna let you down\nNever gonna run around"
        )

    async def test_no_song_hit(self, genius_client):
        with pytest.raises(ProviderError, match="No result was found"):
            await genius_client.search("nothing")

    async def test_song_page_missing(self, genius_client, upstream):
        song = Song(title="x", artist="y", url=str(upstream.make_url("/songs/missing")))
        with pytest.raises(ProviderError, match="HTTP 404"):
            await genius_client.lyrics(song)

    def test_parse_lyrics_without_container(self):
        with pytest.raises(ProviderError, match="Lyrics not found"):
            GeniusClient.parse_lyrics("<html><body><p>nothing</p></body></html>")
