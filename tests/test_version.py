"""Tests for protocol version lookup."""

import httpx
import pytest

from kaya_bot.settings import BotSettings
from kaya_bot.version import VersionFetchError, fetch_latest_version, resolve_version

VERSION_URL = "https://example.test/baileys-version.json"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def online_settings() -> BotSettings:
    return BotSettings(fetch_latest_version=True, version_url=VERSION_URL, fallback_version=(2, 2204, 13))


@pytest.mark.asyncio
async def test_fetch_latest_version() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == VERSION_URL
        return httpx.Response(200, json={"version": [2, 3000, 1015901307]})

    async with _client(handler) as client:
        assert await fetch_latest_version(VERSION_URL, client=client) == (2, 3000, 1015901307)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"version": []},
        {"version": "2.3000.1"},
        {"version": [2, "x", 1]},
        {"other": [1]},
        [2, 3000, 1],
    ],
)
async def test_fetch_rejects_malformed_payload(body) -> None:
    async with _client(lambda request: httpx.Response(200, json=body)) as client:
        with pytest.raises(VersionFetchError):
            await fetch_latest_version(VERSION_URL, client=client)


@pytest.mark.asyncio
async def test_fetch_rejects_non_json() -> None:
    async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
        with pytest.raises(VersionFetchError):
            await fetch_latest_version(VERSION_URL, client=client)


@pytest.mark.asyncio
async def test_resolve_uses_fetched_version(online_settings: BotSettings) -> None:
    async with _client(lambda request: httpx.Response(200, json={"version": [2, 3000, 7]})) as client:
        assert await resolve_version(online_settings, client=client) == (2, 3000, 7)


@pytest.mark.asyncio
async def test_resolve_falls_back_on_http_error(online_settings: BotSettings) -> None:
    async with _client(lambda request: httpx.Response(503)) as client:
        assert await resolve_version(online_settings, client=client) == (2, 2204, 13)


@pytest.mark.asyncio
async def test_resolve_falls_back_on_transport_error(online_settings: BotSettings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    async with _client(handler) as client:
        assert await resolve_version(online_settings, client=client) == (2, 2204, 13)


@pytest.mark.asyncio
async def test_resolve_falls_back_on_malformed_payload(online_settings: BotSettings) -> None:
    async with _client(lambda request: httpx.Response(200, json={"nope": 1})) as client:
        assert await resolve_version(online_settings, client=client) == (2, 2204, 13)


@pytest.mark.asyncio
async def test_resolve_skips_network_when_disabled() -> None:
    settings = BotSettings(fetch_latest_version=False, fallback_version=(2, 1, 1))

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("network should not be used")

    async with _client(handler) as client:
        assert await resolve_version(settings, client=client) == (2, 1, 1)
