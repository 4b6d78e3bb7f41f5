"""Tests for the cached HTTP client, response cache and request throttle."""

import asyncio

import httpx
import pytest

from treasury_dashboard.transport import (
    CachedJSONClient,
    MalformedResponseError,
    MissingCredentialsError,
    RequestThrottle,
    ResponseCache,
    UpstreamAPIError,
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class KeyedClient(CachedJSONClient):
    source = "keyed"
    api_key_env = "KEYED_API_KEY"

    def _auth_params(self) -> dict[str, str]:
        return {"key": self.api_key or ""}


def _client(handler, cache=None, **kwargs) -> CachedJSONClient:
    return CachedJSONClient(
        "https://api.example.test",
        cache or ResponseCache(60),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_cache_entry_expiry():
    """Entries are fresh until their TTL elapses, then only available as stale."""
    clock = FakeClock()
    cache = ResponseCache(default_ttl=300, clock=clock)
    cache.set("/price", {"asset": "tao"}, {"price": 1})

    assert cache.get("/price", {"asset": "tao"}) == {"price": 1}
    assert cache.get("/price", {"asset": "eth"}) is None

    clock.now += 300
    assert cache.get("/price", {"asset": "tao"}) is None
    assert cache.get_stale("/price", {"asset": "tao"}) == {"price": 1}
    assert len(cache) == 1

    cache.clear()
    assert cache.get_stale("/price", {"asset": "tao"}) is None


def test_cache_key_ignores_param_order():
    """Parameter order does not change the cache key."""
    cache = ResponseCache()
    cache.set("/transfer/v1", {"address": "a", "limit": 20}, [1])

    assert cache.get("/transfer/v1", {"limit": 20, "address": "a"}) == [1]


def test_cache_custom_ttl():
    """A per-entry TTL overrides the default."""
    clock = FakeClock()
    cache = ResponseCache(default_ttl=300, clock=clock)
    cache.set("/a", None, "value", ttl=10)

    clock.now += 11
    assert cache.get("/a") is None


def test_throttle_delay():
    """The delay is the remainder of the minimum interval since the last request."""
    clock = FakeClock()
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        clock.now += seconds

    throttle = RequestThrottle(min_interval=1.0, clock=clock, sleep=fake_sleep)
    assert throttle.get_delay(clock()) == 0.0

    async def run():
        await throttle.wait()
        clock.now += 0.25
        await throttle.wait()
        await throttle.wait()

    asyncio.run(run())

    assert sleeps == [pytest.approx(0.75), pytest.approx(1.0)]


def test_throttle_spaces_concurrent_callers():
    """Concurrent waiters are serialised and each one is spaced."""
    clock = FakeClock()
    sent = []

    async def fake_sleep(seconds):
        clock.now += seconds

    throttle = RequestThrottle(min_interval=2.0, clock=clock, sleep=fake_sleep)

    async def request():
        await throttle.wait()
        sent.append(clock())

    async def run():
        await asyncio.gather(*(request() for _ in range(3)))

    asyncio.run(run())

    assert sent == [1000.0, 1002.0, 1004.0]


def test_fetch_json_caches_response():
    """A fresh cached response is returned without another request."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"ok": True})

    client = _client(handler)

    async def run():
        first = await client.fetch_json("/status", {"a": 1})
        second = await client.fetch_json("/status", {"a": 1})
        await client.aclose()
        return first, second

    first, second = asyncio.run(run())

    assert first == second == {"ok": True}
    assert len(calls) == 1


def test_fetch_falls_back_to_stale_cache():
    """A failed refetch serves the last good response."""
    clock = FakeClock()
    responses = [httpx.Response(200, json={"price": 400}), httpx.Response(503)]

    def handler(request):
        return responses.pop(0)

    client = _client(handler, cache=ResponseCache(60, clock=clock))

    async def run():
        first = await client.fetch_json("/price")
        clock.now += 120
        second = await client.fetch_json("/price")
        await client.aclose()
        return first, second

    first, second = asyncio.run(run())

    assert first == second == {"price": 400}


def test_fetch_raises_without_cache():
    """A failed request with nothing cached raises UpstreamAPIError with the status."""
    client = _client(lambda request: httpx.Response(429))

    async def run():
        try:
            await client.fetch_json("/price")
        finally:
            await client.aclose()

    with pytest.raises(UpstreamAPIError) as exc_info:
        asyncio.run(run())

    assert exc_info.value.status_code == 429
    assert exc_info.value.source == "upstream"


def test_transport_error_maps_to_upstream_error():
    """Connection failures surface as UpstreamAPIError without a status."""

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)

    async def run():
        try:
            await client.fetch_json("/price")
        finally:
            await client.aclose()

    with pytest.raises(UpstreamAPIError) as exc_info:
        asyncio.run(run())

    assert exc_info.value.status_code is None


def test_invalid_json_raises_malformed():
    """A non-JSON body is reported as malformed."""
    client = _client(lambda request: httpx.Response(200, text="<html>"))

    async def run():
        try:
            await client.fetch_json("/price")
        finally:
            await client.aclose()

    with pytest.raises(MalformedResponseError):
        asyncio.run(run())


def test_fetch_text():
    """Text endpoints return the raw body."""
    client = _client(lambda request: httpx.Response(200, text="a,b\n1,2\n"))

    async def run():
        text = await client.fetch_text("/export", {"format": "csv"})
        await client.aclose()
        return text

    assert asyncio.run(run()) == "a,b\n1,2\n"


def test_missing_credentials():
    """A keyed client without a key never sends a request."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    client = KeyedClient("https://api.example.test", ResponseCache(), transport=httpx.MockTransport(handler))

    async def run():
        try:
            await client.fetch_json("/anything")
        finally:
            await client.aclose()

    with pytest.raises(MissingCredentialsError) as exc_info:
        asyncio.run(run())

    assert exc_info.value.env_var == "KEYED_API_KEY"
    assert calls == []


def test_auth_params_added_to_query():
    """Credentials are added to the query string of every request."""
    seen = []

    def handler(request):
        seen.append(request.url.params.get("key"))
        return httpx.Response(200, json={"ok": True})

    client = KeyedClient(
        "https://api.example.test",
        ResponseCache(),
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )

    async def run():
        async with client:
            return await client.fetch_json("/anything", {"q": 1})

    assert asyncio.run(run()) == {"ok": True}
    assert seen == ["secret"]
    assert client.cache.get("/anything", {"q": 1}) == {"ok": True}
