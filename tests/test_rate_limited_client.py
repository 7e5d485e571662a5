"""Tests for request spacing and 429/503 retry in RateLimitedClient."""

from __future__ import annotations

import httpx
import pytest

from raindrop_sync.adapters.raindrop.errors import RaindropNetworkError
from raindrop_sync.adapters.raindrop.http import RateLimitedClient


class FakeClock:
    """Monotonic clock that only advances when something sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _client(handler, clock: FakeClock, **kwargs) -> RateLimitedClient:
    return RateLimitedClient(
        base_url="https://api.test",
        transport=httpx.MockTransport(handler),
        sleep=clock.sleep,
        clock=clock,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_requests_are_spaced_by_rpm():
    clock = FakeClock()
    sent_at: list[float] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent_at.append(clock.now)
        return httpx.Response(200, json={"result": True})

    async with _client(handler, clock, rpm=60) as client:
        for _ in range(3):
            response = await client.get("/collections")
            assert response.status_code == 200

    assert len(sent_at) == 3
    for earlier, later in zip(sent_at, sent_at[1:], strict=False):
        assert later - earlier >= 1.0
    assert len(clock.sleeps) == 2
    assert all(1.0 <= delay <= 1.2 for delay in clock.sleeps)


@pytest.mark.asyncio
async def test_no_wait_when_interval_already_elapsed():
    clock = FakeClock()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={})

    async with _client(handler, clock, rpm=60) as client:
        await client.get("/a")
        clock.now += 5
        await client.get("/b")

    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_retry_after_header_is_honored():
    clock = FakeClock()
    responses = iter(
        [
            httpx.Response(429, headers={"Retry-After": "2"}),
            httpx.Response(200, json={"result": True}),
        ]
    )

    async with _client(lambda request: next(responses), clock) as client:
        response = await client.get("/raindrops/1")

    assert response.status_code == 200
    # 2s Retry-After already covers the 1s spacing, so no extra throttle wait
    assert clock.sleeps == [2.0]


@pytest.mark.asyncio
async def test_backoff_doubles_and_last_response_is_returned():
    clock = FakeClock()
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503)

    async with _client(handler, clock) as client:
        response = await client.get("/collections")

    assert calls == 5
    assert response.status_code == 503
    assert clock.sleeps == [1.0, 2.0, 4.0, 8.0]


@pytest.mark.asyncio
async def test_backoff_is_capped():
    clock = FakeClock()

    async with _client(lambda request: httpx.Response(429), clock, max_attempts=9) as client:
        response = await client.get("/collections")

    assert response.status_code == 429
    assert clock.sleeps == [1.0, 2.0, 4.0, 8.0, 16.0, 32.0, 60.0, 60.0]


@pytest.mark.asyncio
async def test_single_attempt_returns_retryable_response():
    clock = FakeClock()

    async with _client(lambda request: httpx.Response(503), clock, max_attempts=0) as client:
        response = await client.get("/collections")

    assert response.status_code == 503
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_other_errors_are_not_retried():
    clock = FakeClock()
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(500)

    async with _client(handler, clock) as client:
        response = await client.post("/raindrop", json={})

    assert calls == 1
    assert response.status_code == 500
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_transport_error_raises_network_error():
    clock = FakeClock()

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler, clock) as client:
        with pytest.raises(RaindropNetworkError):
            await client.get("/collections")


@pytest.mark.asyncio
async def test_headers_are_sent():
    clock = FakeClock()
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.headers)
        return httpx.Response(200, json={})

    async with _client(handler, clock) as client:
        client.set_header("Authorization", "Bearer abc")
        await client.get("/user")

    assert seen["authorization"] == "Bearer abc"
