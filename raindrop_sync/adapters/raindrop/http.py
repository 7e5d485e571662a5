"""Throttled, retrying HTTP transport shared by every Raindrop call."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import TYPE_CHECKING, Any

import httpx

from raindrop_sync.adapters.raindrop.errors import RaindropNetworkError
from raindrop_sync.core.backoff import backoff_delay, min_interval_seconds, parse_retry_after

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from typing import Self

logger = logging.getLogger(__name__)

# Status codes retried transparently; everything else goes straight back to the caller.
RETRYABLE_STATUS_CODES = frozenset({429, 503})

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 60.0  # seconds
DEFAULT_MAX_JITTER = 0.2  # seconds


class RateLimitedClient:
    """Async HTTP transport with request spacing and 429/503 retry.

    Requests from one instance are spaced at least ``ceil(60000 / rpm)`` ms apart,
    measured from the previous request this instance sent. Retryable responses are
    retried up to ``max_attempts`` times; when attempts run out the last response is
    returned rather than raised, so callers must inspect ``status_code``.
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        headers: dict[str, str] | None = None,
        rpm: int = 60,
        timeout: float = 30.0,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        max_jitter: float = DEFAULT_MAX_JITTER,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.rpm = rpm
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.max_jitter = max_jitter
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic
        self._last_request_at: float | None = None
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers or {},
            timeout=timeout,
            transport=transport,
        )

    @property
    def min_interval(self) -> float:
        return min_interval_seconds(self.rpm)

    def set_header(self, name: str, value: str | None) -> None:
        if value is None:
            self._client.headers.pop(name, None)
        else:
            self._client.headers[name] = value

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _throttle(self) -> None:
        if self._last_request_at is not None:
            elapsed = self._clock() - self._last_request_at
            remaining = self.min_interval - elapsed
            if remaining > 0:
                delay = remaining + random.uniform(0, self.max_jitter)
                logger.debug(
                    "raindrop_throttle_wait",
                    extra={"delay_seconds": round(delay, 3), "rpm": self.rpm},
                )
                await self._sleep(delay)
        self._last_request_at = self._clock()

    def _retry_delay(self, response: httpx.Response, attempt: int) -> float:
        retry_after = parse_retry_after(response.headers.get("Retry-After"))
        if retry_after is not None:
            return retry_after
        return backoff_delay(attempt, self.base_delay, self.max_delay)

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, honoring the rate limit and retrying 429/503.

        The last retryable response is returned once ``max_attempts`` is used up.

        Raises:
            RaindropNetworkError: on transport failures (no response at all)
        """
        attempt = 0
        while True:
            await self._throttle()
            try:
                response = await self._client.request(method, url, **kwargs)
            except httpx.TransportError as exc:
                logger.warning(
                    "raindrop_transport_error",
                    extra={"method": method, "url": url, "error": str(exc)},
                )
                raise RaindropNetworkError(f"{method} {url} failed: {exc}") from exc

            if response.status_code not in RETRYABLE_STATUS_CODES:
                return response

            if attempt == self.max_attempts - 1:
                logger.error(
                    "raindrop_retry_exhausted",
                    extra={
                        "method": method,
                        "url": url,
                        "attempts": self.max_attempts,
                        "status_code": response.status_code,
                    },
                )
                return response

            delay = self._retry_delay(response, attempt)
            logger.warning(
                "raindrop_retry_attempt",
                extra={
                    "method": method,
                    "url": url,
                    "status_code": response.status_code,
                    "attempt": attempt + 1,
                    "max_attempts": self.max_attempts,
                    "delay_seconds": round(delay, 2),
                },
            )
            await self._sleep(delay)
            attempt += 1

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)
