"""Backoff arithmetic for throttled HTTP retries.

Kept free of I/O so the rate limiter can be tested with a fake clock.
"""

from __future__ import annotations

import math
from datetime import datetime
from email.utils import parsedate_to_datetime

from raindrop_sync.core.time_utils import UTC


def min_interval_seconds(rpm: int) -> float:
    """Minimum spacing between requests for ``rpm`` requests per minute.

    Delay formula: ``ceil(60000 / rpm)`` milliseconds.
    """
    if rpm <= 0:
        return 0.0
    return math.ceil(60000 / rpm) / 1000.0


def backoff_delay(attempt: int, base_delay: float = 1.0, max_delay: float = 60.0) -> float:
    """Exponential backoff without jitter.

    Args:
        attempt: Retry number (0-indexed): 0 -> base, 1 -> 2*base, ...
        base_delay: Delay for the first retry in seconds.
        max_delay: Upper bound in seconds.
    """
    return min(max_delay, max(0.0, base_delay * (2**attempt)))


def parse_retry_after(value: str | None, *, now: datetime | None = None) -> float | None:
    """Parse a ``Retry-After`` header (delta-seconds or HTTP-date) into seconds.

    Returns None when the header is missing or unparseable.
    """
    if value is None:
        return None
    raw = value.strip()
    if not raw:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    current = now or datetime.now(UTC)
    return max(0.0, (when - current).total_seconds())
