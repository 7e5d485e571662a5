from __future__ import annotations

from datetime import UTC, datetime, time


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def ensure_aware(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes so created-time comparisons never mix kinds."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _parse_clock(value: str) -> time:
    hours, minutes = value.split(":", 1)
    return time(int(hours), int(minutes))


def is_within_quiet_hours(now: datetime, start: str, end: str) -> bool:
    """Return True when ``now`` (local wall clock) falls in ``[start, end)``.

    Windows where ``start`` is later than ``end`` wrap past midnight, so
    ``23:00``-``07:00`` covers both late evening and early morning.
    """
    current = now.hour * 60 + now.minute
    start_t = _parse_clock(start)
    end_t = _parse_clock(end)
    start_min = start_t.hour * 60 + start_t.minute
    end_min = end_t.hour * 60 + end_t.minute

    if start_min < end_min:
        return start_min <= current < end_min
    return current >= start_min or current < end_min
