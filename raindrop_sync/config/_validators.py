from __future__ import annotations

import re
from typing import Any

_CLOCK_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def validate_access_token(token: str) -> str:
    """Validate a Raindrop access token before it is used for API calls."""
    return _ensure_access_token(token, name="Raindrop")


def _ensure_access_token(value: str, *, name: str) -> str:
    if not value:
        msg = f"{name} access token is required"
        raise ValueError(msg)
    value = value.strip()
    if not value:
        msg = f"{name} access token is required"
        raise ValueError(msg)
    if len(value) > 500:
        msg = f"{name} access token appears to be too long"
        raise ValueError(msg)
    if any(char in value for char in [" ", "\n", "\t"]):
        msg = f"{name} access token contains invalid characters"
        raise ValueError(msg)
    return value


def _parse_collection_ids(value: Any) -> frozenset[int]:
    if value in (None, ""):
        return frozenset()
    values = value if isinstance(value, list | tuple | set | frozenset) else str(value).split(",")

    collection_ids: set[int] = set()
    for piece in values:
        piece = str(piece).strip()
        if not piece:
            continue
        try:
            collection_ids.add(int(piece))
        except ValueError:
            continue
    return frozenset(collection_ids)


def _parse_clock(value: Any, *, default: str) -> str:
    raw = str(value if value not in (None, "") else default).strip()
    match = _CLOCK_RE.match(raw)
    if not match:
        msg = f"Invalid time of day: {raw!r}. Expected HH:MM"
        raise ValueError(msg)
    return f"{int(match.group(1)):02d}:{match.group(2)}"
