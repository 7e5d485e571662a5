from __future__ import annotations

import logging
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

logger = logging.getLogger(__name__)


TRACKING_PARAMS = {
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "gclid",
    "fbclid",
}

_NORMALIZABLE_SCHEMES: frozenset[str] = frozenset(["http", "https"])


def normalize_url(url: str) -> str:
    """Normalize a bookmark URL for duplicate detection.

    - Lowercase scheme & host
    - Strip fragment
    - Sort query params and remove common tracking params
    - Collapse trailing slash

    Only http(s) URLs are rewritten. Bookmarks may legitimately hold other schemes
    (``javascript:`` bookmarklets, ``chrome://`` pages, ``file://``); those are
    compared verbatim after trimming whitespace.

    Args:
        url: URL to normalize

    Returns:
        Normalized URL string (empty for empty input)
    """
    if not url:
        return ""
    raw = url.strip()
    try:
        p = urlparse(raw)
    except ValueError:
        logger.debug("url_parse_failed", extra={"url": raw[:100]})
        return raw

    scheme = p.scheme.lower()
    if scheme not in _NORMALIZABLE_SCHEMES or not p.netloc:
        return raw

    netloc = p.netloc.lower()
    path = p.path or "/"
    if path.endswith("/") and path != "/":
        path = path.rstrip("/")

    query_pairs = [
        (k, v)
        for k, v in parse_qsl(p.query, keep_blank_values=True)
        if k.lower() not in TRACKING_PARAMS
    ]
    query_pairs.sort(key=lambda x: (x[0], x[1]))
    query = urlencode(query_pairs)

    return urlunparse((scheme, netloc, path, "", query, ""))


def url_domain(url: str) -> str:
    """Return the lowercase host of ``url`` without a leading ``www.``."""
    try:
        host = (urlparse(url.strip()).hostname or "").lower()
    except ValueError:
        return ""
    if host.startswith("www."):
        host = host[4:]
    return host
