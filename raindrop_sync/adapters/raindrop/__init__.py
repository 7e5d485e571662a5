"""Raindrop.io adapter: rate-limited transport, API client and collection fetching."""

from raindrop_sync.adapters.raindrop.client import RaindropClient
from raindrop_sync.adapters.raindrop.collections import CollectionFetcher
from raindrop_sync.adapters.raindrop.http import RateLimitedClient

__all__ = ["CollectionFetcher", "RaindropClient", "RateLimitedClient"]
