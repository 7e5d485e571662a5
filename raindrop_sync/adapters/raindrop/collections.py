"""Fetch the remote collection list."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from raindrop_sync.adapters.raindrop.errors import RaindropApiError, RaindropNetworkError

if TYPE_CHECKING:
    from raindrop_sync.adapters.raindrop.models import RemoteCollection
    from raindrop_sync.adapters.raindrop.protocols import RaindropClientProtocol

logger = logging.getLogger(__name__)


class CollectionFetcher:
    """Retrieve root and child collections as one deduplicated list."""

    def __init__(self, client: RaindropClientProtocol) -> None:
        self._client = client

    async def fetch_collections(self, *, correlation_id: str | None = None) -> list[RemoteCollection]:
        """Return root + child collections keyed by id, system collections removed.

        A failing child call degrades to root-only. A failing root call raises.
        """
        roots = await self._client.get_root_collections()

        try:
            children = await self._client.get_child_collections()
        except (RaindropApiError, RaindropNetworkError) as exc:
            logger.warning(
                "raindrop_child_collections_unavailable",
                extra={"correlation_id": correlation_id, "error": str(exc)},
            )
            children = []

        merged: dict[int, RemoteCollection] = {}
        for collection in [*roots, *children]:
            merged[collection.id] = collection

        result = [c for c in merged.values() if not c.is_system]
        logger.info(
            "raindrop_collections_fetched",
            extra={
                "correlation_id": correlation_id,
                "roots": len(roots),
                "children": len(children),
                "kept": len(result),
            },
        )
        return result
