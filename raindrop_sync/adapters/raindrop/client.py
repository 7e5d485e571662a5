"""Raindrop.io API client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from raindrop_sync.adapters.raindrop.errors import RaindropApiError, RaindropAuthError
from raindrop_sync.adapters.raindrop.http import RateLimitedClient
from raindrop_sync.adapters.raindrop.models import CreateItemRequest, RemoteCollection, RemoteItem

if TYPE_CHECKING:
    from typing import Self

    import httpx

logger = logging.getLogger(__name__)

ITEMS_PAGE_SIZE = 100
# Hard stop for pagination in case the API keeps returning full pages.
MAX_ITEM_PAGES = 1000


class RaindropClient:
    """Async client for the subset of the Raindrop REST API the sync engine uses."""

    def __init__(
        self,
        api_url: str,
        access_token: str,
        *,
        rpm: int = 60,
        timeout: float = 30.0,
        http: RateLimitedClient | None = None,
    ) -> None:
        """Initialize Raindrop client.

        Args:
            api_url: Base URL (e.g. https://api.raindrop.io/rest/v1)
            access_token: OAuth bearer token
            rpm: Requests per minute allowed for this client
            timeout: Request timeout in seconds
            http: Pre-built transport (tests inject one with a mock transport)
        """
        self.api_url = api_url.rstrip("/")
        self._http = http or RateLimitedClient(
            base_url=self.api_url,
            rpm=rpm,
            timeout=timeout,
        )
        self._http.set_header("Authorization", f"Bearer {access_token}")
        self._http.set_header("Content-Type", "application/json")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._http.aclose()

    @staticmethod
    def _check(response: httpx.Response, operation: str) -> dict[str, Any]:
        if response.status_code == 401:
            logger.warning("raindrop_auth_rejected", extra={"operation": operation})
            raise RaindropAuthError(f"{operation}: credentials rejected")
        if not response.is_success:
            raise RaindropApiError(
                f"{operation} failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise RaindropApiError(f"{operation} returned invalid JSON") from exc
        if isinstance(payload, dict) and payload.get("result") is False:
            raise RaindropApiError(
                f"{operation} rejected: {payload.get('errorMessage') or payload.get('error')}",
                status_code=response.status_code,
            )
        return payload if isinstance(payload, dict) else {}

    async def _get_collections(self, path: str, operation: str) -> list[RemoteCollection]:
        response = await self._http.get(path)
        payload = self._check(response, operation)
        return [RemoteCollection.model_validate(raw) for raw in payload.get("items", [])]

    async def get_root_collections(self) -> list[RemoteCollection]:
        return await self._get_collections("/collections", "get_root_collections")

    async def get_child_collections(self) -> list[RemoteCollection]:
        return await self._get_collections("/collections/childrens", "get_child_collections")

    async def get_items(self, collection_id: int) -> list[RemoteItem]:
        """Get every item of a collection, newest first (handles pagination)."""
        items: list[RemoteItem] = []
        for page in range(MAX_ITEM_PAGES):
            response = await self._http.get(
                f"/raindrops/{collection_id}",
                params={"page": page, "perpage": ITEMS_PAGE_SIZE, "sort": "-created"},
            )
            payload = self._check(response, f"get_items({collection_id})")
            batch = payload.get("items", [])
            for raw in batch:
                item = RemoteItem.model_validate(raw)
                if item.collection_id is None:
                    item = item.model_copy(update={"collection_id": collection_id})
                items.append(item)
            if len(batch) < ITEMS_PAGE_SIZE:
                break

        logger.debug(
            "raindrop_items_fetched",
            extra={"collection_id": collection_id, "count": len(items)},
        )
        return items

    async def create_item(self, collection_id: int, *, url: str, title: str | None) -> RemoteItem:
        request = CreateItemRequest.for_collection(collection_id, url=url, title=title)
        response = await self._http.post(
            "/raindrop", json=request.model_dump(exclude_none=True)
        )
        payload = self._check(response, "create_item")
        item = RemoteItem.model_validate(payload.get("item", {}))
        if item.collection_id is None:
            item = item.model_copy(update={"collection_id": collection_id})
        logger.info(
            "raindrop_item_created",
            extra={"collection_id": collection_id, "item_id": item.id},
        )
        return item

    async def delete_item(self, item_id: int) -> None:
        response = await self._http.delete(f"/raindrop/{item_id}")
        if response.status_code == 404:
            logger.debug("raindrop_item_already_gone", extra={"item_id": item_id})
            return
        self._check(response, f"delete_item({item_id})")
        logger.info("raindrop_item_deleted", extra={"item_id": item_id})
