"""Pydantic models for the Raindrop.io REST API.

Raw API payloads are normalized here, at the ingestion boundary, so the rest of the
sync engine only ever sees one canonical ``parent_id``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Object-valued ``parent`` fields have been seen with each of these keys.
_PARENT_OBJECT_KEYS = ("$id", "id", "_id")
_PARENT_FIELD_NAMES = ("parent", "parentId", "parent_id")


def _coerce_id(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
        return stripped or None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def resolve_parent_id(raw: Mapping[str, Any]) -> int | str | None:
    """Return the parent collection id of a raw collection payload.

    Checks ``parent`` (scalar or ``{"$id"|"id"|"_id": ...}``), then ``parentId`` and
    ``parent_id``. The first value found wins; numeric-looking strings become ints.
    """
    for field_name in _PARENT_FIELD_NAMES:
        value = raw.get(field_name)
        if value is None:
            continue
        if isinstance(value, Mapping):
            for key in _PARENT_OBJECT_KEYS:
                nested = value.get(key)
                if nested is not None:
                    return _coerce_id(nested)
            continue
        coerced = _coerce_id(value)
        if coerced is not None:
            return coerced
    return None


class RemoteCollection(BaseModel):
    """Raindrop collection."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int = Field(alias="_id")
    title: str = ""
    parent_id: int | str | None = None
    sort_order: int = Field(default=0, alias="sort")

    @property
    def is_system(self) -> bool:
        """System collections (Unsorted -1, Trash -99) have negative ids."""
        return self.id < 0

    @model_validator(mode="before")
    @classmethod
    def _normalize_payload(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        payload = dict(data)
        if "_id" not in payload and "id" in payload:
            payload["_id"] = payload.pop("id")
        payload["parent_id"] = resolve_parent_id(data)
        payload.pop("parent", None)
        payload.pop("parentId", None)
        if payload.get("sort") is None:
            payload["sort"] = 0
        if payload.get("title") is None:
            payload["title"] = ""
        return payload


class RemoteItem(BaseModel):
    """Raindrop item ("raindrop")."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int = Field(alias="_id")
    title: str = ""
    url: str = Field(default="", alias="link")
    created_at: datetime | None = Field(default=None, alias="created")
    collection_id: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_payload(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        payload = dict(data)
        if "_id" not in payload and "id" in payload:
            payload["_id"] = payload.pop("id")
        collection = payload.pop("collection", None)
        if payload.get("collection_id") is None:
            if isinstance(collection, Mapping):
                payload["collection_id"] = _coerce_id(
                    collection.get("$id", collection.get("id"))
                )
            elif collection is not None:
                payload["collection_id"] = _coerce_id(collection)
        if payload.get("collectionId") is not None and payload.get("collection_id") is None:
            payload["collection_id"] = _coerce_id(payload["collectionId"])
        if payload.get("title") is None:
            payload["title"] = ""
        return payload


class CreateItemRequest(BaseModel):
    """Body of ``POST /raindrop``."""

    link: str
    title: str | None = None
    collection: dict[str, int]

    @classmethod
    def for_collection(cls, collection_id: int, *, url: str, title: str | None) -> CreateItemRequest:
        return cls(link=url, title=title or None, collection={"$id": collection_id})
