"""Enumerations shared by configuration and the sync engine."""

from __future__ import annotations

from enum import StrEnum


class SyncMode(StrEnum):
    """Directionality of a sync cycle."""

    MIRROR = "mirror"  # full two-way, including deletes and reordering
    ADDITIONS_ONLY = "additions_only"  # two-way creation, never deletes
    OFF = "off"  # remote -> local creation only
    UPLOAD_ONLY = "upload_only"  # local -> remote only, no local structure


class CollectionSelection(StrEnum):
    """Which remote collections take part in a cycle."""

    TOP_LEVEL = "topLevel"
    CUSTOM = "custom"
    ALL = "all"


class CollectionSort(StrEnum):
    ALPHA_ASC = "alpha_asc"
    ALPHA_DESC = "alpha_desc"
    RAINDROP_ORDER = "raindrop_order"


class BookmarkSort(StrEnum):
    NONE = "none"
    CREATED_DESC = "created_desc"
    CREATED_ASC = "created_asc"
    ALPHA_ASC = "alpha_asc"
    ALPHA_DESC = "alpha_desc"
    DOMAIN_ASC = "domain_asc"
