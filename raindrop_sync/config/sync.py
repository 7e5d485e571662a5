from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from raindrop_sync.core.sync_enums import (
    BookmarkSort,
    CollectionSelection,
    CollectionSort,
    SyncMode,
)

from ._validators import _parse_clock, _parse_collection_ids

logger = logging.getLogger(__name__)


class SyncConfig(BaseModel):
    """Bookmark synchronization behaviour.

    Defaults mirror the conservative first-run settings: additive two-way sync into
    the bookmarks bar, top-level collections only, alphabetical collections and
    newest-first bookmarks.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    enabled: bool = Field(default=True, validation_alias="RAINDROP_SYNC_ENABLED")
    mode: SyncMode = Field(default=SyncMode.ADDITIONS_ONLY, validation_alias="RAINDROP_TWO_WAY_MODE")
    target_folder_id: str = Field(default="1", validation_alias="RAINDROP_TARGET_FOLDER_ID")
    use_subfolder: bool = Field(default=False, validation_alias="RAINDROP_USE_SUBFOLDER")
    subfolder_title: str = Field(default="Raindrop", validation_alias="RAINDROP_SUBFOLDER_TITLE")
    selection: CollectionSelection = Field(
        default=CollectionSelection.TOP_LEVEL,
        validation_alias="RAINDROP_COLLECTION_IMPORT_MODE",
    )
    selected_collection_ids: frozenset[int] = Field(
        default_factory=frozenset,
        validation_alias="RAINDROP_SELECTED_COLLECTION_IDS",
    )
    collections_sort: CollectionSort = Field(
        default=CollectionSort.ALPHA_ASC, validation_alias="RAINDROP_COLLECTIONS_SORT"
    )
    bookmarks_sort: BookmarkSort = Field(
        default=BookmarkSort.CREATED_DESC, validation_alias="RAINDROP_BOOKMARKS_SORT"
    )
    rate_limit_rpm: int = Field(default=60, validation_alias="RAINDROP_RATE_LIMIT_RPM")
    batch_size: int = Field(default=50, validation_alias="RAINDROP_BATCH_SIZE")
    interval_minutes: int = Field(default=15, validation_alias="RAINDROP_SYNC_INTERVAL_MINUTES")
    quiet_hours_enabled: bool = Field(
        default=False, validation_alias="RAINDROP_QUIET_HOURS_ENABLED"
    )
    quiet_hours_start: str = Field(default="23:00", validation_alias="RAINDROP_QUIET_HOURS_START")
    quiet_hours_end: str = Field(default="07:00", validation_alias="RAINDROP_QUIET_HOURS_END")

    @field_validator("mode", mode="before")
    @classmethod
    def _validate_mode(cls, value: Any) -> SyncMode:
        raw = str(value or SyncMode.ADDITIONS_ONLY).strip().lower()
        try:
            return SyncMode(raw)
        except ValueError as exc:
            valid = sorted(m.value for m in SyncMode)
            msg = f"Invalid sync mode: {raw}. Must be one of {valid}"
            raise ValueError(msg) from exc

    @field_validator("selection", mode="before")
    @classmethod
    def _validate_selection(cls, value: Any) -> CollectionSelection:
        raw = str(value or CollectionSelection.TOP_LEVEL).strip()
        # older settings stored "parentOnly" for the top-level mode
        if raw == "parentOnly":
            return CollectionSelection.TOP_LEVEL
        try:
            return CollectionSelection(raw)
        except ValueError as exc:
            valid = sorted(m.value for m in CollectionSelection)
            msg = f"Invalid collection import mode: {raw}. Must be one of {valid}"
            raise ValueError(msg) from exc

    @field_validator("selected_collection_ids", mode="before")
    @classmethod
    def _validate_selected_ids(cls, value: Any) -> frozenset[int]:
        return _parse_collection_ids(value)

    @field_validator("collections_sort", mode="before")
    @classmethod
    def _validate_collections_sort(cls, value: Any) -> CollectionSort:
        raw = str(value or CollectionSort.ALPHA_ASC).strip().lower()
        try:
            return CollectionSort(raw)
        except ValueError as exc:
            valid = sorted(m.value for m in CollectionSort)
            msg = f"Invalid collections sort: {raw}. Must be one of {valid}"
            raise ValueError(msg) from exc

    @field_validator("bookmarks_sort", mode="before")
    @classmethod
    def _validate_bookmarks_sort(cls, value: Any) -> BookmarkSort:
        raw = str(value or BookmarkSort.CREATED_DESC).strip().lower()
        try:
            return BookmarkSort(raw)
        except ValueError as exc:
            valid = sorted(m.value for m in BookmarkSort)
            msg = f"Invalid bookmarks sort: {raw}. Must be one of {valid}"
            raise ValueError(msg) from exc

    @field_validator("target_folder_id", mode="before")
    @classmethod
    def _validate_target_folder(cls, value: Any) -> str:
        folder_id = str(value if value not in (None, "") else "1").strip()
        if not folder_id:
            return "1"
        return folder_id

    @field_validator("subfolder_title", mode="before")
    @classmethod
    def _validate_subfolder_title(cls, value: Any) -> str:
        title = str(value or "Raindrop").strip()
        if not title:
            return "Raindrop"
        if len(title) > 200:
            msg = "Subfolder title is too long"
            raise ValueError(msg)
        return title

    @field_validator("rate_limit_rpm", "batch_size", "interval_minutes", mode="before")
    @classmethod
    def _validate_positive_int(cls, value: Any, info: ValidationInfo) -> int:
        default = cls.model_fields[info.field_name].default
        try:
            parsed = int(str(value if value not in (None, "") else default))
        except ValueError as exc:
            msg = f"{info.field_name.replace('_', ' ')} must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 1 or parsed > 10000:
            msg = f"{info.field_name.replace('_', ' ').capitalize()} must be between 1 and 10000"
            raise ValueError(msg)
        return parsed

    @field_validator("quiet_hours_start", "quiet_hours_end", mode="before")
    @classmethod
    def _validate_quiet_hours(cls, value: Any, info: ValidationInfo) -> str:
        default = cls.model_fields[info.field_name].default
        return _parse_clock(value, default=default)
