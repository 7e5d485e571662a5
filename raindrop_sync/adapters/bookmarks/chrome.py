"""Bookmark store backed by a Chrome/Chromium ``Bookmarks`` JSON profile file.

The browser must not be running while the file is edited: Chrome keeps its own copy
in memory and overwrites the file on exit.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from raindrop_sync.adapters.bookmarks.memory import ROOT_ID, InMemoryBookmarkStore, _Node
from raindrop_sync.adapters.bookmarks.models import LocalNode, LocalStoreError

logger = logging.getLogger(__name__)

# Chrome timestamps are microseconds since 1601-01-01 UTC.
_CHROME_EPOCH = datetime(1601, 1, 1, tzinfo=UTC)
_ROOT_KEYS = ("bookmark_bar", "other", "synced")


def chrome_time_to_datetime(value: Any) -> datetime | None:
    try:
        micros = int(value)
    except (TypeError, ValueError):
        return None
    if micros <= 0:
        return None
    return _CHROME_EPOCH + timedelta(microseconds=micros)


def datetime_to_chrome_time(value: datetime | None) -> str:
    if value is None:
        return "0"
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    delta = value - _CHROME_EPOCH
    return str((delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds)


class ChromeBookmarksFile(InMemoryBookmarkStore):
    """Load a Chrome ``Bookmarks`` file into memory and write it back on ``flush``."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        super().__init__(with_default_roots=False)
        self.path = Path(path)
        self._document: dict[str, Any] = {}
        # top-level node id -> key under "roots"
        self._root_keys: dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        try:
            self._document = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise LocalStoreError(f"Bookmarks file not found: {self.path}") from exc
        except json.JSONDecodeError as exc:
            raise LocalStoreError(f"Bookmarks file is not valid JSON: {self.path}") from exc

        self._root_keys = {}
        roots = self._document.get("roots", {})
        for key in _ROOT_KEYS:
            raw = roots.get(key)
            if isinstance(raw, dict):
                self._root_keys[str(raw["id"])] = key
                self._load_node(raw, ROOT_ID)
        logger.info(
            "chrome_bookmarks_loaded",
            extra={"path": str(self.path), "nodes": len(self._nodes) - 1},
        )

    def _load_node(self, raw: dict[str, Any], parent_id: str) -> None:
        is_folder = raw.get("type") == "folder"
        known = {"id", "name", "type", "url", "children", "date_added"}
        node = _Node(
            id=str(raw["id"]),
            title=raw.get("name", ""),
            parent_id=parent_id,
            url=None if is_folder else raw.get("url", ""),
            date_added=chrome_time_to_datetime(raw.get("date_added")),
            extra={k: v for k, v in raw.items() if k not in known},
        )
        self._insert(node, None)
        if is_folder:
            for child in raw.get("children", []):
                self._load_node(child, node.id)

    def _dump_node(self, node: _Node) -> dict[str, Any]:
        data: dict[str, Any] = dict(node.extra)
        data.update(
            {
                "id": node.id,
                "name": node.title,
                "date_added": datetime_to_chrome_time(node.date_added),
            }
        )
        if node.is_folder:
            data["type"] = "folder"
            data["children"] = [self._dump_node(self._nodes[c]) for c in node.children]
        else:
            data["type"] = "url"
            data["url"] = node.url
        return data

    async def reload(self) -> None:
        """Re-read the file, discarding anything not yet flushed."""
        self._nodes = {ROOT_ID: _Node(id=ROOT_ID, title="", parent_id=None)}
        self._next_id = 1
        self._load()

    async def flush(self) -> None:
        """Write the tree back atomically (temp file + rename)."""
        roots = self._document.setdefault("roots", {})
        for node_id in self._nodes[ROOT_ID].children:
            key = self._root_keys.get(node_id)
            if key is not None:
                roots[key] = self._dump_node(self._nodes[node_id])
        # The stored checksum no longer matches after edits; Chrome accepts its absence.
        self._document.pop("checksum", None)
        self._document.setdefault("version", 1)

        fd, tmp_name = tempfile.mkstemp(prefix=".bookmarks-", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._document, handle, ensure_ascii=False, indent=3)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("chrome_bookmarks_saved", extra={"path": str(self.path)})

    async def create(
        self,
        parent_id: str,
        title: str,
        url: str | None = None,
        index: int | None = None,
    ) -> LocalNode:
        created = await super().create(parent_id, title, url, index)
        self._nodes[created.id].extra["guid"] = str(uuid.uuid4())
        return created
