"""Snapshots of local bookmark-store nodes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime  # noqa: TC003 - dataclass field type


class LocalStoreError(Exception):
    """The local bookmark store rejected an operation (missing node, bad parent, ...)."""


@dataclass(frozen=True)
class LocalFolder:
    id: str
    title: str
    parent_id: str | None
    position: int = 0

    @property
    def is_folder(self) -> bool:
        return True


@dataclass(frozen=True)
class LocalBookmark:
    id: str
    title: str
    url: str
    parent_id: str | None
    position: int = 0
    date_added: datetime | None = None

    @property
    def is_folder(self) -> bool:
        return False


LocalNode = LocalFolder | LocalBookmark
