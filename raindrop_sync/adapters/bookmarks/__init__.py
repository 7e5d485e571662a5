"""Local bookmark-store adapters."""

from raindrop_sync.adapters.bookmarks.chrome import ChromeBookmarksFile
from raindrop_sync.adapters.bookmarks.memory import InMemoryBookmarkStore
from raindrop_sync.adapters.bookmarks.models import (
    LocalBookmark,
    LocalFolder,
    LocalNode,
    LocalStoreError,
)

__all__ = [
    "ChromeBookmarksFile",
    "InMemoryBookmarkStore",
    "LocalBookmark",
    "LocalFolder",
    "LocalNode",
    "LocalStoreError",
]
