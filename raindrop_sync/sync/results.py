"""Result types returned by the sync engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field


@dataclass
class BulkResult:
    """Per-item outcome of a bulk operation.

    ``succeeded`` pairs the input key with the produced value; ``failed`` pairs it
    with the error message of the last attempt.
    """

    succeeded: list[tuple[Any, Any]] = field(default_factory=list)
    failed: list[tuple[Any, str]] = field(default_factory=list)
    fallback_used: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)


class FolderSyncResult(BaseModel):
    """Outcome of reconciling one collection with its folder."""

    collection_id: int
    folder_id: str
    created_local: int = 0
    linked_existing: int = 0
    updated_titles: int = 0
    deleted_local: int = 0
    deleted_remote: int = 0
    relinked: int = 0
    duplicates_removed: int = 0
    uploaded: int = 0
    moved: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def local_mutations(self) -> int:
        return (
            self.created_local
            + self.updated_titles
            + self.deleted_local
            + self.duplicates_removed
            + self.moved
        )

    @property
    def remote_mutations(self) -> int:
        return self.uploaded + self.deleted_remote


class CycleResult(BaseModel):
    """Outcome of one reconciliation cycle."""

    status: str = "success"  # success | partial | skipped | aborted | error
    correlation_id: str
    reason: str | None = None
    collections_synced: int = 0
    collections_failed: int = 0
    folders_created: int = 0
    folders_moved: int = 0
    folders: list[FolderSyncResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    duration_seconds: float = 0.0

    def total(self, counter: str) -> int:
        return sum(getattr(folder, counter) for folder in self.folders)

    @property
    def mutations(self) -> int:
        return (
            sum(f.local_mutations + f.remote_mutations for f in self.folders)
            + self.folders_created
            + self.folders_moved
        )

    def summary(self) -> str:
        parts = [
            f"{self.collections_synced} collections",
            f"{self.total('created_local')} created",
            f"{self.total('uploaded')} uploaded",
            f"{self.total('deleted_local') + self.total('deleted_remote')} deleted",
        ]
        if self.collections_failed:
            parts.append(f"{self.collections_failed} failed")
        return ", ".join(parts)
