"""Two-way synchronization between Raindrop collections and a local bookmark tree."""

from raindrop_sync.sync.orchestrator import SyncOrchestrator, SyncState
from raindrop_sync.sync.results import CycleResult, FolderSyncResult

__all__ = ["CycleResult", "FolderSyncResult", "SyncOrchestrator", "SyncState"]
