"""Top-level sync cycle: one reconciliation pass across all selected collections."""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from raindrop_sync.adapters.raindrop.client import RaindropClient
from raindrop_sync.adapters.raindrop.collections import CollectionFetcher
from raindrop_sync.adapters.raindrop.errors import RaindropAuthError
from raindrop_sync.auth.tokens import NoopTokenRefresher, TokenStore
from raindrop_sync.core.logging_utils import generate_correlation_id
from raindrop_sync.core.time_utils import is_within_quiet_hours
from raindrop_sync.sync.errors import SyncAbortedError
from raindrop_sync.sync.folders import FolderResolver
from raindrop_sync.sync.hierarchy import HierarchyBuilder
from raindrop_sync.sync.history import SyncHistory
from raindrop_sync.sync.maintenance import (
    ClearResult,
    cleanup_all_duplicates,
    clear_all_synced_bookmarks,
)
from raindrop_sync.sync.mapping import MappingStore
from raindrop_sync.sync.ordering import OrderingService
from raindrop_sync.sync.policy import policy_for
from raindrop_sync.sync.reconciler import Reconciler
from raindrop_sync.sync.results import CycleResult

if TYPE_CHECKING:
    from raindrop_sync.adapters.bookmarks.protocols import LocalBookmarkStore
    from raindrop_sync.adapters.raindrop.protocols import RaindropClientFactory
    from raindrop_sync.auth.tokens import TokenRefresher
    from raindrop_sync.config import AppConfig
    from raindrop_sync.db.session import DatabaseSessionManager

logger = logging.getLogger(__name__)

_COUNTERS = (
    "created_local",
    "linked_existing",
    "updated_titles",
    "deleted_local",
    "deleted_remote",
    "relinked",
    "duplicates_removed",
    "uploaded",
    "moved",
    "failed",
)


class SyncState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"


class SyncOrchestrator:
    """Run sync cycles and maintenance actions against one local store.

    At most one cycle or maintenance action runs at a time; a call made while
    another is in flight returns None immediately.
    """

    def __init__(
        self,
        cfg: AppConfig,
        *,
        store: LocalBookmarkStore,
        db: DatabaseSessionManager,
        client_factory: RaindropClientFactory | None = None,
        token_store: TokenStore | None = None,
        refresher: TokenRefresher | None = None,
        history: SyncHistory | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.cfg = cfg
        self._store = store
        self._db = db
        self._client_factory = client_factory or self._default_client_factory
        self._tokens = token_store or TokenStore(db, initial_token=cfg.raindrop.access_token)
        self._refresher = refresher or NoopTokenRefresher()
        self._history = history or SyncHistory(db)
        self._now = now
        self.mapping = MappingStore(db)
        self._state = SyncState.IDLE
        self._state_lock = threading.Lock()

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def history(self) -> SyncHistory:
        return self._history

    def _default_client_factory(self, api_url: str, access_token: str, *, rpm: int) -> RaindropClient:
        return RaindropClient(
            api_url,
            access_token,
            rpm=rpm,
            timeout=self.cfg.raindrop.request_timeout_sec,
        )

    def _try_begin(self) -> bool:
        with self._state_lock:
            if self._state is SyncState.RUNNING:
                return False
            self._state = SyncState.RUNNING
            return True

    def _finish(self) -> None:
        with self._state_lock:
            self._state = SyncState.IDLE

    # -- sync cycle ----------------------------------------------------------

    async def run_cycle(self, *, force: bool = False) -> CycleResult | None:
        """Run one cycle.

        Args:
            force: Ignore quiet hours (manual runs).

        Returns:
            The cycle outcome, or None if another cycle was already running.
        """
        if not self._try_begin():
            logger.debug("sync_already_running")
            return None

        correlation_id = generate_correlation_id()
        started = time.monotonic()
        result = CycleResult(correlation_id=correlation_id)
        try:
            await self._run_cycle(result, force=force)
        except RaindropAuthError as exc:
            result.status = "aborted"
            result.reason = "unauthorized"
            result.errors.append(str(exc))
            logger.warning(
                "sync_cycle_unauthorized",
                extra={"correlation_id": correlation_id, "error": str(exc)},
            )
            await self._recover_credentials(correlation_id)
        except SyncAbortedError as exc:
            result.status = "aborted"
            result.reason = exc.reason
            logger.warning(
                "sync_cycle_aborted",
                extra={"correlation_id": correlation_id, "reason": exc.reason},
            )
        except Exception as exc:
            result.status = "error"
            result.errors.append(f"Unexpected error: {exc}")
            logger.exception("sync_cycle_failed", extra={"correlation_id": correlation_id})
        finally:
            result.duration_seconds = time.monotonic() - started
            self._finish()

        self._record(result)
        return result

    async def _run_cycle(self, result: CycleResult, *, force: bool) -> None:
        sync_cfg = self.cfg.sync
        cid = result.correlation_id

        if not sync_cfg.enabled:
            result.status = "skipped"
            result.reason = "disabled"
            logger.info("sync_cycle_skipped", extra={"correlation_id": cid, "reason": "disabled"})
            return
        if (
            not force
            and sync_cfg.quiet_hours_enabled
            and is_within_quiet_hours(self._now(), sync_cfg.quiet_hours_start, sync_cfg.quiet_hours_end)
        ):
            result.status = "skipped"
            result.reason = "quiet_hours"
            logger.info("sync_cycle_skipped", extra={"correlation_id": cid, "reason": "quiet_hours"})
            return

        token = self._tokens.get()
        if not token:
            raise SyncAbortedError("not_authenticated")

        policy = policy_for(sync_cfg.mode)
        logger.info(
            "sync_cycle_start",
            extra={"correlation_id": cid, "mode": str(sync_cfg.mode), "selection": str(sync_cfg.selection)},
        )

        await self._store.reload()
        self.mapping.load()
        await self.mapping.cleanup(self._store.get_node)
        root_id = await self._resolve_root(create=policy.create_folders, correlation_id=cid)

        async with self._client_factory(
            self.cfg.raindrop.api_url, token, rpm=sync_cfg.rate_limit_rpm
        ) as client:
            collections = await CollectionFetcher(client).fetch_collections(correlation_id=cid)
            builder = HierarchyBuilder(sync_cfg.collections_sort)
            selected = builder.build(collections, sync_cfg.selection, sync_cfg.selected_collection_ids)

            resolver = FolderResolver(self._store, self.mapping, policy, correlation_id=cid)
            reconciler = Reconciler(
                client,
                self._store,
                self.mapping,
                policy,
                bookmarks_sort=sync_cfg.bookmarks_sort,
                batch_size=sync_cfg.batch_size,
                correlation_id=cid,
            )

            folders: dict[int, str] = {}
            seen_item_ids: set[int] = set()
            folder_order: dict[str, list[str]] = defaultdict(list)
            for entry in selected:
                collection = entry.collection
                parent_folder_id = folders.get(entry.parent_id, root_id)  # type: ignore[arg-type]
                try:
                    folder_id = await resolver.resolve(collection, parent_folder_id)
                    if folder_id is None:
                        continue
                    folders[collection.id] = folder_id
                    folder_order[parent_folder_id].append(folder_id)
                    items = await client.get_items(collection.id)
                    seen_item_ids.update(item.id for item in items)
                    result.folders.append(await reconciler.reconcile(collection, folder_id, items))
                    result.collections_synced += 1
                except RaindropAuthError:
                    raise
                except Exception as exc:
                    result.collections_failed += 1
                    result.errors.append(f"Collection {collection.id}: {exc}")
                    logger.warning(
                        "collection_sync_failed",
                        extra={"correlation_id": cid, "collection_id": collection.id, "error": str(exc)},
                    )

            if policy.reorder:
                ordering = OrderingService(self._store, correlation_id=cid)
                for parent_folder_id, folder_ids in folder_order.items():
                    result.folders_moved += await ordering.reorder_folders(parent_folder_id, folder_ids)

        result.folders_created = resolver.folders_created
        if result.collections_failed:
            result.status = "partial"
        else:
            self.mapping.retain_local_deletes(seen_item_ids)

        self.mapping.persist()
        await self._store.flush()

        logger.info(
            "sync_cycle_complete",
            extra={
                "correlation_id": cid,
                "status": result.status,
                "collections_synced": result.collections_synced,
                "collections_failed": result.collections_failed,
                "folders_created": result.folders_created,
                **{name: result.total(name) for name in _COUNTERS},
            },
        )

    async def _resolve_root(self, *, create: bool, correlation_id: str) -> str:
        """Return the folder collection folders are created under.

        With ``use_subfolder`` this is a child of the target folder, created on
        demand when ``create`` is set.
        """
        sync_cfg = self.cfg.sync
        target = await self._store.get_node(sync_cfg.target_folder_id)
        if target is None or not target.is_folder:
            raise SyncAbortedError(f"target folder {sync_cfg.target_folder_id} not found")
        if not sync_cfg.use_subfolder:
            return target.id

        wanted = sync_cfg.subfolder_title.strip().casefold()
        matches = sorted(
            (
                child
                for child in await self._store.get_children(target.id)
                if child.is_folder and child.title.strip().casefold() == wanted
            ),
            key=lambda child: child.position,
        )
        if matches:
            return matches[0].id
        if not create:
            raise SyncAbortedError(f"subfolder {sync_cfg.subfolder_title!r} not found")

        folder = await self._store.create(target.id, sync_cfg.subfolder_title)
        logger.info(
            "sync_subfolder_created",
            extra={"correlation_id": correlation_id, "folder_id": folder.id, "parent_folder_id": target.id},
        )
        return folder.id

    async def _recover_credentials(self, correlation_id: str) -> None:
        self._tokens.invalidate()
        try:
            token = await self._refresher.refresh()
        except Exception as exc:
            logger.warning(
                "raindrop_token_refresh_failed",
                extra={"correlation_id": correlation_id, "error": str(exc)},
            )
            return
        if token:
            self._tokens.save(token)
            logger.info("raindrop_token_refreshed", extra={"correlation_id": correlation_id})
        else:
            logger.warning("raindrop_reauthentication_required", extra={"correlation_id": correlation_id})

    def _record(self, result: CycleResult) -> None:
        if result.status == "skipped":
            return
        counters: dict[str, object] = {name: result.total(name) for name in _COUNTERS}
        counters["collections_synced"] = result.collections_synced
        counters["collections_failed"] = result.collections_failed
        counters["folders_created"] = result.folders_created
        counters["duration"] = round(result.duration_seconds, 3)
        details = result.reason or ("; ".join(result.errors[:5]) if result.errors else result.summary())
        try:
            self._history.record(
                result.status,
                details=details,
                correlation_id=result.correlation_id,
                counters=counters,
            )
        except Exception:
            logger.exception(
                "sync_history_record_failed", extra={"correlation_id": result.correlation_id}
            )

    # -- maintenance -------------------------------------------------------

    async def cleanup_duplicates(self) -> int | None:
        """Prune duplicate bookmarks under the sync root. None if a cycle is running."""
        if not self._try_begin():
            logger.debug("sync_already_running")
            return None
        correlation_id = generate_correlation_id()
        try:
            await self._store.reload()
            self.mapping.load()
            await self.mapping.cleanup(self._store.get_node)
            root_id = await self._resolve_root(create=False, correlation_id=correlation_id)
            removed = await cleanup_all_duplicates(
                self._store, self.mapping, root_id, correlation_id=correlation_id
            )
            self.mapping.persist()
            await self._store.flush()
            return removed
        finally:
            self._finish()

    async def clear_synced_bookmarks(self) -> ClearResult | None:
        """Remove everything previously created or linked by sync. None if busy."""
        if not self._try_begin():
            logger.debug("sync_already_running")
            return None
        correlation_id = generate_correlation_id()
        try:
            await self._store.reload()
            self.mapping.load()
            await self.mapping.cleanup(self._store.get_node)
            cleared = await clear_all_synced_bookmarks(
                self._store, self.mapping, correlation_id=correlation_id
            )
            self.mapping.persist()
            await self._store.flush()
            return cleared
        finally:
            self._finish()
