"""Background scheduler for periodic sync cycles."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from raindrop_sync.core.time_utils import UTC
from raindrop_sync.sync.constants import SCHEDULER_JOB_ID

if TYPE_CHECKING:
    from raindrop_sync.config import AppConfig
    from raindrop_sync.sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)


class SchedulerService:
    """Fires ``SyncOrchestrator.run_cycle`` every ``sync.interval_minutes``.

    The orchestrator is shared with manual triggers, so a tick that lands while a
    manual cycle is running is skipped by the orchestrator's own guard.
    """

    def __init__(self, cfg: AppConfig, orchestrator: SyncOrchestrator) -> None:
        self.cfg = cfg
        self.orchestrator = orchestrator
        self._scheduler: AsyncIOScheduler | None = None

    async def start(self, *, run_immediately: bool = True) -> None:
        """Start the scheduler; the first tick fires now unless ``run_immediately`` is off."""
        if self._scheduler is not None:
            logger.warning("scheduler_already_started")
            return

        scheduler = AsyncIOScheduler()
        interval = self.cfg.sync.interval_minutes

        if self.cfg.sync.enabled:
            # next_run_time=None would add the job paused
            first_run = {"next_run_time": datetime.now(UTC)} if run_immediately else {}
            scheduler.add_job(
                self._run_scheduled_sync,
                trigger=IntervalTrigger(minutes=interval),
                id=SCHEDULER_JOB_ID,
                name="Raindrop bookmark sync",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
                **first_run,
            )
            logger.info(
                "scheduler_sync_job_added",
                extra={"job_id": SCHEDULER_JOB_ID, "interval_minutes": interval},
            )
        else:
            logger.info("scheduler_sync_job_skipped", extra={"reason": "sync_disabled"})

        scheduler.start()
        self._scheduler = scheduler
        logger.info("scheduler_started")

    async def stop(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=True)
        self._scheduler = None
        logger.info("scheduler_stopped")

    async def _run_scheduled_sync(self) -> None:
        logger.info("scheduled_sync_starting")

        try:
            result = await self.orchestrator.run_cycle()
        except Exception as e:
            logger.exception("scheduled_sync_failed", extra={"error": str(e)})
            return

        if result is None:
            logger.info("scheduled_sync_skipped_busy")
            return
        logger.info(
            "scheduled_sync_complete",
            extra={
                "correlation_id": result.correlation_id,
                "status": result.status,
                "collections_synced": result.collections_synced,
                "collections_failed": result.collections_failed,
                "duration_seconds": round(result.duration_seconds, 3),
                "errors": len(result.errors),
            },
        )

    def get_next_run_time(self, job_id: str = SCHEDULER_JOB_ID) -> datetime | None:
        """Next fire time of ``job_id``; None when stopped or the job is absent."""
        job = self._scheduler.get_job(job_id) if self._scheduler is not None else None
        return job.next_run_time if job is not None else None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None
