"""Scheduler for ingest sync passes.

A cooperative loop wakes up every ``INGEST_CHECK_INTERVAL_SECONDS``, loads
the sources that are due and runs one pass per source, a bounded number at
a time. Manual triggers from the admin API go through the same per-source
guard, so two passes over one source never overlap.
"""

import asyncio
from typing import Optional
from uuid import UUID

from rentsync.core.config import settings
from rentsync.core.datetime_utils import utc_now_naive
from rentsync.core.logging import logger
from rentsync.platform.ingest.orchestrator import SourceSyncOrchestrator, SourceSyncResult
from rentsync.platform.ingest.repository import IngestRepository, SQLIngestRepository


class IngestScheduler:
    """Runs due sync passes periodically and on demand."""

    def __init__(
        self,
        repository: Optional[IngestRepository] = None,
        orchestrator: Optional[SourceSyncOrchestrator] = None,
        check_interval: Optional[float] = None,
        max_concurrent_sources: Optional[int] = None,
    ):
        """Initialize the scheduler.

        Args:
            repository: Storage; defaults to the SQL repository
            orchestrator: Runs single passes; defaults to one over ``repository``
            check_interval: Seconds between two sweeps
            max_concurrent_sources: How many sources one sweep syncs at once
        """
        self.repository = repository or SQLIngestRepository()
        self.orchestrator = orchestrator or SourceSyncOrchestrator(self.repository)
        self.check_interval = (
            check_interval
            if check_interval is not None
            else settings.INGEST_CHECK_INTERVAL_SECONDS
        )
        self._semaphore = asyncio.Semaphore(
            max_concurrent_sources or settings.INGEST_MAX_CONCURRENT_SOURCES
        )

        self.running = False
        self.task: Optional[asyncio.Task] = None
        self._in_flight: dict[UUID, asyncio.Task] = {}

    def is_in_flight(self, source_id: UUID) -> bool:
        """Whether a pass over the source is currently running or queued."""
        return source_id in self._in_flight

    async def start(self):
        """Start the scheduler."""
        if self.running:
            logger.warning("Ingest scheduler is already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._scheduler_loop())
        logger.info(f"Ingest scheduler started, checking every {self.check_interval}s")

    async def stop(self):
        """Stop the scheduler and wait for running passes to finish."""
        if not self.running:
            logger.warning("Ingest scheduler is not running")
            return

        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                logger.debug("Ingest scheduler task cancelled successfully")
            self.task = None

        pending = list(self._in_flight.values())
        if pending:
            logger.info(f"Waiting for {len(pending)} running sync passes to finish")
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Ingest scheduler stopped")

    async def _scheduler_loop(self):
        """Main loop: one sweep, then sleep."""
        while self.running:
            try:
                await self.run_due_sources()
            except Exception as e:
                logger.error(f"Error in ingest scheduler loop: {e}", exc_info=True)

            await asyncio.sleep(self.check_interval)

    async def run_due_sources(self) -> list[SourceSyncResult]:
        """Run one pass over every due source and wait for all of them.

        Sources that already have a pass in flight (e.g. from a manual
        trigger) are skipped for this sweep.
        """
        sources = await self.repository.list_due_sources(utc_now_naive())
        if not sources:
            logger.debug("No ingest sources due")
            return []

        logger.info(f"Found {len(sources)} due ingest sources")
        tasks = [
            task
            for task in (self._start_pass(source.id) for source in sources)
            if task is not None
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        return [result for result in results if isinstance(result, SourceSyncResult)]

    async def trigger_now(self, source_id: UUID) -> bool:
        """Schedule an immediate pass over one source without waiting for it.

        Returns:
            False if a pass over the source is already running; the request
            is coalesced into it.
        """
        task = self._start_pass(source_id)
        if task is None:
            logger.info(f"Sync for source {source_id} already in progress, coalescing trigger")
            return False
        logger.info(f"Manual sync triggered for source {source_id}")
        return True

    def _start_pass(self, source_id: UUID) -> Optional[asyncio.Task]:
        """Start a pass unless one is in flight for the source."""
        if source_id in self._in_flight:
            return None

        task = asyncio.create_task(self._run_pass(source_id))
        self._in_flight[source_id] = task
        task.add_done_callback(lambda _: self._in_flight.pop(source_id, None))
        return task

    async def _run_pass(self, source_id: UUID) -> Optional[SourceSyncResult]:
        async with self._semaphore:
            try:
                # Re-read so the pass sees token and delta state written by the previous one
                source = await self.repository.get_source(source_id)
                if source is None:
                    logger.warning(f"Ingest source {source_id} no longer exists, skipping")
                    return None
                return await self.orchestrator.sync_source(source)
            except Exception as e:
                logger.error(f"Sync pass for source {source_id} failed: {e}", exc_info=True)
                return None
