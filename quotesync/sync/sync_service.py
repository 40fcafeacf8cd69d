"""Serialized local/remote sync cycles and the periodic sync timer"""

import asyncio
from contextlib import suppress
from typing import Optional

from loguru import logger

from quotesync.core.models import MergePolicy, QuoteConflict, SyncReport
from quotesync.reconciliation.reconciler import QuoteReconciler
from quotesync.storage.quote_repository import QuoteRepository
from quotesync.sync.remote_source import QuoteSource


class SyncService:
    """
    Runs load -> fetch -> reconcile -> save -> push cycles.

    The read-modify-write of the local store is not atomic, so cycles are
    serialized with a lock. A call made while another cycle (or a quote book
    write sharing the lock) is in flight is skipped, not queued.

    An unreachable source degrades to a local-only pass-through: the merge
    runs against an empty remote and nothing is pushed.
    """

    def __init__(
        self,
        repository: QuoteRepository,
        source: QuoteSource,
        reconciler: Optional[QuoteReconciler] = None,
        policy: MergePolicy = MergePolicy.LATEST_TIMESTAMP,
        lock: Optional[asyncio.Lock] = None,
    ) -> None:
        self.repository = repository
        self.source = source
        self.reconciler = reconciler or QuoteReconciler(policy)
        self.policy = policy
        self.lock = lock or asyncio.Lock()
        self.last_report: Optional[SyncReport] = None
        self.syncs_completed = 0
        self.syncs_skipped = 0
        self._task: Optional[asyncio.Task] = None
        logger.info(
            "SyncService initialized (source={source}, policy={policy})",
            source=source.name,
            policy=policy.value,
        )

    @property
    def last_conflicts(self) -> list[QuoteConflict]:
        return self.last_report.conflicts if self.last_report else []

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sync_now(self, policy: Optional[MergePolicy] = None) -> SyncReport:
        """
        Run one sync cycle.

        Args:
            policy: Overrides the service's default merge policy

        Returns:
            SyncReport; ``skipped`` is True when another cycle held the lock
        """
        policy = policy or self.policy

        if self.lock.locked():
            self.syncs_skipped += 1
            logger.info("Sync already in progress, skipping")
            return SyncReport(policy=policy, skipped=True)

        async with self.lock:
            local = await self.repository.load_quotes()
            remote = await self.source.fetch_quotes()
            remote_available = self.source.last_fetch_ok

            if not remote_available:
                logger.warning(
                    "Remote source {source} unavailable, merging local only",
                    source=self.source.name,
                )

            result = self.reconciler.reconcile(local, remote, policy)
            await self.repository.save_quotes(result.merged)

            pushed = False
            if remote_available:
                pushed = await self.source.push_quotes(result.merged)

            report = SyncReport(
                policy=policy,
                local_count=len(local),
                remote_count=len(remote),
                merged_count=len(result.merged),
                conflicts=result.conflicts,
                remote_available=remote_available,
                pushed=pushed,
            )
            self.last_report = report
            self.syncs_completed += 1

        logger.info(
            "Sync complete: {merged} quotes, {conflicts} conflicts, pushed={pushed}",
            merged=report.merged_count,
            conflicts=len(report.conflicts),
            pushed=pushed,
        )
        return report

    def start(self, interval_seconds: float) -> None:
        """Start syncing every ``interval_seconds`` on the running event loop"""
        if interval_seconds <= 0:
            raise ValueError(f"Sync interval must be positive, got {interval_seconds}")
        if self.running:
            logger.debug("Periodic sync already running")
            return

        self._task = asyncio.create_task(self._run_periodic(interval_seconds))
        logger.info("Periodic sync started (every {s}s)", s=interval_seconds)

    async def stop(self) -> None:
        """Cancel the periodic sync task"""
        if self._task is None:
            return

        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Periodic sync stopped")

    async def _run_periodic(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.sync_now()
            except Exception:
                # Keep the timer alive; the next tick retries
                logger.exception("Periodic sync failed")

    def get_stats(self) -> dict:
        return {
            "syncs_completed": self.syncs_completed,
            "syncs_skipped": self.syncs_skipped,
            "periodic_running": self.running,
            **self.reconciler.get_stats(),
        }
