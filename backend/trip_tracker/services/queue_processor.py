"""Drains the offline enrichment queue.

One drain runs at a time. Tasks are attempted strictly one after another in
enqueue order: look up metadata, patch whatever came back onto the record,
then mark the task processed. The persisted queue shrinks only after every
task in the pass has been attempted, so a crash mid-drain leaves the work
queued and it is simply redone (lookups are read-only, patches idempotent).

By default a task is retired even when its record patch fails, so a failed
write loses that enrichment. ``retain_on_patch_failure`` keeps such tasks
queued for the next drain instead.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from trip_tracker.config import settings
from trip_tracker.models.enrichment import Coordinates, EnrichMetadataTask, EnrichmentTask, Queue
from trip_tracker.services.connectivity import ConnectivityMonitor
from trip_tracker.services.enrichment_service import EnrichmentService
from trip_tracker.services.queue_store import DurableQueueStore
from trip_tracker.services.record_store import RecordStore, RecordStoreError

logger = structlog.get_logger()


@dataclass
class DrainReport:
    """Result summary of one queue drain."""

    attempted: int = 0
    patched: int = 0
    empty: int = 0
    patch_failures: int = 0
    retained: int = 0
    remaining: int = 0
    deferred: int = 0  # queued after the pass stopped looking for work
    skipped: bool = False  # offline, nothing attempted
    coalesced: bool = False  # another drain was already running

    def merge(self, later: "DrainReport") -> "DrainReport":
        """Fold a follow-up pass into this report."""
        return DrainReport(
            attempted=self.attempted + later.attempted,
            patched=self.patched + later.patched,
            empty=self.empty + later.empty,
            patch_failures=self.patch_failures + later.patch_failures,
            retained=later.retained,
            remaining=later.remaining,
            deferred=later.deferred,
        )


class QueueProcessor:
    """Owns the pending-task queue and runs enrichment against it."""

    def __init__(
        self,
        store: DurableQueueStore,
        enrichment: EnrichmentService,
        records: RecordStore,
        monitor: ConnectivityMonitor,
        retain_on_patch_failure: bool | None = None,
        background_drain: Callable[["QueueProcessor"], object] | None = None,
    ):
        self._store = store
        self._enrichment = enrichment
        self._records = records
        self._monitor = monitor
        self._retain_on_patch_failure = (
            settings.retain_on_patch_failure
            if retain_on_patch_failure is None
            else retain_on_patch_failure
        )
        self._queue: Queue = ()
        # Serializes every read-modify-write of the persisted queue
        self._lock = asyncio.Lock()
        self._draining = False
        self._unsubscribe: Callable[[], None] | None = None
        # Runs the became-online drain without blocking the connectivity report
        self._background_drain = background_drain

    @property
    def pending(self) -> Queue:
        return self._queue

    @property
    def is_draining(self) -> bool:
        return self._draining

    async def start(self) -> DrainReport | None:
        """Load the persisted queue, subscribe to connectivity, drain if online."""
        async with self._lock:
            self._queue = await self._store.load()

        if self._unsubscribe is None:
            self._unsubscribe = self._monitor.on_became_online(self._on_became_online)

        logger.info("Queue processor started", pending=len(self._queue))
        if self._monitor.current_state():
            return await self.drain()
        return None

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def enqueue(self, record_id: str, coordinates: Coordinates) -> EnrichmentTask:
        """
        Durably queue enrichment for a record.

        Raises QueueStoreError if the task could not be persisted; the
        in-memory queue is left as it was.
        """
        async with self._lock:
            self._queue = await self._store.append(
                EnrichMetadataTask(record_id=record_id, coordinates=coordinates)
            )
        return self._queue[-1]

    async def drain(self) -> DrainReport:
        """Attempt every queued task once. No-op when offline or already draining."""
        if self._draining:
            logger.debug("Drain already in flight, coalescing")
            return DrainReport(coalesced=True, remaining=len(self._queue))

        if not self._monitor.current_state():
            logger.debug("Offline, drain skipped", pending=len(self._queue))
            return DrainReport(skipped=True, remaining=len(self._queue))

        self._draining = True
        try:
            report = await self._drain()
            # Tasks that landed while the pass was persisting its result
            while report.deferred and self._monitor.current_state():
                logger.info("Tasks queued during drain, running another pass", deferred=report.deferred)
                report = report.merge(await self._drain())
            return report
        finally:
            self._draining = False

    async def _drain(self) -> DrainReport:
        report = DrainReport()

        async with self._lock:
            self._queue = await self._store.load()
        if not self._queue:
            return report

        logger.info("Processing offline queue", pending=len(self._queue))

        attempted: set[str] = set()
        retained: set[str] = set()
        while True:
            # Re-read each round so tasks appended mid-drain are picked up
            task = next(
                (
                    t
                    for t in sorted(self._queue, key=lambda t: t.enqueued_at)
                    if t.task_id not in attempted
                ),
                None,
            )
            if task is None:
                break

            attempted.add(task.task_id)
            report.attempted += 1
            applied = await self._process(task, report)
            if not applied and self._retain_on_patch_failure:
                retained.add(task.task_id)

        async with self._lock:
            remaining = tuple(
                t for t in self._queue if t.task_id not in attempted or t.task_id in retained
            )
            await self._store.replace(remaining)
            self._queue = remaining

        report.retained = len(retained)
        report.remaining = len(remaining)
        report.deferred = sum(1 for t in remaining if t.task_id not in attempted)
        logger.info(
            "Offline queue drained",
            attempted=report.attempted,
            patched=report.patched,
            empty=report.empty,
            patch_failures=report.patch_failures,
            remaining=report.remaining,
        )
        return report

    async def _process(self, task: EnrichmentTask, report: DrainReport) -> bool:
        """Enrich one task. Returns False only when the record patch failed."""
        result = await self._enrichment.enrich(task.coordinates)
        fields = result.to_patch()

        if not fields:
            report.empty += 1
            logger.info("No enrichment data for record", record_id=task.record_id)
            return True

        try:
            await self._records.patch_fields(task.record_id, fields)
        except RecordStoreError as e:
            report.patch_failures += 1
            logger.error(
                "Failed to apply enrichment",
                record_id=task.record_id,
                error=str(e),
                retained=self._retain_on_patch_failure,
            )
            return False

        report.patched += 1
        logger.info("Enriched record", record_id=task.record_id, fields=sorted(fields))
        return True

    async def _on_became_online(self) -> None:
        if self._background_drain is not None:
            self._background_drain(self)
            return
        await self.drain()
