"""Durable storage for the pending enrichment queue.

The whole queue is stored as one JSON list under a fixed key. The store has
no concurrency control of its own; the queue processor serializes calls.
"""

import structlog
from pydantic import ValidationError

from trip_tracker.config import settings
from trip_tracker.models.enrichment import EnrichmentTask, Queue, queue_adapter
from trip_tracker.services.local_storage import LocalStorage

logger = structlog.get_logger()


class QueueStoreError(Exception):
    """The persisted queue could not be read or written."""


class DurableQueueStore:
    """Persists the offline enrichment queue to local storage."""

    def __init__(self, storage: LocalStorage, key: str | None = None):
        self.storage = storage
        self.key = key or settings.queue_storage_key

    async def load(self) -> Queue:
        """Return the persisted queue; an empty queue if nothing was stored yet."""
        try:
            raw = await self.storage.get_item(self.key)
        except OSError as e:
            logger.error("Queue load failed", key=self.key, error=str(e))
            raise QueueStoreError(f"Could not read queue '{self.key}': {e}") from e

        if raw is None or not raw.strip():
            return ()

        try:
            tasks = queue_adapter.validate_json(raw)
        except ValidationError as e:
            logger.error("Queue data is corrupt", key=self.key, error=str(e))
            raise QueueStoreError(f"Queue '{self.key}' holds unreadable data") from e
        return tuple(tasks)

    async def append(self, task: EnrichmentTask) -> Queue:
        """
        Add a task to the end of the persisted queue.

        The task's ``enqueued_at`` is raised past every stored task so it
        sorts last. Returns the new full queue. The task is durably queued
        only once this returns; on failure the persisted queue is unchanged.
        """
        stored = await self.load()
        next_order = max((t.enqueued_at for t in stored), default=0) + 1
        if task.enqueued_at < next_order:
            task = task.model_copy(update={"enqueued_at": next_order})
        queue = stored + (task,)
        await self._write(queue)
        logger.info("Task queued", task_id=task.task_id, record_id=task.record_id, pending=len(queue))
        return queue

    async def replace(self, new_queue: Queue) -> None:
        """Atomically overwrite the persisted queue."""
        await self._write(tuple(new_queue))

    async def _write(self, queue: Queue) -> None:
        payload = queue_adapter.dump_json(list(queue), by_alias=True).decode("utf-8")
        try:
            await self.storage.set_item(self.key, payload)
        except OSError as e:
            logger.error("Queue write failed", key=self.key, error=str(e))
            raise QueueStoreError(f"Could not write queue '{self.key}': {e}") from e
