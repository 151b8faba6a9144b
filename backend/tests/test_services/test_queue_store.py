"""Tests for the durable queue store."""

import pytest

from trip_tracker.models.enrichment import Coordinates, EnrichMetadataTask
from trip_tracker.services.local_storage import LocalStorage
from trip_tracker.services.queue_store import DurableQueueStore, QueueStoreError


def _task(record_id: str, order: int = 1) -> EnrichMetadataTask:
    return EnrichMetadataTask(
        record_id=record_id,
        coordinates=Coordinates(latitude=12.9716, longitude=77.5946),
        enqueued_at=order,
    )


@pytest.mark.asyncio
async def test_load_without_prior_state_is_empty(queue_store):
    assert await queue_store.load() == ()


@pytest.mark.asyncio
async def test_append_returns_full_queue(queue_store):
    first = await queue_store.append(_task("a", 1))
    second = await queue_store.append(_task("b", 2))

    assert [t.record_id for t in first] == ["a"]
    assert [t.record_id for t in second] == ["a", "b"]


@pytest.mark.asyncio
async def test_survives_restart(tmp_path):
    """A task appended before a restart is loaded back with identical fields."""
    task = _task("rec-1", 7)
    await DurableQueueStore(LocalStorage(tmp_path / "s")).append(task)

    reloaded = await DurableQueueStore(LocalStorage(tmp_path / "s")).load()

    assert reloaded == (task,)
    assert reloaded[0].task_id == task.task_id
    assert reloaded[0].coordinates == Coordinates(latitude=12.9716, longitude=77.5946)
    assert reloaded[0].enqueued_at == 7


@pytest.mark.asyncio
async def test_replace_overwrites(queue_store):
    await queue_store.append(_task("a", 1))
    await queue_store.append(_task("b", 2))

    await queue_store.replace(())

    assert await queue_store.load() == ()


@pytest.mark.asyncio
async def test_duplicate_record_ids_allowed(queue_store):
    await queue_store.append(_task("same", 1))
    queue = await queue_store.append(_task("same", 2))
    assert len(queue) == 2


@pytest.mark.asyncio
async def test_corrupt_data_raises(storage, queue_store):
    await storage.set_item("offline_queue", "{not json")
    with pytest.raises(QueueStoreError):
        await queue_store.load()


@pytest.mark.asyncio
async def test_write_failure_propagates_and_keeps_state(storage, queue_store, monkeypatch):
    await queue_store.append(_task("a", 1))

    async def broken_set_item(key, value):
        raise OSError("disk full")

    monkeypatch.setattr(storage, "set_item", broken_set_item)

    with pytest.raises(QueueStoreError):
        await queue_store.append(_task("b", 2))

    monkeypatch.undo()
    assert [t.record_id for t in await queue_store.load()] == ["a"]


@pytest.mark.asyncio
async def test_read_failure_propagates(storage, queue_store, monkeypatch):
    async def broken_get_item(key):
        raise PermissionError("denied")

    monkeypatch.setattr(storage, "get_item", broken_get_item)

    with pytest.raises(QueueStoreError):
        await queue_store.load()


@pytest.mark.asyncio
async def test_append_orders_new_task_after_stored_ones(queue_store):
    await queue_store.append(_task("a", 5))
    queue = await queue_store.append(_task("b", 1))

    assert [t.record_id for t in queue] == ["a", "b"]
    assert queue[1].enqueued_at == 6
    assert await queue_store.load() == queue
