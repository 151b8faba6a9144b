"""Test configuration and fixtures."""

import pytest
from fakes import FakeEnrichment, FakeRecordStore
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from trip_tracker.database import create_all_tables
from trip_tracker.services.connectivity import ConnectivityMonitor
from trip_tracker.services.local_storage import LocalStorage
from trip_tracker.services.queue_processor import QueueProcessor
from trip_tracker.services.queue_store import DurableQueueStore


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "storage")


@pytest.fixture
def queue_store(storage):
    return DurableQueueStore(storage, key="offline_queue")


@pytest.fixture
def monitor():
    return ConnectivityMonitor(initial_state=False)


@pytest.fixture
def enrichment():
    return FakeEnrichment()


@pytest.fixture
def records():
    return FakeRecordStore()


@pytest.fixture
def processor(queue_store, enrichment, records, monitor):
    return QueueProcessor(
        store=queue_store,
        enrichment=enrichment,
        records=records,
        monitor=monitor,
        retain_on_patch_failure=False,
    )


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_all_tables(bind=engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()
