"""Tests for the HTTP surface, with services wired in directly (no lifespan)."""

import asyncio

import pytest
from fakes import FakeEnrichment, FakeRecordStore
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from trip_tracker.database import create_all_tables, get_db
from trip_tracker.main import create_app
from trip_tracker.models.enrichment import EnrichmentResult
from trip_tracker.services.connectivity import ConnectivityMonitor
from trip_tracker.services.local_storage import LocalStorage
from trip_tracker.services.queue_processor import QueueProcessor
from trip_tracker.services.queue_store import DurableQueueStore


@pytest.fixture
def wiring(tmp_path):
    monitor = ConnectivityMonitor(initial_state=False)
    enrichment = FakeEnrichment(default=EnrichmentResult(place_name="Bengaluru", air_quality_index=42))
    records = FakeRecordStore()
    processor = QueueProcessor(
        DurableQueueStore(LocalStorage(tmp_path / "storage")), enrichment, records, monitor
    )

    app = create_app()
    app.state.monitor = monitor
    app.state.processor = processor

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(create_all_tables(bind=engine))
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    # Subscribe to connectivity without draining (monitor starts offline)
    asyncio.run(processor.start())
    return TestClient(app), processor, enrichment, records


def test_health_reports_offline(wiring):
    client, *_ = wiring
    body = client.get("/health").json()

    assert body["online"] is False
    assert body["status"] == "offline"
    assert body["pending_enrichment"] == 0


def test_create_update_offline_queues_task(wiring):
    client, processor, enrichment, records = wiring

    response = client.post(
        "/api/v1/updates",
        json={"type": "stop", "message": "Chai", "latitude": 12.9716, "longitude": 77.5946},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["enrichment_task_id"]
    assert body["online"] is False
    assert enrichment.calls == []

    queue = client.get("/api/v1/queue").json()
    assert queue["pending"] == 1
    assert queue["tasks"][0]["record_id"] == body["id"]
    assert queue["tasks"][0]["kind"] == "ENRICH_METADATA"


def test_invalid_coordinates_rejected(wiring):
    client, *_ = wiring
    response = client.post("/api/v1/updates", json={"type": "drive", "latitude": 123, "longitude": 0})
    assert response.status_code == 422


def test_drain_while_offline_is_skipped(wiring):
    client, *_ = wiring
    body = client.post("/api/v1/queue/drain").json()
    assert body["skipped"] is True
    assert body["attempted"] == 0


def test_reconnect_drains_queue_once(wiring):
    client, processor, enrichment, records = wiring
    created = client.post(
        "/api/v1/updates", json={"type": "drive", "latitude": 12.9716, "longitude": 77.5946}
    ).json()

    first = client.post("/api/v1/connectivity", json={"online": True}).json()
    second = client.post("/api/v1/connectivity", json={"online": True}).json()

    assert first == {"online": True, "became_online": True}
    assert second == {"online": True, "became_online": False}
    assert records.calls == [(created["id"], {"locationName": "Bengaluru", "aqi": 42})]
    assert client.get("/api/v1/queue").json()["pending"] == 0
    assert client.get("/health").json()["status"] == "healthy"
