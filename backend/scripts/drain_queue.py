"""Drain the offline enrichment queue once.

Probes connectivity first; does nothing while offline.
Run from backend/: python3 scripts/drain_queue.py
"""
import asyncio

from trip_tracker.config import settings
from trip_tracker.database import async_session, create_all_tables
from trip_tracker.services.connectivity import ConnectivityMonitor, ConnectivityProbe
from trip_tracker.services.enrichment_service import EnrichmentService
from trip_tracker.services.local_storage import LocalStorage
from trip_tracker.services.queue_processor import QueueProcessor
from trip_tracker.services.queue_store import DurableQueueStore
from trip_tracker.services.record_store import SqlRecordStore


async def main():
    await create_all_tables()

    monitor = ConnectivityMonitor()
    enrichment = EnrichmentService()
    processor = QueueProcessor(
        store=DurableQueueStore(LocalStorage(settings.storage_dir)),
        enrichment=enrichment,
        records=SqlRecordStore(async_session),
        monitor=monitor,
    )

    try:
        await processor.start()
        print(f"Pending tasks: {len(processor.pending)}")

        online = await ConnectivityProbe().check()
        if not online:
            print("Offline - nothing drained")
            return

        # The offline -> online edge drains through the processor's subscription
        await monitor.report(True)
        print(f"Done! {len(processor.pending)} task(s) still pending")
    finally:
        processor.stop()
        await enrichment.close()


if __name__ == "__main__":
    asyncio.run(main())
