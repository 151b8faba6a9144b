from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from trip_tracker.config import settings

logger = structlog.get_logger()

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting Trip Tracker API", env=settings.app_env)
    for warning in settings.validate_production():
        logger.warning("Configuration warning", detail=warning)

    from trip_tracker.database import async_session, create_all_tables
    from trip_tracker.services.connectivity import ConnectivityMonitor, ConnectivityProbe
    from trip_tracker.services.enrichment_service import EnrichmentService
    from trip_tracker.services.local_storage import LocalStorage
    from trip_tracker.services.queue_processor import QueueProcessor
    from trip_tracker.services.queue_store import DurableQueueStore
    from trip_tracker.services.record_store import SqlRecordStore
    from trip_tracker.tasks.runner import (
        dispatch_drain,
        start_connectivity_probe,
        stop_connectivity_probe,
    )

    await create_all_tables()
    db_type = "sqlite" if settings.is_sqlite else "postgresql"
    logger.info("Database ready", backend=db_type)

    monitor = ConnectivityMonitor(initial_state=False)
    enrichment = EnrichmentService()
    processor = QueueProcessor(
        store=DurableQueueStore(LocalStorage(settings.storage_dir)),
        enrichment=enrichment,
        records=SqlRecordStore(async_session),
        monitor=monitor,
        background_drain=dispatch_drain,
    )
    app.state.monitor = monitor
    app.state.processor = processor

    await processor.start()

    if settings.connectivity_probe_enabled:
        start_connectivity_probe(
            ConnectivityProbe(),
            monitor,
            interval_seconds=settings.connectivity_probe_interval_seconds,
        )

    yield

    if settings.connectivity_probe_enabled:
        stop_connectivity_probe()
    processor.stop()
    await enrichment.close()
    logger.info("Shutting down Trip Tracker API")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Trip Tracker API",
        description="Trip updates with offline-safe place, air quality and temperature enrichment.",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from trip_tracker.api.v1.router import api_router

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check(request: Request):
        """Health check with the connectivity flag clients use for the offline banner."""
        monitor = request.app.state.monitor
        processor = request.app.state.processor
        online = monitor.current_state()
        return {
            "status": "healthy" if online else "offline",
            "version": VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "online": online,
            "pending_enrichment": len(processor.pending),
            "draining": processor.is_draining,
        }

    return app


app = create_app()
