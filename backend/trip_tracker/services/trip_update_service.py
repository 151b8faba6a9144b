"""Trip update creation - saves the record and queues its enrichment."""

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from trip_tracker.models.enrichment import Coordinates, EnrichmentTask
from trip_tracker.models.trip_update import TripUpdate
from trip_tracker.services.queue_processor import QueueProcessor

logger = structlog.get_logger()

UPDATE_TYPES = ("drive", "stop", "stay")


@dataclass
class NewTripUpdate:
    """Fields an admin supplies when posting an update."""

    type: str = "drive"
    trip_id: str | None = None
    message: str | None = None
    media_url: str | None = None
    media_type: str = "image"
    cost: float = 0
    cost_category: str | None = None
    coordinates: Coordinates | None = None
    location_name: str | None = None
    aqi: int | None = None
    temp: float | None = None


class TripUpdateService:
    def __init__(self, session: AsyncSession, processor: QueueProcessor):
        self.session = session
        self.processor = processor

    async def create_update(self, data: NewTripUpdate) -> tuple[TripUpdate, EnrichmentTask | None]:
        """
        Save a trip update, then queue its enrichment.

        Enrichment is queued whether or not we are online; the processor
        decides when to run it. Raises QueueStoreError if the enrichment
        task could not be persisted (the record itself is already saved).
        """
        if data.type not in UPDATE_TYPES:
            raise ValueError(f"Unknown update type: {data.type!r}")

        update = TripUpdate(
            trip_id=data.trip_id,
            type=data.type,
            message=data.message,
            media_url=data.media_url,
            media_type=data.media_type,
            cost=data.cost or 0,
            cost_category=data.cost_category,
            latitude=data.coordinates.latitude if data.coordinates else None,
            longitude=data.coordinates.longitude if data.coordinates else None,
            location_name=data.location_name,
            aqi=data.aqi,
            temp=data.temp,
        )
        self.session.add(update)
        await self.session.flush()
        record_id = update.id
        await self.session.commit()
        logger.info("Trip update saved", record_id=record_id, type=data.type)

        if data.coordinates is None:
            return update, None

        task = await self.processor.enqueue(record_id, data.coordinates)
        return update, task
