from typing import Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from trip_tracker.api.deps import get_monitor, get_processor
from trip_tracker.database import get_db
from trip_tracker.models.enrichment import Coordinates
from trip_tracker.services.connectivity import ConnectivityMonitor
from trip_tracker.services.queue_processor import QueueProcessor
from trip_tracker.services.queue_store import QueueStoreError
from trip_tracker.services.trip_update_service import NewTripUpdate, TripUpdateService
from trip_tracker.tasks.runner import dispatch_drain

logger = structlog.get_logger()

router = APIRouter()


class CreateTripUpdateRequest(BaseModel):
    type: Literal["drive", "stop", "stay"] = "drive"
    trip_id: str | None = None
    message: str | None = None
    media_url: str | None = None
    media_type: Literal["image", "video"] = "image"
    cost: float = 0
    cost_category: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    location_name: str | None = None
    aqi: int | None = None
    temp: float | None = None


@router.post("", status_code=201)
async def create_update(
    req: CreateTripUpdateRequest,
    db: AsyncSession = Depends(get_db),
    processor: QueueProcessor = Depends(get_processor),
    monitor: ConnectivityMonitor = Depends(get_monitor),
):
    coordinates = None
    if req.latitude is not None and req.longitude is not None:
        coordinates = Coordinates(latitude=req.latitude, longitude=req.longitude)

    service = TripUpdateService(db, processor)
    try:
        update, task = await service.create_update(
            NewTripUpdate(
                type=req.type,
                trip_id=req.trip_id,
                message=req.message,
                media_url=req.media_url,
                media_type=req.media_type,
                cost=req.cost,
                cost_category=req.cost_category,
                coordinates=coordinates,
                location_name=req.location_name,
                aqi=req.aqi,
                temp=req.temp,
            )
        )
    except QueueStoreError as e:
        logger.error("Enrichment could not be queued", error=str(e))
        raise HTTPException(
            status_code=503,
            detail="Update saved, but its place/AQI/temperature lookup could not be queued",
        )

    if task is not None and monitor.current_state():
        dispatch_drain(processor)

    return {
        "id": update.id,
        "type": update.type,
        "enrichment_task_id": task.task_id if task else None,
        "online": monitor.current_state(),
    }
