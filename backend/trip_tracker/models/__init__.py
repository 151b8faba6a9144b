from trip_tracker.models.enrichment import (
    Coordinates,
    EnrichMetadataTask,
    EnrichmentResult,
    EnrichmentTask,
    Queue,
)
from trip_tracker.models.trip_update import TripUpdate

__all__ = [
    "Coordinates",
    "EnrichMetadataTask",
    "EnrichmentResult",
    "EnrichmentTask",
    "Queue",
    "TripUpdate",
]
