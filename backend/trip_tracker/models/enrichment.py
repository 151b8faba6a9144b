"""Queue task and enrichment result types.

Tasks are serialized with the same keys the mobile client used for its
offline queue (``type``, ``id``, ``coords``), plus ``taskId`` and
``enqueuedAt`` for identity and ordering.
"""

import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

ENRICH_METADATA = "ENRICH_METADATA"


def _task_id() -> str:
    return uuid.uuid4().hex


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class EnrichMetadataTask(BaseModel):
    """Attach place name, AQI and temperature to a trip-update record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["ENRICH_METADATA"] = Field(default=ENRICH_METADATA, alias="type")
    task_id: str = Field(default_factory=_task_id, alias="taskId")
    record_id: str = Field(alias="id")
    coordinates: Coordinates = Field(alias="coords")
    enqueued_at: int = Field(default=0, alias="enqueuedAt")


# New task kinds join this as an Annotated union discriminated on ``kind``.
EnrichmentTask = EnrichMetadataTask

Queue = tuple[EnrichmentTask, ...]

queue_adapter = TypeAdapter(list[EnrichmentTask])


class EnrichmentResult(BaseModel):
    """Outcome of one enrichment attempt. Absent means that lookup failed."""

    place_name: str | None = None
    air_quality_index: int | None = None
    temperature_celsius: float | None = None

    @property
    def is_empty(self) -> bool:
        return not self.to_patch()

    def to_patch(self) -> dict[str, Any]:
        """Record fields for the present values only; absent keys are omitted."""
        fields: dict[str, Any] = {}
        if self.place_name is not None:
            fields["locationName"] = self.place_name
        if self.air_quality_index is not None:
            fields["aqi"] = self.air_quality_index
        if self.temperature_celsius is not None:
            fields["temp"] = self.temperature_celsius
        return fields
