import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from trip_tracker.database import Base


def _uuid_str() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TripUpdate(Base):
    """A single geotagged journal entry (drive/stop/stay) posted by an admin."""

    __tablename__ = "trip_updates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    trip_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    type: Mapped[str] = mapped_column(String(10), default="drive")
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    media_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    media_type: Mapped[str] = mapped_column(String(10), default="image")
    cost: Mapped[float] = mapped_column(Float, default=0)
    cost_category: Mapped[str | None] = mapped_column(String(30), nullable=True)

    # Location
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Enrichment (filled in by the queue processor)
    location_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    aqi: Mapped[int | None] = mapped_column(Integer, nullable=True)
    temp: Mapped[float | None] = mapped_column(Float, nullable=True)

    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, index=True)
