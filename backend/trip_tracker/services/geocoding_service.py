"""Reverse geocoding service for turning coordinates into a place name."""

import asyncio
from typing import Any

import structlog
from geopy.geocoders import Nominatim
from geopy.exc import GeocoderServiceError, GeocoderTimedOut

from trip_tracker.config import settings

logger = structlog.get_logger()

# Address components tried in order before falling back to display_name
PLACE_KEYS = ("city", "town", "village")


def pick_place_name(raw: dict[str, Any] | None) -> str | None:
    """
    Choose a short place name from a Nominatim reverse response.

    Priority: city, town, village, then the first comma-separated segment
    of ``display_name``.
    """
    if not raw:
        return None

    address = raw.get("address") or {}
    for key in PLACE_KEYS:
        value = address.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    display_name = raw.get("display_name")
    if isinstance(display_name, str):
        first = display_name.split(",")[0].strip()
        if first:
            return first
    return None


class GeocodingService:
    """Reverse geocode coordinates using Nominatim (OpenStreetMap)."""

    def __init__(self, geocoder: Nominatim | None = None):
        self.geocoder = geocoder or Nominatim(
            user_agent=settings.nominatim_user_agent,
            domain=settings.nominatim_domain,
            timeout=settings.lookup_timeout_seconds,
        )

    async def reverse_geocode(self, lat: float, lng: float) -> str | None:
        """
        Look up the place name for a coordinate pair.

        Returns None on any lookup failure or when no usable name exists.
        """
        try:
            # Run sync geocoder in thread pool
            location = await asyncio.to_thread(
                self.geocoder.reverse,
                (lat, lng),
                exactly_one=True,
            )
        except (GeocoderTimedOut, GeocoderServiceError) as e:
            logger.warning("Reverse geocoding error", lat=lat, lng=lng, error=str(e))
            return None

        if location is None:
            logger.warning("Reverse geocoding returned no results", lat=lat, lng=lng)
            return None

        name = pick_place_name(location.raw)
        if name is None:
            logger.warning("Reverse geocoding found no place name", lat=lat, lng=lng)
        else:
            logger.info("Reverse geocoded", lat=lat, lng=lng, place=name)
        return name

