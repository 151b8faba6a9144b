"""Metadata enrichment for trip updates: place name, air quality, temperature.

The three lookups are independent. They run concurrently and each one is
bounded by its own timeout; a failed lookup yields None for its field and
never cancels or fails the others.
"""

import asyncio
import math
from collections.abc import Awaitable
from typing import Any, TypeVar

import httpx
import structlog

from trip_tracker.clients.open_meteo import AirQualityClient, ForecastClient
from trip_tracker.config import settings
from trip_tracker.models.enrichment import Coordinates, EnrichmentResult
from trip_tracker.services.geocoding_service import GeocodingService

logger = structlog.get_logger()

T = TypeVar("T")


def _as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class EnrichmentService:
    """Runs the external lookups for one coordinate pair."""

    def __init__(
        self,
        geocoding: GeocodingService | None = None,
        air_quality: AirQualityClient | None = None,
        forecast: ForecastClient | None = None,
        timeout: float | None = None,
    ):
        self.geocoding = geocoding or GeocodingService()
        self.air_quality = air_quality or AirQualityClient()
        self.forecast = forecast or ForecastClient()
        self._timeout = timeout if timeout is not None else settings.lookup_timeout_seconds

    async def reverse_geocode(self, coordinates: Coordinates) -> str | None:
        return await self._guarded(
            "reverse_geocode",
            coordinates,
            self.geocoding.reverse_geocode(coordinates.latitude, coordinates.longitude),
        )

    async def fetch_air_quality(self, coordinates: Coordinates) -> int | None:
        value = await self._guarded(
            "air_quality",
            coordinates,
            self.air_quality.get_current_us_aqi(coordinates.latitude, coordinates.longitude),
        )
        number = _as_number(value)
        if value is not None and number is None:
            logger.warning("Unusable AQI value", value=value)
        return round(number) if number is not None else None

    async def fetch_temperature(self, coordinates: Coordinates) -> float | None:
        value = await self._guarded(
            "temperature",
            coordinates,
            self.forecast.get_current_temperature(coordinates.latitude, coordinates.longitude),
        )
        number = _as_number(value)
        if value is not None and number is None:
            logger.warning("Unusable temperature value", value=value)
        return number

    async def enrich(self, coordinates: Coordinates) -> EnrichmentResult:
        """Run all lookups and merge whatever succeeded."""
        place_name, aqi, temperature = await asyncio.gather(
            self.reverse_geocode(coordinates),
            self.fetch_air_quality(coordinates),
            self.fetch_temperature(coordinates),
        )
        result = EnrichmentResult(
            place_name=place_name,
            air_quality_index=aqi,
            temperature_celsius=temperature,
        )
        logger.info(
            "Enrichment attempt complete",
            lat=coordinates.latitude,
            lng=coordinates.longitude,
            fields=sorted(result.to_patch()),
        )
        return result

    async def _guarded(
        self, lookup: str, coordinates: Coordinates, call: Awaitable[T]
    ) -> T | None:
        """Await one lookup under the timeout, converting any failure to None."""
        context = {
            "lookup": lookup,
            "lat": coordinates.latitude,
            "lng": coordinates.longitude,
        }
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Lookup timed out", timeout=self._timeout, **context)
        except httpx.HTTPStatusError as e:
            logger.warning("Lookup failed", status=e.response.status_code, **context)
        except (httpx.HTTPError, ValueError) as e:
            # ValueError covers undecodable JSON bodies
            logger.warning("Lookup failed", error=str(e), **context)
        except Exception as e:
            logger.error("Unexpected lookup error", error=str(e), **context)
        return None

    async def close(self):
        await self.air_quality.close()
        await self.forecast.close()
