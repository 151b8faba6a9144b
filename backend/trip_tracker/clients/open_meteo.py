"""
Open-Meteo API clients.

API Documentation: https://open-meteo.com/en/docs
Authentication: None required

- Air quality: https://air-quality-api.open-meteo.com/v1/air-quality
- Forecast:    https://api.open-meteo.com/v1/forecast

Both return the requested ``current=`` variables nested under ``current``.
"""

from typing import Any

import httpx

from trip_tracker.clients.base_client import BaseAPIClient
from trip_tracker.config import settings


def _current_value(payload: Any, variable: str) -> Any:
    """Pull ``payload["current"][variable]``; None when the shape is wrong."""
    if not isinstance(payload, dict):
        return None
    current = payload.get("current")
    if not isinstance(current, dict):
        return None
    return current.get(variable)


class AirQualityClient(BaseAPIClient):
    """Open-Meteo air quality API client."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            base_url=base_url or settings.air_quality_base_url,
            timeout=timeout or settings.lookup_timeout_seconds,
            max_attempts=max_attempts or settings.lookup_max_attempts,
            transport=transport,
        )

    async def get_current_us_aqi(self, lat: float, lng: float) -> Any:
        """
        Get the current US AQI at a position.

        Returns the raw ``current.us_aqi`` value, or None if the response
        does not carry one.
        """
        payload = await self.get(
            "/v1/air-quality",
            params={"latitude": lat, "longitude": lng, "current": "us_aqi"},
        )
        return _current_value(payload, "us_aqi")


class ForecastClient(BaseAPIClient):
    """Open-Meteo weather forecast API client."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            base_url=base_url or settings.forecast_base_url,
            timeout=timeout or settings.lookup_timeout_seconds,
            max_attempts=max_attempts or settings.lookup_max_attempts,
            transport=transport,
        )

    async def get_current_temperature(self, lat: float, lng: float) -> Any:
        """Get the current temperature at 2m (Celsius) at a position."""
        payload = await self.get(
            "/v1/forecast",
            params={"latitude": lat, "longitude": lng, "current": "temperature_2m"},
        )
        return _current_value(payload, "temperature_2m")
