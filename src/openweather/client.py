"""Async fetcher for the OpenWeather current weather API.

This module provides OpenWeatherClient, the default Fetcher used by
WeatherPoller. A fetch issues exactly one GET request and either returns
a Measurement or raises an OpenWeatherFetchError subclass. There is no
retry here; the poller re-attempts once the cache is read again.

Example:
    Fetch the current conditions once::

        import asyncio
        from openweather import Location, OpenWeatherClient

        async def main():
            location = Location(
                name="Moscow", latitude=55.75, longitude=37.62, api_key="..."
            )
            async with OpenWeatherClient() as client:
                measurement = await client.fetch(location)
                print(f"{measurement.temperature}°C, {measurement.humidity}%")

        asyncio.run(main())
"""

import logging
from typing import Any, Optional, Protocol

import httpx
from pydantic import ValidationError

from .exceptions import (
    OpenWeatherConnectionError,
    OpenWeatherContentTypeError,
    OpenWeatherDecodeError,
    OpenWeatherHTTPStatusError,
)
from .models import Location, Measurement, WeatherRequest, WeatherResponse
from .types import DEFAULT_TIMEOUT, WEATHER_BASE_URL

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Anything that can fetch the current measurement for a location.

    Implementations must raise OpenWeatherFetchError (or a subclass) on
    failure and must not retry internally.
    """

    async def fetch(self, location: Location) -> Measurement: ...


def build_request(location: Location) -> WeatherRequest:
    """Build the current weather request for a location.

    Location is validated on construction, so this never fails.

    Args:
        location: Poll target.

    Returns:
        WeatherRequest with the endpoint URL and query parameters.

    Example:
        >>> request = build_request(location)
        >>> request.params["units"]
        'metric'
    """
    return WeatherRequest(
        url=WEATHER_BASE_URL,
        params={
            "lat": str(location.latitude),
            "lon": str(location.longitude),
            "appid": location.api_key,
            "units": location.units.value,
        },
    )


def _mime_type(response: httpx.Response) -> str:
    content_type = response.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower()


class OpenWeatherClient:
    """Async client for the OpenWeather current weather endpoint.

    Args:
        timeout: HTTP request timeout in seconds. Defaults to 10.0.

    Attributes:
        _timeout: HTTP timeout in seconds.
        _client: Lazy-initialized httpx.AsyncClient.

    Example:
        Using as async context manager (recommended)::

            async with OpenWeatherClient() as client:
                measurement = await client.fetch(location)

        Manual resource management::

            client = OpenWeatherClient(timeout=5.0)
            try:
                measurement = await client.fetch(location)
            finally:
                await client.close()
    """

    def __init__(self, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "OpenWeatherClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized.

        Lazily creates the httpx.AsyncClient so the client can be built
        outside a running event loop.

        Returns:
            The initialized httpx.AsyncClient instance.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources.

        Safe to call multiple times.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, location: Location) -> Measurement:
        """Fetch the current measurement for a location.

        Args:
            location: Poll target.

        Returns:
            The measurement parsed from the response.

        Raises:
            OpenWeatherConnectionError: If the request fails or times out.
            OpenWeatherHTTPStatusError: If the status is not 2xx.
            OpenWeatherContentTypeError: If the body is not application/json.
            OpenWeatherDecodeError: If the body is not valid JSON or lacks
                main.temp / main.humidity.
        """
        request = build_request(location)
        client = await self._ensure_client()
        logger.debug(f"Fetching current weather for {location.name} from {request.url}")

        try:
            response = await client.get(request.url, params=request.params)
        except httpx.TimeoutException as e:
            raise OpenWeatherConnectionError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise OpenWeatherConnectionError(f"Request error: {e}") from e

        if not response.is_success:
            raise OpenWeatherHTTPStatusError(response.status_code)

        mime_type = _mime_type(response)
        if mime_type != "application/json":
            raise OpenWeatherContentTypeError(mime_type)

        try:
            data = response.json()
        except ValueError as e:
            raise OpenWeatherDecodeError(f"Invalid JSON: {e}") from e

        try:
            report = WeatherResponse.model_validate(data)
        except ValidationError as e:
            raise OpenWeatherDecodeError(f"Unexpected payload: {e}") from e

        return report.to_measurement()
