"""OpenWeather readings for home-automation accessories.

This package polls the OpenWeather current weather API for one location
and serves the last known temperature and humidity without ever blocking
the reader on the network.

Key features:
    - Rate limited: at most one fetch per 15 minutes per location
    - Single-flight: concurrent reads never start a second fetch
    - Lazy: refreshes are triggered by reads, not by a background timer
    - Observers notified in subscription order after each update
    - Failures are logged and the last known values keep being served

Caching strategy:
    Values are kept in memory only. Before the first successful fetch the
    defaults (0.0, 50%) are served. A fetch's start time is recorded as
    the refresh time, and a result from an older fetch never replaces a
    newer one.

Example:
    Poll a location::

        import asyncio
        from openweather import Location, WeatherPoller

        async def main():
            location = Location(
                name="Garden",
                latitude=55.75,
                longitude=37.62,
                api_key="your_api_key",
            )
            async with WeatherPoller(location) as poller:
                poller.subscribe(
                    lambda m: print(f"{m.temperature}°C, {m.humidity}%")
                )
                await poller.join()

        asyncio.run(main())

See Also:
    - OpenWeather API docs: https://openweathermap.org/current
"""

from .cache import StalenessPolicy, WeatherCache
from .client import Fetcher, OpenWeatherClient, build_request
from .exceptions import (
    OpenWeatherConnectionError,
    OpenWeatherContentTypeError,
    OpenWeatherDecodeError,
    OpenWeatherError,
    OpenWeatherFetchError,
    OpenWeatherHTTPStatusError,
    OpenWeatherValidationError,
)
from .models import (
    CacheState,
    Location,
    MainData,
    Measurement,
    WeatherRequest,
    WeatherResponse,
)
from .observers import ObserverRegistry, Subscription
from .poller import WeatherPoller
from .sensor import WeatherSensor
from .types import (
    DEFAULT_HUMIDITY,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT,
    STALENESS_LIMIT,
    WEATHER_BASE_URL,
    Characteristic,
    PollerState,
    Units,
)

__all__ = [
    "WeatherPoller",
    "WeatherSensor",
    "OpenWeatherClient",
    "Fetcher",
    "build_request",
    "StalenessPolicy",
    "WeatherCache",
    "ObserverRegistry",
    "Subscription",
    "Location",
    "Measurement",
    "CacheState",
    "WeatherRequest",
    "WeatherResponse",
    "MainData",
    "Units",
    "PollerState",
    "Characteristic",
    "OpenWeatherError",
    "OpenWeatherFetchError",
    "OpenWeatherConnectionError",
    "OpenWeatherHTTPStatusError",
    "OpenWeatherContentTypeError",
    "OpenWeatherDecodeError",
    "OpenWeatherValidationError",
    "WEATHER_BASE_URL",
    "STALENESS_LIMIT",
    "DEFAULT_TIMEOUT",
    "DEFAULT_TEMPERATURE",
    "DEFAULT_HUMIDITY",
]
