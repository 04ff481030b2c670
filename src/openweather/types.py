"""Types and constants for the OpenWeather poller.

This module defines enumerations and the fixed refresh policy used
throughout the package.

Example:
    Choosing a unit system::

        from openweather import Location, Units

        location = Location(
            name="Garden",
            latitude=51.5,
            longitude=-0.12,
            api_key="...",
            units=Units.IMPERIAL,
        )
"""

from datetime import timedelta
from enum import Enum


class Units(str, Enum):
    """Unit system requested from the OpenWeather API.

    Attributes:
        METRIC: Temperature in °C.
        IMPERIAL: Temperature in °F.

    Example:
        >>> from openweather.types import Units
        >>> Units.METRIC.value
        'metric'
    """

    METRIC = "metric"
    IMPERIAL = "imperial"


class PollerState(str, Enum):
    """Observable state of a WeatherPoller.

    Attributes:
        UNINITIALIZED: No successful fetch yet, defaults are served.
        FRESH: Last success is within STALENESS_LIMIT.
        STALE: Last success is older than STALENESS_LIMIT.
        REFRESHING: A fetch is in flight.
    """

    UNINITIALIZED = "uninitialized"
    FRESH = "fresh"
    STALE = "stale"
    REFRESHING = "refreshing"


class Characteristic(str, Enum):
    """Accessory characteristics a WeatherSensor exposes."""

    CURRENT_TEMPERATURE = "current_temperature"
    CURRENT_RELATIVE_HUMIDITY = "current_relative_humidity"


WEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5/weather"
"""str: Endpoint of the OpenWeather current weather API."""

STALENESS_LIMIT = timedelta(minutes=15)
"""timedelta: Age after which cached values are refreshed.

OpenWeather updates its current conditions roughly every 10 minutes,
so polling more often only burns API quota.
"""

DEFAULT_TIMEOUT = 10.0
"""float: HTTP request timeout in seconds.

Expiry is reported as OpenWeatherConnectionError.
"""

DEFAULT_TEMPERATURE = 0.0
"""float: Temperature served before the first successful fetch."""

DEFAULT_HUMIDITY = 50
"""int: Relative humidity (%) served before the first successful fetch."""
