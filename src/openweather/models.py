"""Pydantic models for the OpenWeather poller.

Key model groups:
    1. **Inputs**: Location, WeatherRequest
    2. **API responses**: MainData, WeatherResponse
    3. **Cached values**: Measurement, CacheState

All models except the API responses are frozen. A CacheState is never
mutated; the cache swaps in a new instance, so a reader always sees a
matching temperature and humidity.

Example:
    Describing a poll target::

        from openweather import Location

        location = Location(
            name="Back garden",
            latitude=55.75,
            longitude=37.62,
            api_key="0123456789abcdef",
        )
        print(location.units)  # Units.METRIC
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    field_validator,
)

from .exceptions import OpenWeatherValidationError
from .types import DEFAULT_HUMIDITY, DEFAULT_TEMPERATURE, Units


class Location(BaseModel):
    """Identity of a poll target.

    Coordinates and the API key are validated on construction. Out of
    range coordinates and an empty key raise OpenWeatherValidationError;
    values of the wrong type still raise pydantic.ValidationError.

    Attributes:
        name: Display name, also used as the accessory serial number.
        latitude: Latitude in decimal degrees, [-90, 90].
        longitude: Longitude in decimal degrees, [-180, 180].
        api_key: OpenWeather API key. Hidden from repr.
        units: Unit system for the temperature. Defaults to METRIC.

    Example:
        >>> Location(name="x", latitude=91.0, longitude=0.0, api_key="k")
        Traceback (most recent call last):
            ...
        OpenWeatherValidationError: Latitude must be in range [-90.0, 90.0], got 91.0
    """

    model_config = ConfigDict(frozen=True)

    name: str
    latitude: float
    longitude: float
    api_key: str = Field(repr=False)
    units: Units = Units.METRIC

    # Not a ValueError, so pydantic re-raises it unwrapped.
    @field_validator("latitude")
    @classmethod
    def _check_latitude(cls, value: float) -> float:
        if not -90.0 <= value <= 90.0:
            raise OpenWeatherValidationError(
                f"Latitude must be in range [-90.0, 90.0], got {value}"
            )
        return value

    @field_validator("longitude")
    @classmethod
    def _check_longitude(cls, value: float) -> float:
        if not -180.0 <= value <= 180.0:
            raise OpenWeatherValidationError(
                f"Longitude must be in range [-180.0, 180.0], got {value}"
            )
        return value

    @field_validator("api_key")
    @classmethod
    def _check_api_key(cls, value: str) -> str:
        if not value:
            raise OpenWeatherValidationError("api_key must not be empty")
        return value


class WeatherRequest(BaseModel):
    """A fully built GET request for the current weather endpoint.

    Attributes:
        url: Endpoint URL without query string.
        params: Query parameters (lat, lon, appid, units).
    """

    model_config = ConfigDict(frozen=True)

    url: str
    params: dict[str, str]


class MainData(BaseModel):
    """The "main" block of a current weather response.

    Attributes:
        temp: Temperature in the requested units. Must be a JSON number;
            strings and booleans are rejected.
        humidity: Relative humidity in %. Must be a JSON integer.
        pressure: Atmospheric pressure in hPa.
        temp_min: Minimum temperature currently observed in the area.
        temp_max: Maximum temperature currently observed in the area.
    """

    model_config = ConfigDict(extra="allow")

    temp: Union[StrictInt, StrictFloat]
    humidity: StrictInt = Field(ge=0, le=100)
    pressure: Optional[float] = None
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None


class WeatherResponse(BaseModel):
    """Response of the current weather endpoint.

    Only the fields the poller needs are declared; the rest of the
    payload is kept as extra attributes.

    Example:
        >>> response = WeatherResponse.model_validate(
        ...     {"main": {"temp": 18.5, "humidity": 63}, "name": "Moscow"}
        ... )
        >>> response.to_measurement()
        Measurement(temperature=18.5, humidity=63)
    """

    model_config = ConfigDict(extra="allow")

    main: MainData
    name: Optional[str] = None

    def to_measurement(self) -> "Measurement":
        return Measurement(temperature=self.main.temp, humidity=self.main.humidity)


class Measurement(BaseModel):
    """A temperature/humidity pair from one successful fetch.

    Attributes:
        temperature: Temperature in the location's units.
        humidity: Relative humidity in %, [0, 100].
    """

    model_config = ConfigDict(frozen=True)

    temperature: float
    humidity: int = Field(ge=0, le=100)


def _default_measurement() -> Measurement:
    return Measurement(temperature=DEFAULT_TEMPERATURE, humidity=DEFAULT_HUMIDITY)


class CacheState(BaseModel):
    """Snapshot of the cached values.

    Attributes:
        measurement: Last fetched measurement, or the defaults (0.0, 50)
            before the first successful fetch.
        last_refreshed_at: Start time of the fetch that produced
            measurement, or None if no fetch has succeeded yet.
    """

    model_config = ConfigDict(frozen=True)

    measurement: Measurement = Field(default_factory=_default_measurement)
    last_refreshed_at: Optional[datetime] = None

    @property
    def is_initialized(self) -> bool:
        return self.last_refreshed_at is not None
