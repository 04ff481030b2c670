"""Accessory-facing adapter over a WeatherPoller.

WeatherSensor is the thin layer an accessory bridge talks to. It mirrors
the poller's values into plain attributes that a bridge can publish, and
turns "value observed" events from controllers into rate-limited reads
so the cache refreshes lazily while someone is looking at it.

Example:
    Wiring a sensor into a bridge::

        sensor = WeatherSensor(poller)
        bridge.publish(sensor.name, sensor.temperature, sensor.humidity)

        # Whenever a controller reads the temperature characteristic:
        sensor.value_observed(Characteristic.CURRENT_TEMPERATURE)
"""

import logging
from typing import Callable, Optional

from .models import Measurement
from .observers import Subscription
from .poller import WeatherPoller
from .types import Characteristic

logger = logging.getLogger(__name__)


class WeatherSensor:
    """Temperature and humidity sensor backed by a WeatherPoller.

    Args:
        poller: Poller providing the readings.
        on_change: Optional callback invoked after the attributes have
            been updated, e.g. to push new values to the bridge.

    Attributes:
        name: Accessory name, the location name.
        serial_number: Same as name.
        temperature: Last known temperature.
        humidity: Last known relative humidity in %.
    """

    manufacturer = "Open Weather"
    model = "API"
    firmware_revision = "1.0"

    def __init__(
        self,
        poller: WeatherPoller,
        on_change: Optional[Callable[["WeatherSensor"], None]] = None,
    ) -> None:
        self.poller = poller
        self.name = poller.location.name
        self.serial_number = poller.location.name
        self._on_change = on_change
        self._subscription: Optional[Subscription] = poller.subscribe(self._update)

        measurement = poller.current_measurement()
        self.temperature: float = measurement.temperature
        self.humidity: int = measurement.humidity

    def _update(self, measurement: Measurement) -> None:
        self.temperature = measurement.temperature
        self.humidity = measurement.humidity
        if self._on_change is not None:
            self._on_change(self)

    def value_observed(self, characteristic: Characteristic) -> None:
        """Handle a controller reading one of the sensor's characteristics.

        Reading the temperature triggers a staleness check, so an
        observed sensor refreshes at most once per STALENESS_LIMIT.
        """
        if characteristic is Characteristic.CURRENT_TEMPERATURE:
            self.poller.current_temperature()
        else:
            logger.debug(f"Ignoring observation of {characteristic.value} on {self.name}")

    def detach(self) -> None:
        """Stop receiving updates from the poller."""
        if self._subscription is not None:
            self.poller.unsubscribe(self._subscription)
            self._subscription = None
