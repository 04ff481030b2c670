"""Basic usage examples for the OpenWeather poller."""

import asyncio
import logging
import sys

from openweather import (
    Characteristic,
    Location,
    OpenWeatherClient,
    OpenWeatherFetchError,
    Units,
    WeatherPoller,
    WeatherSensor,
)


async def single_fetch_example(location: Location) -> None:
    """Fetch the current conditions once, without caching."""
    async with OpenWeatherClient() as client:
        try:
            measurement = await client.fetch(location)
        except OpenWeatherFetchError as e:
            print(f"Fetch failed: {e}")
            return

        print("=== Current Conditions ===")
        print(f"{location.name}: {measurement.temperature}°, {measurement.humidity}% humidity")


async def poller_example(location: Location) -> None:
    """Serve cached readings and react to updates."""
    async with WeatherPoller(location) as poller:
        poller.subscribe(
            lambda m: print(f"Updated: {m.temperature}°, {m.humidity}% humidity")
        )

        # Defaults are served until the first fetch completes.
        print(f"\nBefore refresh: {poller.current_temperature()}°")
        await poller.join()
        print(f"After refresh: {poller.current_temperature()}° ({poller.state.value})")

        # Further reads within 15 minutes are served from the cache.
        for _ in range(3):
            poller.current_humidity()
        await poller.join()


async def sensor_example(location: Location) -> None:
    """Drive a sensor the way an accessory bridge would."""
    async with WeatherPoller(location) as poller:
        sensor = WeatherSensor(
            poller,
            on_change=lambda s: print(f"\n{s.name} ({s.manufacturer} {s.model}): "
                                      f"{s.temperature}°, {s.humidity}%"),
        )
        sensor.value_observed(Characteristic.CURRENT_TEMPERATURE)
        await poller.join()
        sensor.detach()


async def main() -> None:
    if len(sys.argv) < 2:
        print("usage: basic_usage.py API_KEY")
        return

    logging.basicConfig(level=logging.DEBUG)
    location = Location(
        name="Moscow",
        latitude=55.75,
        longitude=37.62,
        api_key=sys.argv[1],
        units=Units.METRIC,
    )
    await single_fetch_example(location)
    await poller_example(location)
    await sensor_example(location)


if __name__ == "__main__":
    asyncio.run(main())
