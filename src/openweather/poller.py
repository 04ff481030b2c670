"""Rate-limited, asynchronously refreshed weather cache.

WeatherPoller keeps the last known temperature and humidity for one
Location and refreshes them from a Fetcher at most once per
STALENESS_LIMIT.

Refresh contract:
    Reading a value never blocks and never raises. It returns the cached
    value immediately and, as a side effect, may schedule a refresh on
    the poller's event loop. The event loop is the only place where
    refresh decisions are made, fetches are started, the cache is
    written and observers are called, so:

    - at most one fetch is in flight per poller,
    - observers see updates in the order they were committed,
    - every fetch attempt, failed or not, opens a new STALENESS_LIMIT
      window; failed fetches leave the cache untouched, are logged, and
      are retried by the first read after that window ends.

The loop is bound explicitly (``loop=``), by ``start()`` or by the first
read. A first read made inside a running loop binds that loop; a first
read made from plain synchronous code starts a dedicated daemon thread
running the poller's own loop, stopped again by ``close()`` or
``shutdown()``. Reads from other threads are handed to the loop with
``call_soon_threadsafe``.

Example:
    Serving readings to an accessory::

        import asyncio
        from openweather import Location, WeatherPoller

        async def main():
            location = Location(
                name="Garden", latitude=55.75, longitude=37.62, api_key="..."
            )
            async with WeatherPoller(location) as poller:
                poller.subscribe(lambda m: print(f"{m.temperature}°C"))
                await poller.join()
                print(poller.current_temperature(), poller.current_humidity())

        asyncio.run(main())

    From synchronous code::

        poller = WeatherPoller(location)
        poller.current_temperature()  # starts the loop thread, schedules a fetch
        ...
        poller.shutdown()
"""

import asyncio
import logging
import threading
from datetime import datetime
from datetime import timezone as dt_timezone
from typing import Any, Callable, Optional

from .cache import StalenessPolicy, WeatherCache
from .client import Fetcher, OpenWeatherClient
from .exceptions import OpenWeatherFetchError
from .models import Location, Measurement
from .observers import Observer, ObserverRegistry, Subscription
from .types import DEFAULT_TIMEOUT, PollerState

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=dt_timezone.utc)


class WeatherPoller:
    """Cached weather readings for one location.

    Args:
        location: Poll target.
        fetcher: Fetcher to use. Defaults to an OpenWeatherClient owned
            (and closed) by the poller.
        loop: Event loop that serializes refreshes. Defaults to the
            running loop at start() or at the first read, or to a loop
            on a dedicated thread if there is none.
        clock: Returns the current time. Defaults to UTC wall time.
        timeout: HTTP timeout for the default OpenWeatherClient.

    Attributes:
        location: Poll target.
        _cache: Current CacheState holder. Written only on the loop.
        _task: In-flight refresh task, or None. Written only on the loop;
            ``state`` reads it from other threads as a hint.
        _last_attempt_at: Start time of the last dispatched fetch, failed
            or not. Touched only on the loop.
        _thread: Thread running the poller's own loop, if it started one.

    Example:
        >>> poller = WeatherPoller(location, loop=loop)
        >>> poller.current_temperature()  # schedules the first refresh
        0.0
    """

    def __init__(
        self,
        location: Location,
        fetcher: Optional[Fetcher] = None,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Optional[Callable[[], datetime]] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.location = location
        self._client: Optional[OpenWeatherClient] = None
        if fetcher is None:
            self._client = OpenWeatherClient(timeout=timeout)
            fetcher = self._client
        self._fetcher = fetcher
        self._loop = loop
        self._thread: Optional[threading.Thread] = None
        self._loop_lock = threading.Lock()
        self._clock = clock or _utcnow
        self._policy = StalenessPolicy()
        self._cache = WeatherCache()
        self._observers = ObserverRegistry()
        self._task: Optional[asyncio.Task[None]] = None
        self._last_attempt_at: Optional[datetime] = None

    async def __aenter__(self) -> "WeatherPoller":
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def start(self) -> None:
        """Bind to the running loop and schedule the first refresh."""
        with self._loop_lock:
            if self._loop is None:
                self._loop = asyncio.get_running_loop()
        self._schedule(force=False)

    async def join(self) -> None:
        """Wait for scheduled checks and the in-flight refresh to finish.

        Must be awaited on the poller's loop.
        """
        # Let checks already queued with call_soon_threadsafe run first.
        await asyncio.sleep(0)
        task = self._task
        if task is not None:
            await asyncio.wait([task])

    async def _drain(self) -> None:
        await self.join()
        if self._client is not None:
            await self._client.close()

    async def close(self) -> None:
        """Wait for the in-flight refresh and close the owned client.

        Stops the poller's own loop thread if it started one. Safe to call
        multiple times.
        """
        loop = self._loop
        if self._thread is None or loop is None:
            await self._drain()
            return
        await asyncio.wrap_future(asyncio.run_coroutine_threadsafe(self._drain(), loop))
        self._stop_loop_thread()

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Synchronous close() for pollers used from non-async code.

        Must not be called on the poller's own loop.

        Args:
            timeout: Seconds to wait for the in-flight refresh. None waits
                until it finishes; the HTTP timeout bounds that wait.
        """
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        asyncio.run_coroutine_threadsafe(self._drain(), loop).result(timeout)
        self._stop_loop_thread()

    @property
    def last_refreshed_at(self) -> Optional[datetime]:
        return self._cache.snapshot().last_refreshed_at

    @property
    def state(self) -> PollerState:
        """Current state of the poller.

        Safe to read from any thread. Off the loop the value is a
        point-in-time hint: a refresh may start or finish right after.
        """
        if self._task is not None:
            return PollerState.REFRESHING
        snapshot = self._cache.snapshot()
        if not snapshot.is_initialized:
            return PollerState.UNINITIALIZED
        if self._policy.is_stale(self._clock(), snapshot.last_refreshed_at):
            return PollerState.STALE
        return PollerState.FRESH

    def current_measurement(self) -> Measurement:
        """Return the cached measurement; may schedule a refresh.

        Temperature and humidity come from the same fetch. Never blocks on
        the network and never raises.
        """
        measurement = self._cache.snapshot().measurement
        self._schedule(force=False)
        return measurement

    def current_temperature(self) -> float:
        """Return the cached temperature; may schedule a refresh."""
        return self.current_measurement().temperature

    def current_humidity(self) -> int:
        """Return the cached relative humidity; may schedule a refresh."""
        return self.current_measurement().humidity

    def force_refresh(self) -> None:
        """Schedule a refresh regardless of staleness.

        Collapses into the in-flight refresh if there is one.
        """
        self._schedule(force=True)

    def subscribe(self, observer: Observer) -> Subscription:
        """Register a callback for each successful refresh.

        The callback receives the new Measurement on the poller's loop,
        after the cache has been updated.
        """
        return self._observers.subscribe(observer)

    def unsubscribe(self, subscription: Subscription) -> bool:
        return self._observers.unsubscribe(subscription)

    def _bound_loop(self) -> asyncio.AbstractEventLoop:
        with self._loop_lock:
            if self._loop is None:
                try:
                    self._loop = asyncio.get_running_loop()
                except RuntimeError:
                    self._loop = self._start_loop_thread()
            return self._loop

    def _start_loop_thread(self) -> asyncio.AbstractEventLoop:
        # Called with _loop_lock held.
        loop = asyncio.new_event_loop()
        thread = threading.Thread(
            target=loop.run_forever,
            name=f"openweather-{self.location.name}",
            daemon=True,
        )
        thread.start()
        self._thread = thread
        logger.debug(f"Started event loop thread {thread.name}")
        return loop

    def _stop_loop_thread(self) -> None:
        with self._loop_lock:
            thread, self._thread = self._thread, None
            loop = self._loop
        if thread is None or loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        thread.join()
        loop.close()
        logger.debug(f"Stopped event loop thread {thread.name}")

    def _schedule(self, force: bool) -> None:
        loop = self._bound_loop()
        try:
            loop.call_soon_threadsafe(self._check_and_refresh, force)
        except RuntimeError:
            logger.debug(f"Event loop for {self.location.name} is closed, refresh not scheduled")

    def _check_and_refresh(self, force: bool) -> None:
        # Runs on the loop.
        if self._task is not None:
            logger.debug(f"Refresh for {self.location.name} already in flight")
            return

        started_at = self._clock()
        if not force and not self._policy.is_stale(started_at, self._last_attempt_at):
            return

        logger.debug(
            f"Refreshing {self.location.name} (forced={force}, "
            f"last attempt {self._last_attempt_at}, "
            f"last refresh {self._cache.snapshot().last_refreshed_at})"
        )
        self._last_attempt_at = started_at
        task = asyncio.get_running_loop().create_task(self._refresh(started_at))
        task.add_done_callback(self._on_refresh_done)
        self._task = task

    async def _refresh(self, started_at: datetime) -> None:
        try:
            try:
                measurement = await self._fetcher.fetch(self.location)
            except OpenWeatherFetchError as e:
                logger.warning(f"Refresh for {self.location.name} failed: {e}")
                return

            if self._cache.replace(measurement, started_at):
                logger.debug(
                    f"Updated {self.location.name}: {measurement.temperature}, "
                    f"{measurement.humidity}%"
                )
                self._observers.notify_all(measurement)
        finally:
            self._task = None

    def _on_refresh_done(self, task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Refresh for {self.location.name} raised unexpectedly", exc_info=exc
            )
