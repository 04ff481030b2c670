"""Staleness policy and thread-safe cache for weather measurements.

This module provides two pieces:

1. **StalenessPolicy**: Decides whether the cached values are due for a
   refresh. A fixed 15 minute window; "never refreshed" is always stale.

2. **WeatherCache**: Holds the current CacheState. Readers take a
   snapshot under a lock; the single writer swaps in a new immutable
   state, so temperature and humidity always come from the same fetch.

Example:
    Used internally by WeatherPoller::

        cache = WeatherCache()
        policy = StalenessPolicy()
        if policy.is_stale(now, cache.snapshot().last_refreshed_at):
            ...
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Optional

from .models import CacheState, Measurement
from .types import STALENESS_LIMIT

logger = logging.getLogger(__name__)


class StalenessPolicy:
    """Fixed-window refresh policy.

    Attributes:
        limit: Age after which a refresh is warranted (15 minutes).

    Example:
        >>> policy = StalenessPolicy()
        >>> policy.is_stale(now, None)
        True
        >>> policy.is_stale(now, now - timedelta(minutes=5))
        False
    """

    limit: timedelta = STALENESS_LIMIT

    def is_stale(self, now: datetime, last_refreshed_at: Optional[datetime]) -> bool:
        """Check whether a refresh is warranted.

        Args:
            now: Current time.
            last_refreshed_at: Start time of the last successful fetch, or
                None if there was none.

        Returns:
            True if never refreshed or older than limit. Exactly limit old
            is still fresh.
        """
        if last_refreshed_at is None:
            return True
        return (now - last_refreshed_at) > self.limit


class WeatherCache:
    """Lock-guarded holder of the current CacheState.

    Starts with the default measurement (0.0, 50) and no refresh time.

    Example:
        >>> cache = WeatherCache()
        >>> cache.snapshot().measurement
        Measurement(temperature=0.0, humidity=50)
        >>> cache.replace(Measurement(temperature=18.5, humidity=63), now)
        True
    """

    def __init__(self) -> None:
        self._state = CacheState()
        self._lock = threading.Lock()

    def snapshot(self) -> CacheState:
        """Return the current state. Never blocks on I/O."""
        with self._lock:
            return self._state

    def replace(self, measurement: Measurement, refreshed_at: datetime) -> bool:
        """Replace the cached state with a new measurement.

        A result whose fetch started before the current last_refreshed_at
        is discarded, so last_refreshed_at never moves backwards.

        Args:
            measurement: Freshly fetched measurement.
            refreshed_at: Start time of the fetch that produced it.

        Returns:
            True if the state was replaced, False if it was discarded.
        """
        with self._lock:
            current = self._state.last_refreshed_at
            if current is not None and refreshed_at < current:
                logger.debug(
                    f"Discarding measurement from {refreshed_at.isoformat()}, "
                    f"cache already holds {current.isoformat()}"
                )
                return False
            self._state = CacheState(
                measurement=measurement, last_refreshed_at=refreshed_at
            )
            return True
