"""Observer registry for measurement updates."""

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable

from .models import Measurement

logger = logging.getLogger(__name__)

Observer = Callable[[Measurement], None]


@dataclass(frozen=True)
class Subscription:
    """Handle returned by subscribe(), used to unsubscribe."""

    id: int


class ObserverRegistry:
    """Insertion-ordered set of measurement callbacks.

    Callbacks run on whichever thread calls notify_all(). For WeatherPoller
    that is its event loop; handing values to another thread is up to the
    subscriber.
    """

    def __init__(self) -> None:
        self._observers: dict[Subscription, Observer] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._observers)

    def subscribe(self, observer: Observer) -> Subscription:
        with self._lock:
            subscription = Subscription(next(self._ids))
            self._observers[subscription] = observer
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a callback. Returns False if it was not registered."""
        with self._lock:
            return self._observers.pop(subscription, None) is not None

    def notify_all(self, measurement: Measurement) -> None:
        """Call every observer in registration order.

        An observer that raises is logged and skipped; the rest still run.
        """
        with self._lock:
            observers = list(self._observers.values())
        for observer in observers:
            try:
                observer(measurement)
            except Exception:
                logger.exception(f"Observer {observer!r} failed")
