import logging
import threading
from datetime import datetime, timedelta, timezone

import pytest

from openweather import (
    CacheState,
    Measurement,
    ObserverRegistry,
    StalenessPolicy,
    WeatherCache,
)
from openweather.types import STALENESS_LIMIT


T0 = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


class TestStalenessPolicy:
    def test_never_refreshed_is_stale(self):
        policy = StalenessPolicy()
        for now in (T0, T0 - timedelta(days=365), datetime.max.replace(tzinfo=timezone.utc)):
            assert policy.is_stale(now, None) is True

    @pytest.mark.parametrize(
        "age, expected",
        [
            (timedelta(0), False),
            (timedelta(seconds=1), False),
            (timedelta(minutes=14, seconds=59), False),
            (timedelta(minutes=15), False),
            (timedelta(minutes=15, microseconds=1), True),
            (timedelta(hours=2), True),
        ],
    )
    def test_window(self, age, expected):
        assert StalenessPolicy().is_stale(T0 + age, T0) is expected

    def test_limit_is_fifteen_minutes(self):
        assert StalenessPolicy.limit == STALENESS_LIMIT == timedelta(minutes=15)

    def test_clock_going_backwards_is_fresh(self):
        assert StalenessPolicy().is_stale(T0 - timedelta(minutes=30), T0) is False


class TestWeatherCache:
    def test_defaults(self):
        state = WeatherCache().snapshot()
        assert state.measurement == Measurement(temperature=0.0, humidity=50)
        assert state.last_refreshed_at is None
        assert state.is_initialized is False

    def test_replace(self):
        cache = WeatherCache()
        measurement = Measurement(temperature=18.5, humidity=63)

        assert cache.replace(measurement, T0) is True

        state = cache.snapshot()
        assert state.measurement == measurement
        assert state.last_refreshed_at == T0
        assert state.is_initialized is True

    def test_older_result_discarded(self):
        cache = WeatherCache()
        newer = Measurement(temperature=20.0, humidity=40)
        older = Measurement(temperature=10.0, humidity=80)

        cache.replace(newer, T0 + timedelta(minutes=1))
        assert cache.replace(older, T0) is False

        state = cache.snapshot()
        assert state.measurement == newer
        assert state.last_refreshed_at == T0 + timedelta(minutes=1)

    def test_equal_timestamp_applied(self):
        cache = WeatherCache()
        cache.replace(Measurement(temperature=1.0, humidity=1), T0)
        assert cache.replace(Measurement(temperature=2.0, humidity=2), T0) is True
        assert cache.snapshot().measurement.temperature == 2.0

    def test_snapshot_is_immutable(self):
        state = WeatherCache().snapshot()
        assert isinstance(state, CacheState)
        with pytest.raises(Exception):
            state.last_refreshed_at = T0

    def test_readers_never_see_torn_pair(self):
        cache = WeatherCache()
        cache.replace(Measurement(temperature=0.0, humidity=0), T0)
        stop = threading.Event()
        torn = []

        def reader():
            while not stop.is_set():
                m = cache.snapshot().measurement
                if m.humidity != int(m.temperature):
                    torn.append(m)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for i in range(1, 500):
            cache.replace(
                Measurement(temperature=float(i % 100), humidity=i % 100),
                T0 + timedelta(seconds=i),
            )
        stop.set()
        for t in threads:
            t.join()

        assert torn == []


class TestObserverRegistry:
    def test_notify_in_subscription_order(self):
        registry = ObserverRegistry()
        calls = []
        for i in range(5):
            registry.subscribe(lambda m, i=i: calls.append(i))

        registry.notify_all(Measurement(temperature=1.0, humidity=2))

        assert calls == [0, 1, 2, 3, 4]

    def test_failing_observer_does_not_block_others(self, caplog):
        registry = ObserverRegistry()
        received = []

        def broken(measurement):
            raise RuntimeError("boom")

        registry.subscribe(received.append)
        registry.subscribe(broken)
        registry.subscribe(received.append)

        measurement = Measurement(temperature=1.0, humidity=2)
        with caplog.at_level(logging.ERROR):
            registry.notify_all(measurement)

        assert received == [measurement, measurement]
        assert "failed" in caplog.text
        assert "boom" in caplog.text

    def test_unsubscribe(self):
        registry = ObserverRegistry()
        calls = []
        first = registry.subscribe(lambda m: calls.append("first"))
        registry.subscribe(lambda m: calls.append("second"))

        assert registry.unsubscribe(first) is True
        assert registry.unsubscribe(first) is False
        assert len(registry) == 1

        registry.notify_all(Measurement(temperature=1.0, humidity=2))
        assert calls == ["second"]

    def test_handles_are_unique(self):
        registry = ObserverRegistry()
        a = registry.subscribe(print)
        b = registry.subscribe(print)
        assert a != b
        assert len(registry) == 2

    def test_observer_may_unsubscribe_during_notify(self):
        registry = ObserverRegistry()
        calls = []
        handle = None

        def once(measurement):
            calls.append(measurement)
            registry.unsubscribe(handle)

        handle = registry.subscribe(once)
        measurement = Measurement(temperature=1.0, humidity=2)
        registry.notify_all(measurement)
        registry.notify_all(measurement)

        assert calls == [measurement]
