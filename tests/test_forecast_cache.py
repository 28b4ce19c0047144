import pytest

from src.core.forecast_cache import ForecastCache, ForecastCacheKey


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock: FakeClock) -> ForecastCache:
    return ForecastCache(ttl_s=60, max_entries=3, clock=clock)


def test_set_and_get(cache: ForecastCache):
    key = ForecastCacheKey("m1", 12, 0.1)
    cache.set(key, "result")

    assert cache.get(key) == "result"
    assert cache.get(ForecastCacheKey("m1", 12, 0.2)) is None


def test_entries_expire(cache: ForecastCache, clock: FakeClock):
    key = ForecastCacheKey("m1", 12)
    cache.set(key, [1, 2, 3])

    clock.now = 59.0
    assert cache.get(key) == [1, 2, 3]
    clock.now = 60.0
    assert cache.get(key) is None
    assert len(cache) == 0


def test_oldest_entry_evicted_when_full(cache: ForecastCache):
    keys = [ForecastCacheKey(f"m{i}", 12) for i in range(4)]
    for i, key in enumerate(keys):
        cache.set(key, i)

    assert len(cache) == 3
    assert cache.get(keys[0]) is None
    assert cache.get(keys[3]) == 3


def test_get_or_compute_only_computes_once(cache: ForecastCache):
    calls = []

    def compute():
        calls.append(1)
        return "value"

    key = ForecastCacheKey("m1", 6, 0.1, "metrics")
    assert cache.get_or_compute(key, compute) == "value"
    assert cache.get_or_compute(key, compute) == "value"
    assert len(calls) == 1


def test_invalidate_model_drops_only_that_model(cache: ForecastCache):
    cache.set(ForecastCacheKey("m1", 12), "forecast")
    cache.set(ForecastCacheKey("m1", 12, 0.1, "metrics"), "metrics")
    cache.set(ForecastCacheKey("m2", 12), "other")

    assert cache.invalidate_model("m1") == 2
    assert cache.get(ForecastCacheKey("m2", 12)) == "other"
    assert cache.stats()["models"] == ["m2"]
    assert cache.invalidate_model("m1") == 0


def test_invalidate_keys_and_clear(cache: ForecastCache):
    a = ForecastCacheKey("m1", 12)
    b = ForecastCacheKey("m1", 24)
    cache.set(a, 1)
    cache.set(b, 2)

    assert cache.invalidate([a, ForecastCacheKey("missing", 1)]) == 1
    assert cache.get(b) == 2

    cache.clear()
    assert cache.stats() == {"size": 0, "max_entries": 3, "models": []}


def test_max_entries_must_be_positive():
    with pytest.raises(ValueError):
        ForecastCache(max_entries=0)
