"""
Unit tests for the TTL result cache and cache keys.
"""

from datetime import datetime, timezone

from surveypulse.application.cache import TTLCache, build_cache_key
from surveypulse.domain.aggregation import ClassificationThresholds
from surveypulse.domain.periods import PeriodRange


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def test_entry_lives_for_ttl():
    clock = FakeClock()
    cache = TTLCache(clock=clock)

    cache.set("k", {"v": 1}, 15)
    clock.advance(15)
    assert cache.get("k") == {"v": 1}

    clock.advance(0.5)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_missing_key():
    assert TTLCache(clock=FakeClock()).get("nope") is None


def test_zero_ttl_is_not_stored():
    cache = TTLCache(clock=FakeClock())
    cache.set("k", {"v": 1}, 0)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_clear():
    cache = TTLCache(clock=FakeClock())
    cache.set("a", 1, 10)
    cache.set("b", 2, 10)
    cache.clear()
    assert len(cache) == 0


def test_key_covers_every_parameter():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    end = datetime(2024, 1, 2, tzinfo=timezone.utc)
    period_range = PeriodRange("custom", start, end)

    key = build_cache_key("t-1", "all", period_range, ClassificationThresholds(2, 4), 30)
    assert key == "t-1|all|custom|2024-01-01T00:00:00.000Z|2024-01-02T00:00:00.000Z|2|4|30"

    assert build_cache_key("t-2", "all", period_range, ClassificationThresholds(2, 4), 30) != key
    assert build_cache_key("t-1", "tpl", period_range, ClassificationThresholds(2, 4), 30) != key
    assert build_cache_key("t-1", "all", period_range, ClassificationThresholds(3, 4), 30) != key
    assert build_cache_key("t-1", "all", period_range, ClassificationThresholds(2, 4), 10) != key


def test_rolling_periods_share_a_key():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    first = PeriodRange("month", start, datetime(2024, 1, 17, 10, 0, tzinfo=timezone.utc), open_ended=True)
    later = PeriodRange("month", start, datetime(2024, 1, 17, 10, 0, 7, tzinfo=timezone.utc), open_ended=True)

    thresholds = ClassificationThresholds()
    assert build_cache_key("t", "all", first, thresholds, 30) == build_cache_key("t", "all", later, thresholds, 30)
    assert build_cache_key("t", "all", first, thresholds, 30).split("|")[4] == "now"


def test_unbounded_period_key():
    key = build_cache_key("t", "all", PeriodRange("all"), ClassificationThresholds(), 30)
    assert key == "t|all|all|||2|4|30"
