"""
Result Cache - Short-lived Dashboard Memoization
================================================

NOTE: TTLCache is a per-process cache. Several worker processes each keep
their own copy; that only costs hit rate, never correctness, because the
TTL (seconds) is there to absorb dashboard polling bursts.

Expired entries are dropped lazily when their exact key is read again.
There is no background sweep and no cross-key invalidation.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..domain.aggregation import ClassificationThresholds
from ..domain.periods import PeriodRange


class ResultCache(ABC):
    """Capability interface: swap in a shared cache without touching callers."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def set(self, key: str, payload: Any, ttl_seconds: float) -> None:
        ...


@dataclass
class _CacheEntry:
    payload: Any
    expires_at: float


class TTLCache(ResultCache):
    """
    In-memory TTL cache.

    ``clock`` returns seconds; tests pass a fake one.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, _CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if not entry:
            return None
        if self._clock() > entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.payload

    def set(self, key: str, payload: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            return
        self._entries[key] = _CacheEntry(payload=payload, expires_at=self._clock() + ttl_seconds)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


def build_cache_key(
    tenant_id: str,
    template_id: str,
    period_range: PeriodRange,
    thresholds: ClassificationThresholds,
    low_ratings_limit: int,
) -> str:
    """
    Every parameter that changes the executive payload, joined with '|'.

    A rolling end bound ("up to now") is keyed as ``now``, so polls of the
    same rolling period within the TTL share one entry.
    """
    end_part = "now" if period_range.open_ended else (period_range.end_iso or "")
    return "|".join(str(part) for part in (
        tenant_id,
        template_id,
        period_range.period,
        period_range.start_iso or "",
        end_part,
        thresholds.bad,
        thresholds.good,
        low_ratings_limit,
    ))
