"""
Dashboard Assembler - Executive Dashboard & Live Feed
=====================================================

Orchestrates the analytics pipeline for one tenant:

    query -> period range -> cache key -> (hit) cached payload
                                       -> (miss) fetch -> aggregate -> cache

The live feed is a lighter sibling: the N most recent raw rows, no
scoring, no cache.

Both the HTTP layer and the validation tool go through ``build_executive``
and ``aggregate`` from the domain layer; nothing here recomputes numbers.
"""

import logging
from datetime import datetime, tzinfo
from typing import Callable, Optional

from ..domain.aggregation import aggregate
from ..domain.periods import PeriodRange, get_local_zone, resolve_live_feed_period, resolve_period
from .cache import ResultCache, TTLCache, build_cache_key
from .fetcher import FetchResult, ResilientResponseFetcher
from .queries import ExecutiveQuery, LiveFeedQuery

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 15


def build_executive(fetch: FetchResult, period_range: PeriodRange, query: ExecutiveQuery, tz: tzinfo) -> dict:
    """Assemble the executive payload from fetched rows. Pure."""
    metrics = aggregate(
        fetch.rows,
        thresholds=query.thresholds,
        low_ratings_limit=query.low_ratings_limit,
        tz=tz,
        optional_fields_present=fetch.optional_fields_present,
    )
    return {
        "period": period_range.period,
        "range": period_range.as_dict(),
        "thresholds": metrics["thresholds"],
        "optional_fields_present": fetch.optional_fields_present,
        "kpis": metrics["kpis"],
        "trend": metrics["trend"],
        "low_ratings": metrics["low_ratings"],
    }


class DashboardService:
    """
    Serves executive dashboard and live feed payloads.

    USAGE:
        service = DashboardService(ResilientResponseFetcher(store))
        payload = service.executive("tenant-1", ExecutiveQuery(period="week"))
        feed = service.live_feed("tenant-1", LiveFeedQuery(limit=10))

    ``cache`` and ``clock`` are injectable; ``clock`` returns an aware
    datetime and decides what "now" means for period resolution.
    """

    def __init__(
        self,
        fetcher: ResilientResponseFetcher,
        cache: Optional[ResultCache] = None,
        tz: Optional[tzinfo] = None,
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._fetcher = fetcher
        self._cache = cache if cache is not None else TTLCache()
        self._tz = tz or get_local_zone()
        self._ttl = cache_ttl_seconds
        self._clock = clock or (lambda: datetime.now(self._tz))

    @property
    def tz(self) -> tzinfo:
        return self._tz

    @property
    def fetcher(self) -> ResilientResponseFetcher:
        return self._fetcher

    def resolve(self, query: ExecutiveQuery) -> PeriodRange:
        return resolve_period(query.period, query.start, query.end, now=self._clock(), tz=self._tz)

    def executive(self, tenant_id: str, query: ExecutiveQuery) -> dict:
        """
        Executive dashboard payload for a tenant.

        Raises:
            ResponseStoreError: the store failed (schema drift is handled
                by the fetcher and never reaches here).
        """
        period_range = self.resolve(query)
        key = build_cache_key(
            tenant_id,
            query.template_id,
            period_range,
            query.thresholds,
            query.low_ratings_limit,
        )

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Executive dashboard cache hit: {key}")
            return cached

        fetch = self._fetcher.fetch(tenant_id, query.template_id, period_range)
        payload = build_executive(fetch, period_range, query, self._tz)

        logger.info(
            f"Executive dashboard for tenant {tenant_id}: {len(fetch.rows)} rows, "
            f"projection={fetch.projection.value}, period={period_range.period}"
        )

        self._cache.set(key, payload, self._ttl)
        return payload

    def live_feed(self, tenant_id: str, query: LiveFeedQuery) -> dict:
        """Most recent raw responses, newest first. Not cached, not scored."""
        period_range = resolve_live_feed_period(
            query.period, query.start, query.end, now=self._clock(), tz=self._tz
        )
        rows = self._fetcher.recent(tenant_id, query.template_id, period_range, query.limit)
        return {"feed": rows}
