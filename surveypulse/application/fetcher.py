"""
Resilient Response Fetcher
==========================

Fetches a tenant's responses for a period, preferring the extended column
set (follow-up / redirect fields) and falling back once to the base set
when the store reports schema drift.

FALLBACK BEHAVIOR:
- SchemaDriftError on the extended query: retry once with the base columns
- Any other store error: propagated, never retried
- The retry is only issued after the first query has failed
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..domain.periods import PeriodRange
from ..infrastructure.persistence import Projection, ResponseStore, SchemaDriftError

logger = logging.getLogger(__name__)

ALL_TEMPLATES = "all"


@dataclass
class FetchResult:
    """Fetched rows and the projection that actually served them."""
    rows: List[dict] = field(default_factory=list)
    projection: Projection = Projection.EXTENDED

    @property
    def optional_fields_present(self) -> bool:
        return self.projection is Projection.EXTENDED


def template_filter(template_id: Optional[str]) -> Optional[str]:
    """``all`` (or nothing) means no template filter."""
    if not template_id or template_id == ALL_TEMPLATES:
        return None
    return template_id


class ResilientResponseFetcher:
    """
    Schema-drift tolerant reader over a ResponseStore.

    USAGE:
        fetcher = ResilientResponseFetcher(store)
        result = fetcher.fetch("tenant-1", "all", period_range)
        result.rows                     # ascending by created_at
        result.optional_fields_present  # False -> redirect KPI unknown
    """

    def __init__(self, store: ResponseStore):
        self._store = store

    @property
    def store(self) -> ResponseStore:
        return self._store

    def fetch(self, tenant_id: str, template_id: Optional[str], period_range: PeriodRange) -> FetchResult:
        query = dict(
            tenant_id=tenant_id,
            template_id=template_filter(template_id),
            start=period_range.start,
            end=period_range.end,
            ascending=True,
        )

        try:
            rows = self._store.query_responses(projection=Projection.EXTENDED, **query)
            return FetchResult(rows=rows, projection=Projection.EXTENDED)
        except SchemaDriftError as e:
            logger.warning(
                f"Optional response columns unavailable for tenant {tenant_id} ({e}); "
                "retrying with base columns"
            )

        rows = self._store.query_responses(projection=Projection.BASE, **query)
        return FetchResult(rows=rows, projection=Projection.BASE)

    def recent(
        self,
        tenant_id: str,
        template_id: Optional[str],
        period_range: PeriodRange,
        limit: int,
    ) -> List[dict]:
        """Most recent rows first, live-feed columns only."""
        return self._store.query_responses(
            tenant_id=tenant_id,
            projection=Projection.LIVE_FEED,
            template_id=template_filter(template_id),
            start=period_range.start,
            end=period_range.end,
            ascending=False,
            limit=limit,
        )
