"""
Response Store - Abstraction Layer for Survey Response Queries
==============================================================

Provides a unified read interface over wherever survey responses live.
Currently supports a local SQLite database and a managed Postgres exposed
over PostgREST.

USAGE:
    store = SQLiteResponseStore(Database("surveypulse.db"))
    rows = store.query_responses(
        tenant_id="t-1",
        projection=Projection.EXTENDED,
        start=range_start,
        end=range_end,
    )

SCHEMA DRIFT:
Follow-up / redirect columns were added to the product later, so some
stores do not have them. Adapters raise SchemaDriftError for "column or
table does not exist" and ResponseStoreError for everything else. Only
adapters look at driver messages or error codes.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import List, Optional

BASE_COLUMNS = (
    "id",
    "tenant_id",
    "template_id",
    "created_at",
    "overall_rating",
    "custom_answers",
    "would_recommend",
    "comment",
    "source",
    "is_anonymous",
    "customer_name",
    "customer_email",
    "customer_phone",
)

OPTIONAL_COLUMNS = (
    "google_redirect_triggered",
    "followup_status",
    "followup_note",
    "followup_updated_at",
)

LIVE_FEED_COLUMNS = (
    "id",
    "created_at",
    "overall_rating",
    "would_recommend",
    "comment",
    "source",
    "is_anonymous",
    "customer_name",
    "customer_phone",
    "customer_email",
)


class Projection(Enum):
    """Named column sets a store can be asked for."""
    BASE = "base"
    EXTENDED = "extended"
    LIVE_FEED = "live_feed"

    @property
    def columns(self) -> tuple:
        if self is Projection.EXTENDED:
            return BASE_COLUMNS + OPTIONAL_COLUMNS
        if self is Projection.LIVE_FEED:
            return LIVE_FEED_COLUMNS
        return BASE_COLUMNS


class ResponseStoreError(Exception):
    """Base exception for response store failures."""
    pass


class SchemaDriftError(ResponseStoreError):
    """A requested column or table does not exist in the store's schema."""
    pass


class ResponseStore(ABC):
    """
    Abstract base class for survey response stores.
    Implement this interface to add new storage backends.
    """

    name = "abstract"

    @abstractmethod
    def query_responses(
        self,
        tenant_id: str,
        projection: Projection = Projection.BASE,
        template_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """
        Return rows for a tenant ordered by created_at.

        ``template_id`` None means every template; ``start``/``end`` are
        inclusive bounds, None meaning unbounded.
        """
        ...

    @abstractmethod
    def latest_tenant_id(self, require_rating: bool = False) -> Optional[str]:
        """Tenant of the most recent response (optionally a rated one)."""
        ...
