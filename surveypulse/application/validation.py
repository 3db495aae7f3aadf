"""
Dashboard Validation - Offline Recomputation & Live Comparison
==============================================================

Recomputes the executive dashboard straight from the response store and,
optionally, diffs it field by field against the live HTTP endpoint. This
is the regression check for the dashboard numbers.

Mismatch types:
- api_error:           endpoint failed or returned something that isn't a payload
- kpi:                 a KPI differs
- trend_length:        different number of trend days
- trend_item:          first differing key of a trend day
- low_ratings_length:  different number of low-rating rows
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import List, Optional

from ..domain.audit import audit_rows, summary_kpis
from ..domain.periods import PeriodRange, resolve_period
from ..infrastructure.api import AnalyticsApiClient
from ..infrastructure.persistence import ResponseStore
from .dashboard import build_executive
from .fetcher import ResilientResponseFetcher
from .queries import ExecutiveQuery

logger = logging.getLogger(__name__)

TREND_KEYS = ("date", "total", "total_submissions", "good", "neutral", "bad", "avg_rating")


class ValidationError(Exception):
    """Validation could not run (e.g. no tenant to validate)."""
    pass


@dataclass
class Comparison:
    http_status: int
    ok: bool
    mismatches: List[dict] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"http_status": self.http_status, "ok": self.ok, "mismatches": self.mismatches}


def _same(a, b) -> bool:
    return str(a) == str(b)


def compare_payloads(api_body: dict, local: dict) -> List[dict]:
    """Field-by-field diff of a live payload against a local recomputation."""
    mismatches = []

    api_kpis = api_body.get("kpis") or {}
    for key, local_value in local["kpis"].items():
        api_value = api_kpis.get(key)
        if not _same(api_value, local_value):
            mismatches.append({"type": "kpi", "key": key, "api": api_value, "local": local_value})

    api_trend = api_body.get("trend") or []
    local_trend = local["trend"]
    if len(api_trend) != len(local_trend):
        mismatches.append({"type": "trend_length", "api": len(api_trend), "local": len(local_trend)})
    else:
        for index, (api_day, local_day) in enumerate(zip(api_trend, local_trend)):
            for key in TREND_KEYS:
                if not _same(api_day.get(key), local_day.get(key)):
                    mismatches.append({
                        "type": "trend_item",
                        "index": index,
                        "key": key,
                        "api": api_day.get(key),
                        "local": local_day.get(key),
                    })
                    break

    api_low = api_body.get("low_ratings") or []
    if len(api_low) != len(local["low_ratings"]):
        mismatches.append({
            "type": "low_ratings_length",
            "api": len(api_low),
            "local": len(local["low_ratings"]),
        })

    return mismatches


def api_params_for(period_range: PeriodRange, query: ExecutiveQuery) -> dict:
    """Query string that asks the live endpoint for the same window."""
    params = {
        "template_id": query.template_id,
        "bad_threshold": str(query.bad_threshold),
        "good_threshold": str(query.good_threshold),
        "low_ratings_limit": str(query.low_ratings_limit),
    }
    if period_range.start and period_range.end:
        params.update(period="custom", start=period_range.start_iso, end=period_range.end_iso)
    else:
        params["period"] = period_range.period
    return params


def compare_with_api(client: AnalyticsApiClient, tenant_id: str, period_range: PeriodRange,
                     query: ExecutiveQuery, computed: dict) -> Comparison:
    result = client.fetch_executive(tenant_id, api_params_for(period_range, query))
    comparison = Comparison(http_status=result.status, ok=result.ok)

    body = result.body
    if not result.ok or body.get("success") is False or "_non_json_body" in body:
        comparison.mismatches.append({"type": "api_error", "details": body})
    else:
        comparison.mismatches.extend(compare_payloads(body, computed))

    if comparison.mismatches:
        logger.warning(f"Live dashboard differs from recomputation: {len(comparison.mismatches)} mismatch(es)")
    return comparison


def resolve_tenant(store: ResponseStore, tenant_id: Optional[str]) -> str:
    """Explicit tenant, else the tenant of the latest rated (then any) response."""
    if tenant_id:
        return tenant_id
    resolved = store.latest_tenant_id(require_rating=True) or store.latest_tenant_id()
    if not resolved:
        raise ValidationError("Could not resolve tenant_id. Use --tenant <ID>.")
    logger.info(f"Resolved default tenant: {resolved}")
    return resolved


def run_validation(
    store: ResponseStore,
    query: ExecutiveQuery,
    tz: tzinfo,
    tenant_id: Optional[str] = None,
    api_client: Optional[AnalyticsApiClient] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Recompute the executive dashboard for a tenant, audit the input rows and
    optionally compare against the live endpoint.
    """
    tenant_id = resolve_tenant(store, tenant_id)
    period_range = resolve_period(query.period, query.start, query.end, now=now, tz=tz)

    fetch = ResilientResponseFetcher(store).fetch(tenant_id, query.template_id, period_range)
    computed = build_executive(fetch, period_range, query, tz)

    comparison = None
    if api_client is not None:
        comparison = compare_with_api(api_client, tenant_id, period_range, query, computed)

    return {
        "tenant_id": tenant_id,
        "template_id": query.template_id,
        "period": {"period": period_range.period, **period_range.as_dict()},
        "optional_fields_present": fetch.optional_fields_present,
        "rows": len(fetch.rows),
        "audit": audit_rows(fetch.rows, tz),
        "summary": summary_kpis(fetch.rows),
        "computed": computed,
        "api_comparison": comparison.as_dict() if comparison else None,
    }
