"""
Aggregation Engine - Executive Dashboard Metrics
================================================

Pure computation over already-fetched response rows:
- KPI counts (rated vs. raw submissions, good / neutral / bad split)
- Daily trend buckets in tenant-local time
- Most recent low-scoring responses

No I/O happens here. Both the HTTP dashboard and the offline validation
tool call ``aggregate`` so their numbers cannot drift apart.

Malformed rows never raise: a row without a usable rating is simply not
"rated", a row without a parseable timestamp is left out of the trend.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, List, Optional

from .periods import date_key, get_local_zone, parse_timestamp
from .scoring import round_half_up, score10_for, score5_from_10

DEFAULT_BAD_THRESHOLD = 2
DEFAULT_GOOD_THRESHOLD = 4
DEFAULT_LOW_RATINGS_LIMIT = 30
MAX_LOW_RATINGS_LIMIT = 100

CONTACT_FIELDS = ("customer_name", "customer_phone", "customer_email")

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _to_number(value: Any) -> Optional[float]:
    """Loose numeric coercion for query/CLI values. None when not a finite number."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _compact(number: float):
    return int(number) if float(number).is_integer() else number


def clamp_threshold(value: Any, fallback: int) -> float:
    """Threshold on the 1-5 scale; junk falls back, out-of-range is clamped."""
    number = _to_number(value)
    if number is None:
        return fallback
    return _compact(min(max(number, 1), 5))


def clamp_limit(value: Any, default: int, cap: int) -> int:
    """List-size parameter clamped into [0, cap]; junk falls back to default."""
    number = _to_number(value)
    if number is None:
        return default
    return int(min(max(number, 0), cap))


@dataclass(frozen=True)
class ClassificationThresholds:
    """
    Bad/good cutoffs on the 1-5 scale.

    Not checked against each other: ``bad > good`` is accepted and makes
    the good and bad sets overlap.
    """
    bad: float = DEFAULT_BAD_THRESHOLD
    good: float = DEFAULT_GOOD_THRESHOLD

    @classmethod
    def from_values(cls, bad: Any = None, good: Any = None) -> "ClassificationThresholds":
        return cls(
            bad=clamp_threshold(bad, DEFAULT_BAD_THRESHOLD),
            good=clamp_threshold(good, DEFAULT_GOOD_THRESHOLD),
        )

    @property
    def bad10(self) -> float:
        return self.bad * 2

    @property
    def good10(self) -> float:
        return self.good * 2

    def as_dict(self) -> dict:
        return {"bad": self.bad, "good": self.good}


@dataclass
class _DayBucket:
    good: int = 0
    neutral: int = 0
    bad: int = 0
    rating_sum: float = 0.0
    rating_count: int = 0
    total_submissions: int = 0

    def as_dict(self, day: str) -> dict:
        return {
            "date": day,
            "total": self.rating_count,
            "total_submissions": self.total_submissions,
            "good": self.good,
            "neutral": self.neutral,
            "bad": self.bad,
            "avg_rating": _mean_score5(self.rating_sum, self.rating_count),
        }


def _mean_score5(sum10: float, count: int) -> float:
    if count <= 0:
        return 0
    return round_half_up((sum10 / count) / 2, 2)


def _has_contact(row: dict) -> bool:
    return any(row.get(name) for name in CONTACT_FIELDS)


def score_rows(rows: List[dict]) -> List[dict]:
    """Copy rows adding ``overall_score10`` and ``overall_rating_normalized``."""
    scored = []
    for row in rows:
        score10 = score10_for(row)
        scored.append({
            **row,
            "overall_score10": score10,
            "overall_rating_normalized": score5_from_10(score10),
        })
    return scored


def build_trend(scored: List[dict], thresholds: ClassificationThresholds, tz: tzinfo) -> List[dict]:
    """One bucket per local day, ascending. Undated rows are skipped."""
    by_day: Dict[str, _DayBucket] = {}

    for row in scored:
        created = parse_timestamp(row.get("created_at"), tz)
        if created is None:
            continue

        bucket = by_day.setdefault(date_key(created, tz), _DayBucket())
        bucket.total_submissions += 1

        score10 = row["overall_score10"]
        if score10 is None:
            continue

        bucket.rating_sum += score10
        bucket.rating_count += 1
        if score10 >= thresholds.good10:
            bucket.good += 1
        elif score10 <= thresholds.bad10:
            bucket.bad += 1
        else:
            bucket.neutral += 1

    return [by_day[day].as_dict(day) for day in sorted(by_day)]


def select_low_ratings(
    rated: List[dict],
    thresholds: ClassificationThresholds,
    limit: int,
    tz: tzinfo,
) -> List[dict]:
    """Low-scoring rows, most recent first, with ``overall_rating`` as score5."""
    low = [row for row in rated if row["overall_score10"] <= thresholds.bad10]

    def recency(row: dict):
        created = parse_timestamp(row.get("created_at"), tz)
        return (created is not None, created or _OLDEST)

    low.sort(key=recency, reverse=True)

    limit = clamp_limit(limit, DEFAULT_LOW_RATINGS_LIMIT, MAX_LOW_RATINGS_LIMIT)
    return [
        {**row, "overall_rating": row["overall_rating_normalized"]}
        for row in low[:limit]
    ]


def aggregate(
    rows: List[dict],
    thresholds: Optional[ClassificationThresholds] = None,
    low_ratings_limit: int = DEFAULT_LOW_RATINGS_LIMIT,
    tz: Optional[tzinfo] = None,
    optional_fields_present: bool = True,
) -> dict:
    """
    Compute thresholds echo, KPIs, daily trend and low-rating list.

    ``optional_fields_present`` is False when the store could only serve the
    base column set; the redirect KPI is then unknown (None), not zero.
    """
    thresholds = thresholds or ClassificationThresholds()
    tz = tz or get_local_zone()

    scored = score_rows(rows or [])
    rated = [row for row in scored if row["overall_score10"] is not None]

    rating_count = len(rated)
    rating_sum10 = sum(row["overall_score10"] for row in rated)

    good_count = sum(1 for row in rated if row["overall_score10"] >= thresholds.good10)
    bad_rows = [row for row in rated if row["overall_score10"] <= thresholds.bad10]
    bad_count = len(bad_rows)

    if optional_fields_present:
        google_redirect_count = sum(1 for row in scored if row.get("google_redirect_triggered") is True)
    else:
        google_redirect_count = None

    kpis = {
        "total_responses": rating_count,
        "total_submissions": len(scored),
        "avg_rating": _mean_score5(rating_sum10, rating_count),
        "good_count": good_count,
        "neutral_count": max(rating_count - good_count - bad_count, 0),
        "bad_count": bad_count,
        "bad_identified_count": sum(1 for row in bad_rows if _has_contact(row)),
        "google_redirect_count": google_redirect_count,
    }

    return {
        "thresholds": thresholds.as_dict(),
        "kpis": kpis,
        "trend": build_trend(scored, thresholds, tz),
        "low_ratings": select_low_ratings(rated, thresholds, low_ratings_limit, tz),
    }
